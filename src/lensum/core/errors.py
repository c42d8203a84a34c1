"""Custom exception types for lensum accumulation and I/O."""


class LensumError(Exception):
    """Base exception for all lensum errors."""

    pass


class ConfigError(LensumError):
    """Configuration-related errors."""

    pass


class AllocationError(LensumError):
    """Bin arrays could not be allocated."""

    pass


class SizeMismatchError(LensumError, ValueError):
    """Records or collections with different bin counts or sizes were combined."""

    pass


class ShearStyleMismatchError(LensumError, ValueError):
    """Records with different shear styles were combined."""

    pass


class IndexMismatchError(LensumError, ValueError):
    """Collections being merged list their lenses in a different order."""

    pass


class LensumFormatError(LensumError, ValueError):
    """A lensout text line is malformed or has the wrong token count."""

    def __init__(self, message: str, lineno: int | None = None):
        self.lineno = lineno
        if lineno is not None:
            message = f"line {lineno}: {message}"
        super().__init__(message)


class IndexOutOfRangeError(LensumError, IndexError):
    """Element index outside the collection."""

    pass


class EmptyCollectionError(LensumError):
    """Operation needs at least one record."""

    pass


class LensumStateError(LensumError):
    """Operation on a record or collection that has been destroyed."""

    pass


__all__ = [
    "LensumError",
    "ConfigError",
    "AllocationError",
    "SizeMismatchError",
    "ShearStyleMismatchError",
    "IndexMismatchError",
    "LensumFormatError",
    "IndexOutOfRangeError",
    "EmptyCollectionError",
    "LensumStateError",
]
