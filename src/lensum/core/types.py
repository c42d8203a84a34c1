"""Type definitions and aliases for lensum records."""

from __future__ import annotations

import os
from enum import Enum
from typing import IO, Union

import numpy as np

from .errors import ConfigError

# Array dtypes for the per-bin accumulators
COUNT_DTYPE = np.int64
SUM_DTYPE = np.float64

# Legacy integer codes used by the lensing pipeline configs
_LEGACY_CODES = {1: "reduced", 2: "lensfit"}


class ShearStyle(str, Enum):
    """Shear accumulation mode."""

    REDUCED = "reduced"
    LENSFIT = "lensfit"

    @classmethod
    def parse(cls, value: ShearStyle | str | int) -> ShearStyle:
        """Coerce a member, name, value or legacy integer code to a ShearStyle.

        Raises:
            ConfigError: If the value names no known style
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ConfigError(f"Invalid shear style: {value!r}")
        if isinstance(value, int):
            if value not in _LEGACY_CODES:
                raise ConfigError(f"Unknown shear style code: {value}")
            return cls(_LEGACY_CODES[value])
        if isinstance(value, str):
            key = value.strip().lower()
            if key.isdigit():
                return cls.parse(int(key))
            try:
                return cls(key)
            except ValueError:
                pass
        raise ConfigError(
            f"Invalid shear style: {value!r}. Allowed: {[s.value for s in cls]}"
        )

    @property
    def has_sensitivity(self) -> bool:
        """Whether records of this style carry dsensum/osensum."""
        return self is ShearStyle.LENSFIT

    def tokens_per_record(self, nbin: int) -> int:
        """Token count of one lensout line for this style."""
        narrays = 7 if self.has_sensitivity else 5
        return 4 + narrays * nbin


# Common type aliases
TextSource = Union[str, os.PathLike, IO[str]]

__all__ = [
    "COUNT_DTYPE",
    "SUM_DTYPE",
    "ShearStyle",
    "TextSource",
]
