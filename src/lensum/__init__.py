"""Binned weak-lensing pair statistics ("lensums").

Accumulate per-lens radial-bin sums, merge them across lenses or split runs,
and persist them in the fixed whitespace-delimited lensout text format.
"""

from .core.errors import LensumError
from .core.types import ShearStyle
from .records import Lensum, LensumCollection

__version__ = "0.1.0"

__all__ = [
    "Lensum",
    "LensumCollection",
    "LensumError",
    "ShearStyle",
    "cli",
    "core",
    "io",
    "records",
]
