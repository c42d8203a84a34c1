"""Whole-file readers and writers for lensout text files."""

from .text import iter_lensums, read_lensums, reduce_files, write_lensums

__all__ = [
    "iter_lensums",
    "read_lensums",
    "reduce_files",
    "write_lensums",
]
