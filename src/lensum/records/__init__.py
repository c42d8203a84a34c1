"""Lensum records and collections."""

from .collection import LensumCollection, destroy_collection
from .lensum import Lensum, destroy_lensum

__all__ = [
    "Lensum",
    "LensumCollection",
    "destroy_collection",
    "destroy_lensum",
]
