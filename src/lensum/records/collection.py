"""Ordered collection of lensums for one run over many lenses."""

from __future__ import annotations

import operator
from collections.abc import Iterable, Iterator
from typing import IO

from ..core.errors import (
    EmptyCollectionError,
    IndexMismatchError,
    IndexOutOfRangeError,
    LensumStateError,
    ShearStyleMismatchError,
    SizeMismatchError,
)
from ..core.logging import StructuredLogger, get_logger
from ..core.types import ShearStyle
from .lensum import Lensum, validate_nbin

logger = get_logger(__name__)


class LensumCollection:
    """Lensums sharing one bin count and shear style, kept in index order."""

    def __init__(
        self,
        n: int,
        nbin: int,
        shear_style: ShearStyle | str | int = ShearStyle.REDUCED,
    ):
        if isinstance(n, bool) or int(n) != n or n < 0:
            raise ValueError(f"Number of lenses must be a non-negative integer, got {n!r}")
        n = int(n)
        self._init_shape(nbin, shear_style)

        logger.info("Creating lensums:")
        logger.info(
            f"    nlens: {n}  nbin: {self._nbin}",
            {"nlens": n, "nbin": self._nbin, "shear_style": self._shear_style.value},
        )
        self._data = [Lensum(self._nbin, self._shear_style, index=i) for i in range(n)]

    @classmethod
    def from_records(
        cls,
        records: Iterable[Lensum],
        nbin: int | None = None,
        shear_style: ShearStyle | str | int | None = None,
    ) -> LensumCollection:
        """Build a collection from copies of existing records.

        The collection owns its copies, so the given records stay independent.
        The shape defaults to that of the first record; an empty input needs
        an explicit ``nbin``.

        Raises:
            EmptyCollectionError: If there are no records and no nbin
            SizeMismatchError: If a record has a different nbin
            ShearStyleMismatchError: If a record has a different shear style
        """
        records = list(records)
        if nbin is None:
            if not records:
                raise EmptyCollectionError("cannot infer nbin from an empty record list")
            nbin = records[0].nbin
        if shear_style is None:
            shear_style = records[0].shear_style if records else ShearStyle.REDUCED

        collection = cls.__new__(cls)
        collection._init_shape(nbin, shear_style)
        for lensum in records:
            if lensum.nbin != collection.nbin:
                raise SizeMismatchError(
                    f"lensum {lensum.index} has nbin={lensum.nbin}, expected {collection.nbin}"
                )
            if lensum.shear_style is not collection.shear_style:
                raise ShearStyleMismatchError(
                    f"lensum {lensum.index} is {lensum.shear_style.value}, "
                    f"expected {collection.shear_style.value}"
                )
        collection._data = [lensum.copy() for lensum in records]
        return collection

    def _init_shape(self, nbin: int, shear_style: ShearStyle | str | int) -> None:
        self._nbin = validate_nbin(nbin)
        self._shear_style = ShearStyle.parse(shear_style)
        self._destroyed = False
        self._data: list[Lensum] = []

    @property
    def nbin(self) -> int:
        return self._nbin

    @property
    def shear_style(self) -> ShearStyle:
        return self._shear_style

    @property
    def size(self) -> int:
        return len(self._data)

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def _require_alive(self) -> None:
        if self._destroyed:
            raise LensumStateError("lensum collection has been destroyed")

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[Lensum]:
        self._require_alive()
        return iter(self._data)

    def __getitem__(self, i: int) -> Lensum:
        self._require_alive()
        try:
            i = operator.index(i)
        except TypeError:
            raise TypeError(f"lensum index must be an integer, got {type(i).__name__}") from None
        if not 0 <= i < len(self._data):
            raise IndexOutOfRangeError(
                f"index {i} out of range for {len(self._data)} lensums"
            )
        return self._data[i]

    def write_all(self, stream: IO[str]) -> None:
        """Write every record, in index order."""
        for lensum in self:
            lensum.write(stream)

    def sum(self) -> Lensum:
        """Sum all records into a new standalone lensum.

        Values are added sequentially from element 0 upward, so float totals
        depend on that order.

        Raises:
            EmptyCollectionError: If the collection has no records
        """
        self._require_alive()
        if not self._data:
            raise EmptyCollectionError("cannot sum an empty lensum collection")
        first = self._data[0]
        total = Lensum(first.nbin, first.shear_style)
        for lensum in self._data:
            total.add(lensum)
        return total

    def add(self, other: LensumCollection) -> None:
        """Accumulate ``other`` into this collection element by element.

        Used to combine outputs computed on different source splits for the
        same lens sample.

        All elements are checked before any is modified, so on error this
        collection is unchanged.

        Raises:
            SizeMismatchError: If the sizes or bin counts differ
            ShearStyleMismatchError: If the shear styles differ
            IndexMismatchError: If element i carries a different lens index
        """
        self._require_alive()
        other._require_alive()
        if len(other) != len(self):
            raise SizeMismatchError(
                f"cannot add collection of {len(other)} lensums to one of {len(self)}"
            )
        if other.nbin != self._nbin:
            raise SizeMismatchError(f"cannot add nbin={other.nbin} lensums to nbin={self._nbin}")
        if other.shear_style is not self._shear_style:
            raise ShearStyleMismatchError(
                f"cannot add {other.shear_style.value} lensums to {self._shear_style.value} lensums"
            )
        for dest, src in zip(self._data, other._data):
            dest._require_alive()
            src._require_alive()
            if dest.index != src.index:
                raise IndexMismatchError(
                    f"lens index mismatch: {dest.index} != {src.index}"
                )

        for dest, src in zip(self._data, other._data):
            dest.add(src)

    def print_sum(self, log: StructuredLogger | None = None) -> None:
        total = self.sum()
        try:
            total.print_summary(log)
        finally:
            total.destroy()

    def print_one(self, i: int, log: StructuredLogger | None = None) -> None:
        lensum = self[i]
        (log or logger).info(f"element {i} of lensums:")
        lensum.print_summary(log)

    def print_first_last(self, log: StructuredLogger | None = None) -> None:
        self._require_alive()
        if not self._data:
            raise EmptyCollectionError("no first or last element in an empty lensum collection")
        self.print_one(0, log)
        self.print_one(len(self._data) - 1, log)

    def destroy(self) -> None:
        """Destroy every record, then drop them. Safe to call more than once."""
        if self._destroyed:
            return
        for lensum in self._data:
            lensum.destroy()
        self._data = []
        self._destroyed = True

    def __repr__(self) -> str:
        state = ", destroyed" if self._destroyed else ""
        return (
            f"LensumCollection(size={len(self._data)}, nbin={self._nbin}, "
            f"shear_style={self._shear_style.value}{state})"
        )


def destroy_collection(collection: LensumCollection | None) -> None:
    """Destroy ``collection`` if given; always returns None."""
    if collection is not None:
        collection.destroy()
    return None


__all__ = [
    "LensumCollection",
    "destroy_collection",
]
