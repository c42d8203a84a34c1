"""Single-lens accumulator of binned pair statistics.

A Lensum holds, for one lens, the running weight and pair totals plus one
value per radial bin for each of the accumulated sums. Records written with
the lensfit shear style carry two extra sensitivity arrays.

Lensout line layout (whitespace separated, one record per line):

    index zindex weight totpairs npair[nbin] rsum[nbin] wsum[nbin]
    dsum[nbin] osum[nbin] [dsensum[nbin] osensum[nbin]]
"""

from __future__ import annotations

from typing import IO

import numpy as np

from ..core.errors import (
    AllocationError,
    LensumFormatError,
    LensumStateError,
    ShearStyleMismatchError,
    SizeMismatchError,
)
from ..core.logging import StructuredLogger, get_logger
from ..core.types import COUNT_DTYPE, SUM_DTYPE, ShearStyle

logger = get_logger(__name__)

# Per-bin arrays in file order
SUM_FIELDS = ("rsum", "wsum", "dsum", "osum")
SENSITIVITY_FIELDS = ("dsensum", "osensum")

FLOAT_FORMAT = "%.17g"


def validate_nbin(nbin: int) -> int:
    """Return nbin as a plain int, rejecting non-integers and values < 1."""
    if isinstance(nbin, bool) or not isinstance(nbin, (int, np.integer)):
        raise ValueError(f"nbin must be an integer, got {nbin!r}")
    if nbin < 1:
        raise ValueError(f"nbin must be positive, got {nbin}")
    return int(nbin)


def _format_float(value: float) -> str:
    return FLOAT_FORMAT % value


INT64_MIN = int(np.iinfo(np.int64).min)
INT64_MAX = int(np.iinfo(np.int64).max)


def _parse_int64(token: str) -> int:
    value = int(token)
    if not INT64_MIN <= value <= INT64_MAX:
        raise OverflowError(f"{token} does not fit in int64")
    return value


class _BinArray:
    """Per-bin array attribute that keeps its storage and length fixed.

    Assignment copies into the existing array; values must have shape (nbin,).
    """

    def __set_name__(self, owner, name):
        self.name = name
        self.storage = "_" + name

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self
        return getattr(obj, self.storage)

    def __set__(self, obj, value):
        obj._require_alive()
        current = getattr(obj, self.storage)
        if current is None:
            raise ShearStyleMismatchError(
                f"{obj.shear_style.value} lensum has no {self.name} array"
            )
        arr = np.asarray(value, dtype=current.dtype)
        if arr.shape != current.shape:
            raise SizeMismatchError(
                f"{self.name} must have shape {current.shape}, got {arr.shape}"
            )
        current[...] = arr


class Lensum:
    """Accumulated pair statistics for one lens.

    Attributes:
        index: Position within the owning collection
        zindex: External identifier (redshift bin or catalog row)
        weight: Sum of pair weights
        totpairs: Total number of pairs over all bins
        npair: Pair counts per bin (int64)
        rsum, wsum, dsum, osum: Per-bin sums (float64)
        dsensum, osensum: Per-bin sensitivity sums, lensfit style only
    """

    npair = _BinArray()
    rsum = _BinArray()
    wsum = _BinArray()
    dsum = _BinArray()
    osum = _BinArray()
    dsensum = _BinArray()
    osensum = _BinArray()

    def __init__(
        self,
        nbin: int,
        shear_style: ShearStyle | str | int = ShearStyle.REDUCED,
        index: int = 0,
    ):
        self._nbin = validate_nbin(nbin)
        self._shear_style = ShearStyle.parse(shear_style)
        self._destroyed = False

        self.index = int(index)
        self.zindex = 0
        self.weight = 0.0
        self.totpairs = 0

        self._dsensum: np.ndarray | None = None
        self._osensum: np.ndarray | None = None
        try:
            self._npair = np.zeros(self._nbin, dtype=COUNT_DTYPE)
            self._rsum = np.zeros(self._nbin, dtype=SUM_DTYPE)
            self._wsum = np.zeros(self._nbin, dtype=SUM_DTYPE)
            self._dsum = np.zeros(self._nbin, dtype=SUM_DTYPE)
            self._osum = np.zeros(self._nbin, dtype=SUM_DTYPE)
            if self._shear_style.has_sensitivity:
                self._dsensum = np.zeros(self._nbin, dtype=SUM_DTYPE)
                self._osensum = np.zeros(self._nbin, dtype=SUM_DTYPE)
        except MemoryError as e:
            logger.error("failed to allocate lensum", {"nbin": self._nbin})
            raise AllocationError(f"failed to allocate lensum with nbin={self._nbin}") from e

    @classmethod
    def create(
        cls, nbin: int, shear_style: ShearStyle | str | int = ShearStyle.REDUCED
    ) -> Lensum:
        """Allocate a zeroed record."""
        return cls(nbin, shear_style)

    @classmethod
    def from_line(
        cls, line: str, nbin: int, shear_style: ShearStyle | str | int = ShearStyle.REDUCED
    ) -> Lensum:
        """Build a record from one lensout line.

        Raises:
            LensumFormatError: If the line does not hold exactly one record
        """
        lensum = cls(nbin, shear_style)
        lensum.parse_line(line)
        return lensum

    @property
    def nbin(self) -> int:
        return self._nbin

    @property
    def shear_style(self) -> ShearStyle:
        return self._shear_style

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    @property
    def array_fields(self) -> tuple[str, ...]:
        """Names of the per-bin arrays present, in file order."""
        fields = ("npair",) + SUM_FIELDS
        if self._shear_style.has_sensitivity:
            fields += SENSITIVITY_FIELDS
        return fields

    @property
    def ntokens(self) -> int:
        """Number of tokens in this record's lensout line."""
        return self._shear_style.tokens_per_record(self._nbin)

    def _require_alive(self) -> None:
        if self._destroyed:
            raise LensumStateError(f"lensum {self.index} has been destroyed")

    def add(self, src: Lensum) -> None:
        """Accumulate ``src`` into this record in place.

        Raises:
            SizeMismatchError: If the bin counts differ
            ShearStyleMismatchError: If the shear styles differ
        """
        self._require_alive()
        src._require_alive()
        if src.nbin != self._nbin:
            raise SizeMismatchError(f"cannot add lensum with nbin={src.nbin} to nbin={self._nbin}")
        if src.shear_style is not self._shear_style:
            raise ShearStyleMismatchError(
                f"cannot add {src.shear_style.value} lensum to {self._shear_style.value} lensum"
            )

        self.weight += src.weight
        self.totpairs += src.totpairs
        for name in self.array_fields:
            dest = getattr(self, name)
            dest += getattr(src, name)

    def copy(self) -> Lensum:
        """Return an independent record with identical contents."""
        self._require_alive()
        new = Lensum(self._nbin, self._shear_style, index=self.index)
        new.zindex = self.zindex
        new.weight = self.weight
        new.totpairs = self.totpairs
        for name in self.array_fields:
            getattr(new, name)[:] = getattr(self, name)
        return new

    def clear(self) -> None:
        """Reset the accumulated values; shape and index are kept."""
        self._require_alive()
        self.zindex = -1
        self.weight = 0.0
        self.totpairs = 0
        for name in self.array_fields:
            getattr(self, name).fill(0)

    def parse_line(self, line: str) -> None:
        """Parse one lensout line into this record.

        The record is only modified once the whole line has parsed.

        Raises:
            LensumFormatError: On a wrong token count or unparsable token
        """
        self._require_alive()
        tokens = line.split()
        if len(tokens) != self.ntokens:
            raise LensumFormatError(
                f"expected {self.ntokens} tokens for nbin={self._nbin} "
                f"{self._shear_style.value}, got {len(tokens)}"
            )

        for token in tokens:
            # python accepts digit separators, the format does not
            if "_" in token:
                raise LensumFormatError(f"bad token: {token!r}")

        nbin = self._nbin
        try:
            index = _parse_int64(tokens[0])
            zindex = _parse_int64(tokens[1])
            weight = float(tokens[2])
            totpairs = _parse_int64(tokens[3])
            pos = 4
            arrays = {"npair": [_parse_int64(t) for t in tokens[pos : pos + nbin]]}
            pos += nbin
            for name in self.array_fields[1:]:
                arrays[name] = [float(t) for t in tokens[pos : pos + nbin]]
                pos += nbin
        except OverflowError as e:
            raise LensumFormatError(f"integer out of range: {e}") from e
        except ValueError as e:
            raise LensumFormatError(f"bad token: {e}") from e

        npair = np.array(arrays["npair"], dtype=COUNT_DTYPE)

        self.index = index
        self.zindex = zindex
        self.weight = weight
        self.totpairs = totpairs
        self.npair[:] = npair
        for name in self.array_fields[1:]:
            getattr(self, name)[:] = arrays[name]

    def read(self, stream: IO[str]) -> bool:
        """Read the next line of ``stream`` into this record.

        Returns:
            True if exactly one record was parsed; False at end of stream or
            on a malformed line, leaving the record unchanged
        """
        self._require_alive()
        line = stream.readline()
        if not line:
            return False
        try:
            self.parse_line(line)
        except LensumFormatError as e:
            logger.warning(f"failed to read lensum: {e}")
            return False
        return True

    def to_line(self) -> str:
        """Format the record as one newline-terminated lensout line."""
        self._require_alive()
        parts = [
            str(int(self.index)),
            str(int(self.zindex)),
            _format_float(self.weight),
            str(int(self.totpairs)),
        ]
        parts.extend(str(v) for v in self.npair.tolist())
        for name in self.array_fields[1:]:
            parts.extend(_format_float(v) for v in getattr(self, name).tolist())
        return " ".join(parts) + "\n"

    def write(self, stream: IO[str]) -> None:
        stream.write(self.to_line())

    def mean_radius(self) -> np.ndarray:
        """Mean pair separation per bin, ``rsum / npair``.

        Empty bins give NaN (or Inf if rsum is nonzero).
        """
        self._require_alive()
        with np.errstate(divide="ignore", invalid="ignore"):
            return self.rsum / self.npair

    def format_summary(self) -> list[str]:
        """Human readable summary lines: scalars then one row per bin."""
        self._require_alive()
        lensfit = self._shear_style.has_sensitivity
        lines = [
            f"  zindex:   {self.zindex}",
            f"  weight:   {self.weight:f}",
            f"  totpairs: {self.totpairs}",
            f"  nbin:     {self._nbin}",
        ]
        header = "  bin       npair            meanr           dsum            osum"
        if lensfit:
            header += "           dsensum        osensum"
        lines.append(header)

        meanr = self.mean_radius()
        for i in range(self._nbin):
            row = "  %3d %11d %15.6f %15.6f %15.6f" % (
                i,
                self.npair[i],
                meanr[i],
                self.dsum[i],
                self.osum[i],
            )
            if lensfit:
                row += " %15.6f %15.6f" % (self.dsensum[i], self.osensum[i])
            lines.append(row)
        return lines

    def print_summary(self, log: StructuredLogger | None = None) -> None:
        """Log the summary at INFO level."""
        (log or logger).lines(self.format_summary())

    def destroy(self) -> None:
        """Release the bin arrays. Safe to call more than once."""
        if self._destroyed:
            return
        self._npair = None
        self._rsum = None
        self._wsum = None
        self._dsum = None
        self._osum = None
        self._dsensum = None
        self._osensum = None
        self._destroyed = True

    def __repr__(self) -> str:
        state = ", destroyed" if self._destroyed else ""
        return (
            f"Lensum(index={self.index}, zindex={self.zindex}, nbin={self._nbin}, "
            f"shear_style={self._shear_style.value}, weight={self.weight!r}, "
            f"totpairs={self.totpairs}{state})"
        )


def destroy_lensum(lensum: Lensum | None) -> None:
    """Destroy ``lensum`` if given; always returns None."""
    if lensum is not None:
        lensum.destroy()
    return None


__all__ = [
    "Lensum",
    "destroy_lensum",
    "validate_nbin",
    "FLOAT_FORMAT",
    "SUM_FIELDS",
    "SENSITIVITY_FIELDS",
]
