"""Lensout text files: one lensum per line, shape given out of band.

Split runs over the same lens sample write one file each; ``reduce_files``
adds them lens by lens into a single collection.
"""

from __future__ import annotations

import contextlib
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import IO

from ..core.errors import LensumFormatError
from ..core.logging import get_logger
from ..core.types import ShearStyle, TextSource
from ..records import Lensum, LensumCollection

logger = get_logger(__name__)


@contextlib.contextmanager
def _open_text(source: TextSource, mode: str = "r") -> Iterator[IO[str]]:
    """Yield a text stream for a path, or the stream itself if already open."""
    if hasattr(source, "read") or hasattr(source, "write"):
        yield source  # type: ignore[misc]
        return

    path = Path(source)  # type: ignore[arg-type]
    if "r" in mode and not path.exists():
        raise FileNotFoundError(f"Lensout file not found: {path}")
    if "w" in mode:
        path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, mode, encoding="utf-8") as f:
        yield f


def iter_lensums(
    source: TextSource,
    nbin: int,
    shear_style: ShearStyle | str | int = ShearStyle.REDUCED,
) -> Iterator[Lensum]:
    """Yield one lensum per non-blank line of ``source``.

    Raises:
        LensumFormatError: For the first malformed line, with its line number
    """
    with _open_text(source) as stream:
        for lineno, line in enumerate(stream, start=1):
            if not line.strip():
                continue
            try:
                yield Lensum.from_line(line, nbin, shear_style)
            except LensumFormatError as e:
                raise LensumFormatError(str(e), lineno=lineno) from e


def read_lensums(
    source: TextSource,
    nbin: int,
    shear_style: ShearStyle | str | int = ShearStyle.REDUCED,
) -> LensumCollection:
    """Read a whole lensout file into a collection."""
    collection = LensumCollection.from_records(
        iter_lensums(source, nbin, shear_style), nbin=nbin, shear_style=shear_style
    )
    logger.debug(
        f"read {len(collection)} lensums",
        {"nlens": len(collection), "nbin": collection.nbin},
    )
    return collection


def write_lensums(collection: LensumCollection, dest: TextSource) -> None:
    """Write a collection to a path or open text stream."""
    with _open_text(dest, "w") as stream:
        collection.write_all(stream)


def reduce_files(
    paths: Sequence[TextSource],
    nbin: int,
    shear_style: ShearStyle | str | int = ShearStyle.REDUCED,
) -> LensumCollection:
    """Add the lensout files of several splits into one collection.

    Every file must list the same lenses in the same order.

    Raises:
        ValueError: If no paths are given
        SizeMismatchError: If the files hold different numbers of lenses
        IndexMismatchError: If lens indices disagree between files
    """
    if not paths:
        raise ValueError("No lensout files to reduce")

    logger.info(f"Combining {len(paths)} splits")
    data = read_lensums(paths[0], nbin, shear_style)
    for path in paths[1:]:
        tdata = read_lensums(path, nbin, shear_style)
        logger.info("summing", {"path": str(path)})
        try:
            data.add(tdata)
        finally:
            tdata.destroy()
    return data


__all__ = [
    "iter_lensums",
    "read_lensums",
    "reduce_files",
    "write_lensums",
]
