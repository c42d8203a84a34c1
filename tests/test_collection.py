"""Tests for lensum collections."""

from __future__ import annotations

import io
import logging

import numpy as np
import pytest
from lensum import Lensum, LensumCollection, ShearStyle
from lensum.core.errors import (
    EmptyCollectionError,
    IndexMismatchError,
    IndexOutOfRangeError,
    LensumStateError,
    ShearStyleMismatchError,
    SizeMismatchError,
)
from lensum.records import destroy_collection

NLENS = 5
NBIN = 3


def test_create_assigns_index_and_shape(shear_style):
    lensums = LensumCollection(NLENS, NBIN, shear_style)

    assert len(lensums) == NLENS
    assert lensums.size == NLENS
    for i, lensum in enumerate(lensums):
        assert lensum.index == i
        assert lensum.nbin == NBIN
        assert lensum.shear_style is shear_style
        for name in lensum.array_fields:
            assert getattr(lensum, name).shape == (NBIN,)


def test_create_records_are_independent():
    lensums = LensumCollection(2, NBIN)
    lensums[0].npair[0] = 10
    assert lensums[1].npair[0] == 0


def test_create_logs_shape(caplog):
    with caplog.at_level(logging.INFO, logger="lensum"):
        LensumCollection(4, 7)
    assert "Creating lensums:" in caplog.text
    assert "nlens: 4  nbin: 7" in caplog.text


@pytest.mark.parametrize("n", [-1, 1.5])
def test_create_rejects_bad_size(n):
    with pytest.raises(ValueError):
        LensumCollection(n, NBIN)


def test_empty_collection_allowed():
    lensums = LensumCollection(0, NBIN)
    assert len(lensums) == 0
    assert list(lensums) == []


def test_getitem_bounds():
    lensums = LensumCollection(2, NBIN)
    assert lensums[np.int64(1)].index == 1
    with pytest.raises(IndexOutOfRangeError):
        lensums[2]
    with pytest.raises(IndexOutOfRangeError):
        lensums[-1]
    with pytest.raises(IndexError):
        lensums[5]
    with pytest.raises(TypeError):
        lensums["0"]


def test_sum_matches_repeated_add(shear_style, fill):
    """sum() equals adding each record in turn into a zeroed record."""
    lensums = LensumCollection(NLENS, NBIN, shear_style)
    for lensum in lensums:
        fill(lensum)

    first = lensums[0].copy()

    total = lensums.sum()

    expected = Lensum(NBIN, shear_style)
    for lensum in lensums:
        expected.add(lensum)

    assert total.nbin == NBIN
    assert total.shear_style is shear_style
    assert total.weight == expected.weight
    assert total.totpairs == expected.totpairs
    for name in total.array_fields:
        np.testing.assert_array_equal(getattr(total, name), getattr(expected, name))
    # sum does not touch the elements
    assert lensums[0].weight == first.weight
    np.testing.assert_array_equal(lensums[0].npair, first.npair)


def test_sum_lensfit_scenario():
    lensums = LensumCollection(2, 2, ShearStyle.LENSFIT)
    lensums[0].npair[:] = [1, 2]
    lensums[1].npair[:] = [3, 4]
    lensums[0].dsensum[:] = [0.5, 1.0]
    lensums[1].dsensum[:] = [0.25, 2.0]

    total = lensums.sum()

    np.testing.assert_array_equal(total.npair, [4, 6])
    np.testing.assert_array_equal(total.dsensum, [0.75, 3.0])


def test_sum_empty_raises():
    with pytest.raises(EmptyCollectionError):
        LensumCollection(0, NBIN).sum()


def test_write_all_in_index_order(fill):
    lensums = LensumCollection(3, NBIN)
    for lensum in lensums:
        fill(lensum)
    stream = io.StringIO()

    lensums.write_all(stream)

    lines = stream.getvalue().splitlines()
    assert len(lines) == 3
    assert [int(line.split()[0]) for line in lines] == [0, 1, 2]
    assert lines[1] + "\n" == lensums[1].to_line()


def test_add_collections_elementwise(shear_style, fill):
    first = LensumCollection(3, NBIN, shear_style)
    second = LensumCollection(3, NBIN, shear_style)
    for lensum in list(first) + list(second):
        fill(lensum)
    expected = [lensum.copy() for lensum in first]
    for dest, src in zip(expected, second):
        dest.add(src)

    first.add(second)

    for got, want in zip(first, expected):
        assert got.weight == want.weight
        for name in got.array_fields:
            np.testing.assert_array_equal(getattr(got, name), getattr(want, name))


def test_add_collections_size_mismatch():
    with pytest.raises(SizeMismatchError):
        LensumCollection(2, NBIN).add(LensumCollection(3, NBIN))


def test_add_collections_index_mismatch():
    first = LensumCollection(2, NBIN)
    second = LensumCollection.from_records([Lensum(NBIN, index=1), Lensum(NBIN, index=0)])
    with pytest.raises(IndexMismatchError):
        first.add(second)


def test_from_records_checks_shape():
    with pytest.raises(SizeMismatchError):
        LensumCollection.from_records([Lensum(2), Lensum(3)])
    with pytest.raises(ShearStyleMismatchError):
        LensumCollection.from_records([Lensum(2), Lensum(2, ShearStyle.LENSFIT)])
    with pytest.raises(EmptyCollectionError):
        LensumCollection.from_records([])

    empty = LensumCollection.from_records([], nbin=4, shear_style="lensfit")
    assert empty.nbin == 4
    assert empty.shear_style is ShearStyle.LENSFIT


def test_print_one_and_first_last(caplog):
    lensums = LensumCollection(3, NBIN)
    lensums[2].zindex = 99

    with caplog.at_level(logging.INFO, logger="lensum"):
        lensums.print_first_last()

    messages = [r.getMessage() for r in caplog.records]
    assert "element 0 of lensums:" in messages
    assert "element 2 of lensums:" in messages
    assert "element 1 of lensums:" not in messages
    assert "  zindex:   99" in messages


def test_print_one_out_of_range():
    with pytest.raises(IndexOutOfRangeError):
        LensumCollection(2, NBIN).print_one(2)


def test_print_first_last_empty():
    with pytest.raises(EmptyCollectionError):
        LensumCollection(0, NBIN).print_first_last()


def test_print_sum(caplog):
    lensums = LensumCollection(2, NBIN)
    lensums[0].totpairs = 3
    lensums[1].totpairs = 4

    with caplog.at_level(logging.INFO, logger="lensum"):
        lensums.print_sum()

    assert "  totpairs: 7" in [r.getMessage() for r in caplog.records]
    assert lensums[0].totpairs == 3


def test_destroy_is_idempotent():
    lensums = LensumCollection(2, NBIN, ShearStyle.LENSFIT)
    elements = list(lensums)

    lensums.destroy()
    lensums.destroy()

    assert lensums.destroyed
    assert len(lensums) == 0
    assert all(lensum.destroyed for lensum in elements)
    assert destroy_collection(lensums) is None
    assert destroy_collection(None) is None
    with pytest.raises(LensumStateError):
        lensums.sum()


def test_add_collections_mismatch_leaves_dest_unchanged():
    dest = LensumCollection(3, 2)
    src = LensumCollection(3, 2)
    for lensum in src:
        lensum.npair[:] = [1, 1]
        lensum.weight = 1.0
    src[2].index = 99

    with pytest.raises(IndexMismatchError):
        dest.add(src)

    for lensum in dest:
        assert not lensum.npair.any()
        assert lensum.weight == 0.0


def test_add_collections_style_mismatch_leaves_dest_unchanged():
    dest = LensumCollection(2, NBIN)
    src = LensumCollection(2, NBIN, ShearStyle.LENSFIT)
    src[0].npair[:] = 1

    with pytest.raises(ShearStyleMismatchError):
        dest.add(src)
    assert not dest[0].npair.any()


def test_from_records_owns_copies():
    records = [Lensum(NBIN, index=0), Lensum(NBIN, index=1)]
    first = LensumCollection.from_records(records)
    second = LensumCollection.from_records(records)

    first.destroy()
    records[0].npair[0] = 5

    assert not second[0].destroyed
    assert not records[0].destroyed
    assert second[0].npair[0] == 0
    assert [lensum.index for lensum in second] == [0, 1]
