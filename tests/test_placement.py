from __future__ import annotations

import logging

import pytest

from kld.core.models import Key
from kld.geom.placement import find_free_slot
from kld.utils.errors import KldGeometryError


def test_empty_layout_uses_origin() -> None:
    res = find_free_slot([], 18.0, 18.0, gap_mm=2.0)
    assert (res.x, res.y, res.found) == (0.0, 0.0, True)


def test_skips_occupied_cells() -> None:
    existing = [
        Key(id="a", x=0.0, y=0.0, width=18.0, height=18.0),
        Key(id="b", x=20.0, y=0.0, width=18.0, height=18.0),
    ]
    res = find_free_slot(existing, 18.0, 18.0, gap_mm=2.0)
    assert (res.x, res.y) == (40.0, 0.0)
    assert res.found


def test_moves_to_next_row_when_row_full() -> None:
    existing = [Key(id="wide", x=0.0, y=0.0, width=100.0, height=10.0)]
    res = find_free_slot(existing, 10.0, 10.0, gap_mm=2.0, max_extent_mm=(100.0, 100.0))
    assert (res.x, res.y) == (0.0, 12.0)


def test_fallback_when_nothing_fits(caplog) -> None:
    existing = [Key(id="big", x=0.0, y=0.0, width=200.0, height=200.0)]
    with caplog.at_level(logging.WARNING, logger="kld.geom.placement"):
        res = find_free_slot(existing, 10.0, 10.0, gap_mm=2.0, max_extent_mm=(100.0, 100.0))
    assert (res.x, res.y, res.found) == (0.0, 0.0, False)
    assert "Sin hueco libre" in caplog.text


def test_invalid_size_rejected() -> None:
    with pytest.raises(KldGeometryError):
        find_free_slot([], 0.0, 10.0)
