from __future__ import annotations

import pytest

from kld.core.models import Key
from kld.geom.cut_sheet import cut_sheet_project, reflow_cut_sheet
from kld.geom.rect import Rect


def _keys() -> list[Key]:
    return [
        Key(id="a", x=40.0, y=0.0, width=18.0, height=18.0, rotation=15.0),
        Key(id="b", x=0.0, y=0.0, width=27.0, height=13.5),
        Key(id="c", x=5.0, y=30.0, width=13.5, height=27.0, key_type="iso-enter", rotation=-90.0),
        Key(id="d", x=90.0, y=12.0, width=13.5, height=13.5),
    ]


def test_reflow_keeps_count_and_clears_rotation() -> None:
    out = reflow_cut_sheet(_keys(), 210.0, 6.0, gap_mm=1.0)
    assert len(out) == 4
    assert all(k.rotation == 0.0 for k in out)


def test_reflow_is_row_major_by_position() -> None:
    out = reflow_cut_sheet(_keys(), 210.0, 6.0, gap_mm=1.0)
    assert [k.id for k in out] == ["b", "a", "d", "c"]
    # celda = (27 + 1) x (27 + 1); el primer casillero arranca en el margen
    assert (out[0].x, out[0].y) == (6.0, 6.0)
    assert (out[1].x, out[1].y) == (34.0, 6.0)


def test_reflow_wraps_rows() -> None:
    keys = [Key(id=f"k{i}", x=float(i), y=0.0, width=50.0, height=10.0) for i in range(5)]
    out = reflow_cut_sheet(keys, 120.0, 0.0, gap_mm=0.0)
    # (120 + 0) / 50 = 2 por fila
    assert [(k.x, k.y) for k in out] == [(0.0, 0.0), (50.0, 0.0), (0.0, 10.0), (50.0, 10.0), (0.0, 20.0)]


def test_reflow_never_overlaps() -> None:
    out = reflow_cut_sheet(_keys(), 100.0, 6.0, gap_mm=0.8)
    rects = [Rect(k.x, k.y, k.width, k.height) for k in out]
    for i, a in enumerate(rects):
        for b in rects[i + 1 :]:
            assert not a.overlaps(b)


def test_narrow_page_still_places_one_per_row() -> None:
    out = reflow_cut_sheet(_keys(), 10.0, 6.0, gap_mm=1.0)
    assert len({k.y for k in out}) == 4


def test_source_layout_untouched(make_project) -> None:
    keys = _keys()
    project = make_project(*keys)
    before = project.to_dict()
    clone = cut_sheet_project(project, gap_mm=1.0)
    assert project.to_dict() == before
    assert clone.layout.keys[0] is not keys[1]
    assert clone.layout.name.endswith("(cut sheet)")


def test_empty_layout() -> None:
    assert reflow_cut_sheet([], 210.0, 6.0) == []


def test_gap_from_env(monkeypatch) -> None:
    monkeypatch.setenv("KLD_CUT_SHEET_GAP_MM", "4")
    keys = [Key(id="a", width=10.0, height=10.0), Key(id="b", x=1.0, width=10.0, height=10.0)]
    out = reflow_cut_sheet(keys, 200.0, 0.0)
    assert out[1].x == 14.0


def test_default_gap_is_three_tenths_mm() -> None:
    keys = [Key(id="a", width=18.0, height=18.0), Key(id="b", x=1.0, width=18.0, height=18.0)]
    out = reflow_cut_sheet(keys, 210.0, 6.0)
    assert out[1].x == pytest.approx(6.0 + 18.0 + 0.3)
    assert out[1].y == 6.0
