from __future__ import annotations

import pytest

from kld.geom.rect import Rect
from kld.geom.text_anchor import text_anchor

RECT = Rect(0.0, 0.0, 14.0, 14.0)


def test_em_is_font_size_in_mm() -> None:
    assert text_anchor(RECT, 72.0).em == pytest.approx(25.4)


@pytest.mark.parametrize(
    "align_y,baseline",
    [("top", 2.032), ("center", 7.762), ("bottom", 13.492)],
)
def test_vertical_alignment(align_y: str, baseline: float) -> None:
    a = text_anchor(RECT, 7.2, align_y=align_y)
    assert a.baseline == pytest.approx(baseline)


@pytest.mark.parametrize(
    "align_x,x,anchor",
    [("left", 0.0, "start"), ("center", 7.0, "middle"), ("right", 14.0, "end")],
)
def test_horizontal_alignment(align_x: str, x: float, anchor: str) -> None:
    a = text_anchor(RECT, 11.0, align_x=align_x)
    assert a.x == pytest.approx(x)
    assert a.anchor == anchor
