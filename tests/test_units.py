from __future__ import annotations

import pytest

from kld.geom.units import (
    PAPER_SIZES_MM,
    mm_to_pixels,
    mm_to_points,
    paper_size_mm,
    pixels_to_mm,
    points_to_mm,
)


def test_inch_maps_to_72_points() -> None:
    assert mm_to_points(25.4) == pytest.approx(72.0)
    assert points_to_mm(72.0) == pytest.approx(25.4)


def test_pixels_follow_dpi_and_zoom() -> None:
    assert mm_to_pixels(25.4, 96.0) == pytest.approx(96.0)
    assert mm_to_pixels(25.4, 96.0, zoom=2.0) == pytest.approx(192.0)
    assert pixels_to_mm(192.0, 96.0, zoom=2.0) == pytest.approx(25.4)


def test_no_rounding_on_small_values() -> None:
    assert mm_to_points(0.01) == pytest.approx(0.01 * 72.0 / 25.4, rel=1e-12)


@pytest.mark.parametrize("size", sorted(PAPER_SIZES_MM))
def test_landscape_swaps_dimensions(size: str) -> None:
    w, h = paper_size_mm(size, "portrait")
    assert paper_size_mm(size, "landscape") == (h, w)
    assert w < h


def test_a4_dimensions() -> None:
    assert paper_size_mm("A4") == (210.0, 297.0)
