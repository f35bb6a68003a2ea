from __future__ import annotations

from kld.core import templates
from kld.geom.rect import Rect


def _overlaps(keys) -> bool:
    rects = [Rect(k.x, k.y, k.width, k.height) for k in keys]
    return any(a.overlaps(b) for i, a in enumerate(rects) for b in rects[i + 1 :])


def test_grid_positions() -> None:
    keys = templates.build_grid_template(2, 2, 10.0, 1.0)
    assert [(k.x, k.y) for k in keys] == [(0.0, 0.0), (11.0, 0.0), (0.0, 11.0), (11.0, 11.0)]


def test_ansi60_does_not_overlap() -> None:
    assert not _overlaps(templates.build_ansi60_template())


def test_ansi60_key_count() -> None:
    assert len(templates.build_ansi60_template()) == 61


def test_iso_layouts_carry_iso_enter() -> None:
    assert any(k.key_type == "iso-enter" for k in templates.build_iso105_template())
    assert any(k.key_type == "iso-enter" for k in templates.build_iso60_template())


def test_cheapino_is_mirrored() -> None:
    keys = templates.build_cheapino_template(297.0)
    half = len(keys) // 2
    left, right = keys[:half], keys[half:]
    axis = {round((l.x + l.width + r.x) / 2.0, 6) for l, r in zip(left, right)}
    assert len(axis) == 1
    assert [r.rotation for r in right] == [-l.rotation if l.rotation else 0.0 for l in left]


def test_ids_are_unique() -> None:
    keys = templates.build_ansi104_template()
    assert len({k.id for k in keys}) == len(keys)


def test_labels() -> None:
    assert templates.template_label("grid", 3, 4) == "3x4 grid"
    assert templates.template_label("iso105") == "ISO 105"
