from __future__ import annotations

import copy

import pytest

from kld.core.models import Key
from kld.svg.bbox_check import check_svg_against_project, expected_outline_bbox
from kld.svg.exporter import export_project_svg
from kld.utils.errors import KldValidationError


def _keys() -> list[Key]:
    return [
        Key(id="plain", x=0.0, y=0.0, width=18.0, height=18.0),
        Key(id="sharp", x=30.0, y=0.0, width=18.0, height=13.5, rotation=20.0, corner_radius=0.0),
        Key(id="round", x=60.0, y=0.0, width=27.0, height=13.5, rotation=-35.0),
        Key(id="iso", x=0.0, y=40.0, width=20.25, height=27.0, key_type="iso-enter", rotation=90.0),
        Key(id="big", x=40.0, y=40.0, width=33.75, height=27.0, key_type="big-enter"),
    ]


def test_exported_svg_matches_model(make_project) -> None:
    project = make_project(*_keys())
    svg = export_project_svg(project, images={})
    assert check_svg_against_project(svg, project, tolerance_mm=0.05) == []


def test_moved_key_is_reported(make_project) -> None:
    project = make_project(*_keys())
    svg = export_project_svg(project, images={})
    moved = copy.deepcopy(project)
    moved.layout.keys[0].x += 1.0
    out = check_svg_against_project(svg, moved, tolerance_mm=0.05)
    assert [m.key_id for m in out] == ["plain"]
    assert "esperado" in out[0].describe()


def test_missing_outline_is_reported(make_project) -> None:
    project = make_project(Key(id="a", width=10.0, height=10.0))
    svg = export_project_svg(make_project(), images={})
    out = check_svg_against_project(svg, project)
    assert out[0].actual is None
    assert out[0].describe() == "a: contorno ausente"


def test_unrotated_rounded_rect_bbox_is_key_rect() -> None:
    bb = expected_outline_bbox(Key(id="k", x=1.0, y=2.0, width=18.0, height=18.0), 6.0)
    assert (bb.x, bb.y, bb.width, bb.height) == (7.0, 8.0, 18.0, 18.0)


def test_garbage_is_validation_error(make_project) -> None:
    with pytest.raises(KldValidationError):
        check_svg_against_project("<svg", make_project())
