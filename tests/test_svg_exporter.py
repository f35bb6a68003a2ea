from __future__ import annotations

import xml.etree.ElementTree as ET

import pytest

from kld.core.models import ImageElement, Key, ShapeElement, TextElement
from kld.geom.text_anchor import ASCENT_RATIO
from kld.geom.units import points_to_mm
from kld.svg.exporter import SVG_NS, export_project_svg, fmt, write_project_svg
from kld.render.images import DecodedImage

NS = {"svg": SVG_NS}


def _parse(text: str) -> ET.Element:
    return ET.fromstring(text.split("\n", 1)[1])


def test_fmt_trims_zeros() -> None:
    assert fmt(1.0) == "1"
    assert fmt(0.25) == "0.25"
    assert fmt(-0.00001) == "0"
    assert fmt(1.23456) == "1.2346"


def test_document_size_is_paper_in_mm(make_project) -> None:
    root = _parse(export_project_svg(make_project(orientation="landscape"), images={}))
    assert root.get("width") == "297mm"
    assert root.get("height") == "210mm"
    assert root.get("viewBox") == "0 0 297 210"


def test_key_group_and_outline(make_project, text_key) -> None:
    root = _parse(export_project_svg(make_project(text_key), images={}))
    g = root.find("svg:g", NS)
    assert g.get("id") == "k1"
    assert g.get("transform") is None
    rect = g.find("svg:rect", NS)
    assert rect.get("id") == "k1-outline"
    assert (rect.get("x"), rect.get("y"), rect.get("width")) == ("6", "6", "18")
    assert rect.get("fill") == "none"
    assert rect.get("stroke") == "#000"


def test_rotation_about_key_center(make_project) -> None:
    key = Key(id="r", x=10.0, y=20.0, width=18.0, height=18.0, rotation=30.0)
    root = _parse(export_project_svg(make_project(key), images={}))
    assert root.find("svg:g", NS).get("transform") == "rotate(30 25 35)"


def test_non_rect_outline_is_path(make_project) -> None:
    key = Key(id="e", width=20.25, height=27.0, key_type="iso-enter")
    root = _parse(export_project_svg(make_project(key), images={}))
    path = root.find("svg:g/svg:path", NS)
    assert path.get("id") == "e-outline"
    assert path.get("d").startswith("M 6 6 L 26.25 6")
    assert path.get("d").endswith("Z")


def test_text_baseline_and_anchor(make_project, text_key) -> None:
    root = _parse(export_project_svg(make_project(text_key), images={}))
    text = root.find("svg:g/svg:text", NS)
    em = points_to_mm(11.0)
    baseline = 6.0 + 2.0 + (14.0 - em) / 2.0 + ASCENT_RATIO * em
    assert float(text.get("y")) == pytest.approx(baseline, abs=1e-4)
    assert float(text.get("x")) == pytest.approx(15.0)
    assert text.get("text-anchor") == "middle"
    assert text.text == "Q"


def test_elements_follow_z_order(make_project) -> None:
    key = Key(
        id="z",
        width=18.0,
        height=18.0,
        elements=[
            TextElement(id="top", text="A", z_index=5),
            ShapeElement(id="bg", background="#123456", z_index=0, opacity=0.5),
        ],
    )
    root = _parse(export_project_svg(make_project(key), images={}))
    children = [c.tag.split("}")[1] for c in root.find("svg:g", NS)]
    assert children == ["rect", "rect", "text"]
    shape = root.find("svg:g", NS)[1]
    assert shape.get("fill") == "#123456"
    assert shape.get("opacity") == "0.5"


def test_alpha_colors_split_into_fill_opacity(make_project) -> None:
    key = Key(
        id="a",
        width=18.0,
        height=18.0,
        background="#ff000080",
        elements=[
            ShapeElement(id="bg", background="#0000ff40", z_index=0),
            TextElement(id="t", text="A", color="#fff", z_index=1),
        ],
    )
    root = _parse(export_project_svg(make_project(key), images={}))
    outline, shape, text = list(root.find("svg:g", NS))
    assert outline.get("fill") == "#ff0000"
    assert float(outline.get("fill-opacity")) == pytest.approx(128 / 255, abs=1e-4)
    assert shape.get("fill") == "#0000ff"
    assert float(shape.get("fill-opacity")) == pytest.approx(64 / 255, abs=1e-4)
    assert shape.get("opacity") is None
    assert text.get("fill") == "#ffffff"
    assert text.get("fill-opacity") is None


def test_image_embedded_with_fit_and_clip(make_project) -> None:
    ref = "data:image/png;base64,AAAA"
    key = Key(id="i", width=18.0, height=18.0, padding=0.0, elements=[ImageElement(id="img", data_url=ref, fit="cover")])
    decoded = DecodedImage("image/png", b"\x89PNG-fake", 200, 100)
    root = _parse(export_project_svg(make_project(key), images={ref: decoded}))
    image = root.find("svg:g/svg:image", NS)
    # cover de 2:1 en 18x18 -> 36x18 centrado
    assert (image.get("x"), image.get("y"), image.get("width"), image.get("height")) == ("-3", "6", "36", "18")
    assert image.get("href").startswith("data:image/png;base64,")
    assert image.get("clip-path") == "url(#img-clip)"
    assert root.find("svg:g/svg:defs/svg:clipPath", NS).get("id") == "img-clip"


def test_undecodable_image_is_skipped(make_project) -> None:
    key = Key(id="i", width=18.0, height=18.0, elements=[ImageElement(id="img", data_url="data:image/png;base64,AAAA")])
    root = _parse(export_project_svg(make_project(key), images={}))
    assert root.find("svg:g/svg:image", NS) is None


def test_write_forces_suffix(tmp_path, make_project) -> None:
    out = write_project_svg(make_project(), tmp_path / "out.txt", images={})
    assert out.name == "out.svg"
    assert out.read_text(encoding="utf-8").startswith("<?xml")
