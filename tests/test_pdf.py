from __future__ import annotations

import io
import math
import threading
import xml.etree.ElementTree as ET

import pytest

from pypdf import PdfReader

from kld.core.models import Key, TextElement
from kld.geom.units import mm_to_points
from kld.render.pdf import export_project_pdf, pdf_font_name, write_project_pdf
from kld.svg.exporter import SVG_NS, export_project_svg
from kld.utils.errors import KldCancelled


def _text_positions(pdf: bytes) -> dict[str, tuple[float, float]]:
    page = PdfReader(io.BytesIO(pdf)).pages[0]
    found: dict[str, tuple[float, float]] = {}

    def visitor(text, cm, tm, font_dict, font_size):
        t = text.strip()
        if not t:
            return
        x = tm[4] * cm[0] + tm[5] * cm[2] + cm[4]
        y = tm[4] * cm[1] + tm[5] * cm[3] + cm[5]
        found[t] = (x, y)

    page.extract_text(visitor_text=visitor)
    return found


def test_page_size_matches_paper(make_project) -> None:
    pdf = export_project_pdf(make_project(size="A3", orientation="landscape"), images={})
    box = PdfReader(io.BytesIO(pdf)).pages[0].mediabox
    assert float(box.width) == pytest.approx(mm_to_points(420.0), abs=0.01)
    assert float(box.height) == pytest.approx(mm_to_points(297.0), abs=0.01)


def test_metadata(make_project) -> None:
    reader = PdfReader(io.BytesIO(export_project_pdf(make_project(), images={})))
    assert reader.metadata.title == "Test"
    assert reader.metadata.creator.startswith("KeycapLabelDesigner")


def test_text_baseline_matches_svg(make_project, text_key) -> None:
    project = make_project(text_key)
    pdf_x, pdf_y = _text_positions(export_project_pdf(project, images={}))["Q"]

    root = ET.fromstring(export_project_svg(project, images={}).split("\n", 1)[1])
    svg_text = root.find(f"{{{SVG_NS}}}g/{{{SVG_NS}}}text")
    svg_x, svg_y = float(svg_text.get("x")), float(svg_text.get("y"))

    page_h = 297.0
    assert page_h - pdf_y * 25.4 / 72.0 == pytest.approx(svg_y, abs=0.05)
    # drawCentredString corre el origen por medio ancho: el centro coincide con x del SVG
    assert pdf_x * 25.4 / 72.0 < svg_x


@pytest.mark.parametrize("angle", [30.0, -45.0, 90.0, 187.5])
def test_rotated_text_lands_where_svg_puts_it(make_project, angle: float) -> None:
    key = Key(
        id="r",
        x=10.0,
        y=20.0,
        width=18.0,
        height=18.0,
        rotation=angle,
        elements=[TextElement(id="t", text="Q", padding=2.0, align_x="left")],
    )
    project = make_project(key)
    pdf_x, pdf_y = _text_positions(export_project_pdf(project, images={}))["Q"]

    root = ET.fromstring(export_project_svg(project, images={}).split("\n", 1)[1])
    svg_text = root.find(f"{{{SVG_NS}}}g/{{{SVG_NS}}}text")
    assert svg_text.get("text-anchor") == "start"
    # rotate(θ cx cy) del <g> aplicado al ancla (y hacia abajo)
    cx, cy = 6.0 + 10.0 + 9.0, 6.0 + 20.0 + 9.0
    dx, dy = float(svg_text.get("x")) - cx, float(svg_text.get("y")) - cy
    a = math.radians(angle)
    svg_x = cx + dx * math.cos(a) - dy * math.sin(a)
    svg_y = cy + dx * math.sin(a) + dy * math.cos(a)

    assert pdf_x * 25.4 / 72.0 == pytest.approx(svg_x, abs=0.02)
    assert 297.0 - pdf_y * 25.4 / 72.0 == pytest.approx(svg_y, abs=0.02)


def test_reference_bar_label(make_project) -> None:
    with_bar = _text_positions(export_project_pdf(make_project(), include_ruler=True, images={}))
    assert "50mm test bar" in with_bar
    x, y = with_bar["50mm test bar"]
    assert x == pytest.approx(mm_to_points(6.0), abs=0.01)
    assert y == pytest.approx(mm_to_points(12.0), abs=0.01)
    assert "50mm test bar" not in _text_positions(export_project_pdf(make_project(), images={}))


def test_rotated_and_shaped_keys_render(make_project) -> None:
    keys = [
        Key(id="a", width=18.0, height=18.0, rotation=15.0, background="#ff000080"),
        Key(id="b", x=30.0, width=20.25, height=27.0, key_type="iso-enter", elements=[TextElement(id="t", text="Enter")]),
        Key(id="c", x=60.0, width=33.75, height=27.0, key_type="big-enter", corner_radius=0.0),
    ]
    pdf = export_project_pdf(make_project(*keys), images={})
    assert pdf.startswith(b"%PDF")
    assert "Enter" in _text_positions(pdf)


def test_cancel_before_drawing(make_project, text_key) -> None:
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(KldCancelled):
        export_project_pdf(make_project(text_key), images={}, cancel=cancel)


def test_write_forces_suffix(tmp_path, make_project) -> None:
    out = write_project_pdf(make_project(), tmp_path / "layout", images={})
    assert out.name == "layout.pdf"
    assert out.read_bytes().startswith(b"%PDF")


@pytest.mark.parametrize(
    "family,weight,expected",
    [
        ("Inter", 600, "Helvetica-Bold"),
        ("Inter", 400, "Helvetica"),
        ("JetBrains Mono", 400, "Courier"),
        ("Times New Roman", 700, "Times-Bold"),
        ("Noto Sans", 400, "Helvetica"),
    ],
)
def test_font_mapping(family: str, weight: int, expected: str) -> None:
    assert pdf_font_name(family, weight) == expected
