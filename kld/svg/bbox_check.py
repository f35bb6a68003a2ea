# File: kld/svg/bbox_check.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.1.3
# Status: stable
# Date: 2026-09-27
# Purpose: Verificación del SVG exportado: bbox de cada contorno (svgelements) vs geometría del modelo.
# Notes:
# - ppi=25.4 => 1 unidad de usuario = 1 mm (mismo viewBox que el export).
# - Rect con esquinas redondeadas: bbox esperado = rect interior rotado + radio.
from __future__ import annotations

import io

from dataclasses import dataclass
from typing import Optional

from svgelements import SVG

from kld.core.models import Key, Project
from kld.geom.rect import Rect, bounding_rect
from kld.geom.rotation import rotate_points
from kld.render.scene import key_page_origin, page_bbox
from kld.utils.errors import KldValidationError
from kld.utils.log import get_logger

log = get_logger(__name__)

MM_PPI = 25.4
DEFAULT_TOLERANCE_MM = 0.01


@dataclass(frozen=True)
class BBoxMismatch:
    key_id: str
    expected: Rect
    actual: Optional[Rect]  # None = contorno ausente en el SVG

    def describe(self) -> str:
        if self.actual is None:
            return f"{self.key_id}: contorno ausente"
        e, a = self.expected, self.actual
        return (
            f"{self.key_id}: esperado ({e.x:.3f}, {e.y:.3f}, {e.width:.3f}x{e.height:.3f}) "
            f"vs SVG ({a.x:.3f}, {a.y:.3f}, {a.width:.3f}x{a.height:.3f})"
        )


def expected_outline_bbox(key: Key, margin_mm: float) -> Rect:
    """bbox en mm de página del contorno tal como lo dibuja el export (rx incluido)."""
    r = min(key.corner_radius, key.width / 2.0, key.height / 2.0)
    if key.key_type != "rect" or r <= 0 or not key.rotation:
        return page_bbox(key, margin_mm)
    ox, oy = key_page_origin(key, margin_mm)
    inner = Rect(r, r, key.width - 2 * r, key.height - 2 * r)
    pts = rotate_points(inner.corners(), key.width, key.height, key.rotation)
    return bounding_rect([(ox + x, oy + y) for x, y in pts]).expanded(r)


def parse_svg(svg_text: str) -> SVG:
    try:
        return SVG.parse(io.BytesIO(svg_text.encode("utf-8")), reify=True, ppi=MM_PPI)
    except Exception as e:  # svgelements propaga errores de ElementTree/valores
        raise KldValidationError(f"SVG ilegible: {e}") from e


def _close(a: Rect, b: Rect, tol: float) -> bool:
    return (
        abs(a.x - b.x) <= tol
        and abs(a.y - b.y) <= tol
        and abs(a.right - b.right) <= tol
        and abs(a.bottom - b.bottom) <= tol
    )


def check_svg_against_project(
    svg_text: str,
    project: Project,
    *,
    tolerance_mm: float = DEFAULT_TOLERANCE_MM,
) -> list[BBoxMismatch]:
    """Lista de teclas cuyo contorno en el SVG no coincide con el modelo (vacía = OK)."""
    svg = parse_svg(svg_text)
    margin = project.paper.margin_mm
    out: list[BBoxMismatch] = []
    for key in project.layout.keys:
        expected = expected_outline_bbox(key, margin)
        node = svg.get_element_by_id(f"{key.id}-outline")
        bb = node.bbox() if node is not None else None
        if bb is None:
            out.append(BBoxMismatch(key.id, expected, None))
            continue
        x0, y0, x1, y1 = bb
        actual = Rect(x0, y0, x1 - x0, y1 - y0)
        if not _close(expected, actual, tolerance_mm):
            out.append(BBoxMismatch(key.id, expected, actual))
    if out:
        log.warning("SVG con %d contornos fuera de tolerancia", len(out))
    return out
