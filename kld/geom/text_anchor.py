# File: kld/geom/text_anchor.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.1.2
# Status: stable
# Date: 2026-09-08
# Purpose: Ancla de texto (x + línea base) dentro del rect del elemento, común a PDF/SVG/lienzo.
# Notes: Sin métricas reales de fuente: ascenso fijo 0.8 em.
from __future__ import annotations

from dataclasses import dataclass

from kld.geom.rect import Rect
from kld.geom.units import points_to_mm

ASCENT_RATIO = 0.8


@dataclass(frozen=True)
class TextAnchor:
    x: float
    baseline: float
    anchor: str  # start | middle | end
    em: float  # tamaño de fuente en mm


def text_anchor(rect: Rect, font_size_pt: float, align_x: str = "center", align_y: str = "center") -> TextAnchor:
    em = points_to_mm(font_size_pt)
    if align_x == "left":
        x, anchor = rect.x, "start"
    elif align_x == "right":
        x, anchor = rect.right, "end"
    else:
        x, anchor = rect.x + rect.width / 2.0, "middle"

    ascent = ASCENT_RATIO * em
    if align_y == "top":
        baseline = rect.y + ascent
    elif align_y == "bottom":
        baseline = rect.bottom - em + ascent
    else:
        baseline = rect.y + (rect.height - em) / 2.0 + ascent
    return TextAnchor(x=x, baseline=baseline, anchor=anchor, em=em)
