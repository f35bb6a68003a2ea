# File: kld/render/scene.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.3.0
# Status: stable
# Date: 2026-09-16
# Purpose: Plan de dibujo por tecla (contorno, relleno, elementos ordenados y sus rects) compartido por los 3 renderers.
# Notes: Todo en mm locales a la tecla, sin rotar. Los renderers solo convierten con su CoordinatePolicy.
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Union

from kld.core.models import ImageElement, Key, KeyElement, Project, ShapeElement, TextElement
from kld.geom.element_box import place_element
from kld.geom.image_fit import resolve_image_fit
from kld.geom.outline import key_outline
from kld.geom.rect import Rect, bounding_rect
from kld.geom.rotation import Point, rotate_points
from kld.geom.text_anchor import TextAnchor, text_anchor
from kld.core.settings import env_float
from kld.core.version import OUTLINE_STROKE_MM
from kld.utils.errors import KldValidationError


@dataclass(frozen=True)
class TextPlan:
    element: TextElement
    rect: Rect
    anchor: TextAnchor


@dataclass(frozen=True)
class ImagePlan:
    element: ImageElement
    rect: Rect  # área disponible (clip)


@dataclass(frozen=True)
class ShapePlan:
    element: ShapeElement
    rect: Rect


ElementPlan = Union[TextPlan, ImagePlan, ShapePlan]


@dataclass(frozen=True)
class KeyPlan:
    key: Key
    outline: list[Point]
    fill: Optional[str]
    elements: list[ElementPlan]

    @property
    def is_rect(self) -> bool:
        return self.key.key_type == "rect"


def sorted_elements(elements: list[KeyElement]) -> list[KeyElement]:
    # sorted() es estable: empates conservan el orden del documento
    return sorted(elements, key=lambda e: e.z_index)


def plan_element(element: KeyElement, key: Key) -> Optional[ElementPlan]:
    """Plan del elemento o None si su rect queda degenerado (sin salida visual)."""
    rect = place_element(element, key)
    if rect.is_empty:
        return None
    if isinstance(element, TextElement):
        anchor = text_anchor(rect, element.font_size, element.align_x, element.align_y)
        return TextPlan(element, rect, anchor)
    if isinstance(element, ImageElement):
        return ImagePlan(element, rect)
    if isinstance(element, ShapeElement):
        return ShapePlan(element, rect)
    raise KldValidationError(f"Tipo de elemento no soportado: {type(element).__name__}")


def plan_key(key: Key) -> KeyPlan:
    plans: list[ElementPlan] = []
    for el in sorted_elements(key.elements):
        p = plan_element(el, key)
        if p is not None:
            plans.append(p)
    return KeyPlan(
        key=key,
        outline=key_outline(key.key_type, key.width, key.height),
        fill=key.background if key.has_fill() else None,
        elements=plans,
    )


def plan_project(project: Project) -> Iterator[KeyPlan]:
    """Planes en orden del layout."""
    for key in project.layout.keys:
        yield plan_key(key)


def image_draw_rect(plan: ImagePlan, natural_width: float, natural_height: float) -> Rect:
    el = plan.element
    return resolve_image_fit(plan.rect, natural_width, natural_height, el.fit, el.align_x, el.align_y)


def key_page_origin(key: Key, margin_mm: float) -> Point:
    """Esquina sin rotar de la tecla en mm de página (el margen se suma al layout)."""
    return (float(margin_mm) + key.x, float(margin_mm) + key.y)


def page_outline(key: Key, margin_mm: float) -> list[Point]:
    """Contorno rotado en mm de página (modelo y hacia abajo)."""
    ox, oy = key_page_origin(key, margin_mm)
    pts = rotate_points(key_outline(key.key_type, key.width, key.height), key.width, key.height, key.rotation)
    return [(ox + x, oy + y) for x, y in pts]


def page_bbox(key: Key, margin_mm: float) -> Rect:
    return bounding_rect(page_outline(key, margin_mm))


def outline_stroke_mm() -> float:
    return env_float("KLD_OUTLINE_STROKE_MM", OUTLINE_STROKE_MM, min_value=0.01, max_value=5.0)


def parse_hex_color(color: str) -> tuple[float, float, float, float]:
    """'#rgb' | '#rrggbb' | '#rrggbbaa' -> (r, g, b, a) en 0..1. 'transparent' -> alfa 0."""
    s = (color or "").strip().lstrip("#")
    if not s or s.lower() == "transparent":
        return (0.0, 0.0, 0.0, 0.0)
    if len(s) == 3:
        s = "".join(ch * 2 for ch in s)
    if len(s) not in (6, 8):
        raise KldValidationError(f"Color inválido: {color!r}")
    r, g, b = (int(s[i : i + 2], 16) / 255.0 for i in (0, 2, 4))
    a = int(s[6:8], 16) / 255.0 if len(s) == 8 else 1.0
    return (r, g, b, a)
