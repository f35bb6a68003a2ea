# File: kld/svg/exporter.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.3.0
# Status: stable
# Date: 2026-09-24
# Purpose: Export SVG en mm: un <g> por tecla rotado sobre su centro, contorno + elementos como primitivas nativas.
# Notes:
# - viewBox = hoja en mm (1 unidad = 1 mm), origen arriba-izquierda; la rotación del modelo pasa tal cual.
# - El contorno lleva id "<key>-outline" (lo usa kld.svg.bbox_check).
from __future__ import annotations

import threading

from pathlib import Path
from typing import Mapping, Optional
from xml.etree.ElementTree import Element, SubElement, tostring

from kld.core.models import Project
from kld.render.conventions import svg_policy
from kld.render.images import DecodedImage, resolve_images
from kld.render.scene import (
    ImagePlan,
    KeyPlan,
    ShapePlan,
    TextPlan,
    image_draw_rect,
    key_page_origin,
    outline_stroke_mm,
    parse_hex_color,
    plan_key,
)
from kld.geom.rect import Rect
from kld.utils.errors import KldCancelled, KldIOError
from kld.utils.log import get_logger

log = get_logger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'


def fmt(v: float) -> str:
    """Número compacto para atributos (4 decimales, sin ceros de cola)."""
    s = f"{float(v):.4f}".rstrip("0").rstrip(".")
    return "0" if s in ("", "-0") else s


def _fill(color: Optional[str]) -> dict[str, str]:
    """fill + fill-opacity: SVG 1.1 no acepta #rrggbbaa, el alfa va aparte."""
    if not color or color.strip().lower() == "transparent":
        return {"fill": "none"}
    r, g, b, a = parse_hex_color(color)
    out = {"fill": "#{:02x}{:02x}{:02x}".format(*(round(c * 255) for c in (r, g, b)))}
    if a < 1.0:
        out["fill-opacity"] = fmt(a)
    return out


class _SvgBuilder:
    def __init__(self, root: Element, images: Mapping[str, DecodedImage]) -> None:
        self.root = root
        self.images = images
        self.stroke = outline_stroke_mm()

    def add_key(self, plan: KeyPlan, ox: float, oy: float, center: tuple[float, float], angle: float) -> None:
        key = plan.key
        attrs = {"id": key.id}
        if angle:
            attrs["transform"] = f"rotate({fmt(angle)} {fmt(center[0])} {fmt(center[1])})"
        g = SubElement(self.root, "g", attrs)
        self._outline(g, plan, ox, oy)
        for ep in plan.elements:
            if isinstance(ep, ShapePlan):
                self._shape(g, ep, ox, oy)
            elif isinstance(ep, TextPlan):
                self._text(g, ep, ox, oy)
            elif isinstance(ep, ImagePlan):
                self._image(g, ep, ox, oy)
            else:
                raise TypeError(f"Elemento no soportado en SVG: {type(ep).__name__}")

    def _outline(self, g: Element, plan: KeyPlan, ox: float, oy: float) -> None:
        key = plan.key
        common = {
            "id": f"{key.id}-outline",
            **_fill(plan.fill),
            "stroke": "#000",
            "stroke-width": fmt(self.stroke),
        }
        if plan.is_rect:
            SubElement(
                g,
                "rect",
                {
                    **common,
                    "x": fmt(ox),
                    "y": fmt(oy),
                    "width": fmt(key.width),
                    "height": fmt(key.height),
                    "rx": fmt(key.corner_radius),
                },
            )
            return
        d = " ".join(
            f"{'M' if i == 0 else 'L'} {fmt(ox + x)} {fmt(oy + y)}" for i, (x, y) in enumerate(plan.outline)
        )
        SubElement(g, "path", {**common, "d": f"{d} Z"})

    @staticmethod
    def _box(rect: Rect, ox: float, oy: float) -> dict[str, str]:
        return {
            "x": fmt(ox + rect.x),
            "y": fmt(oy + rect.y),
            "width": fmt(rect.width),
            "height": fmt(rect.height),
        }

    def _shape(self, g: Element, ep: ShapePlan, ox: float, oy: float) -> None:
        el = ep.element
        attrs = {**self._box(ep.rect, ox, oy), "rx": fmt(el.corner_radius), **_fill(el.background)}
        if el.opacity < 1.0:
            attrs["opacity"] = fmt(el.opacity)
        SubElement(g, "rect", attrs)

    def _text(self, g: Element, ep: TextPlan, ox: float, oy: float) -> None:
        el = ep.element
        if not el.text:
            return
        attrs = {
            "id": el.id,
            "x": fmt(ox + ep.anchor.x),
            "y": fmt(oy + ep.anchor.baseline),
            "font-family": el.font_family,
            "font-size": fmt(ep.anchor.em),
            "font-weight": str(el.font_weight),
            **_fill(el.color),
            "text-anchor": ep.anchor.anchor,
        }
        if el.opacity < 1.0:
            attrs["opacity"] = fmt(el.opacity)
        t = SubElement(g, "text", attrs)
        t.text = el.text

    def _image(self, g: Element, ep: ImagePlan, ox: float, oy: float) -> None:
        el = ep.element
        img = self.images.get(el.data_url)
        if img is None:
            return
        draw = image_draw_rect(ep, img.width, img.height)
        if draw.is_empty:
            return
        attrs = {
            **self._box(draw, ox, oy),
            "href": img.as_data_url(),
            "preserveAspectRatio": "none",
        }
        if el.opacity < 1.0:
            attrs["opacity"] = fmt(el.opacity)
        if el.fit == "cover":
            clip_id = f"{el.id}-clip"
            defs = SubElement(g, "defs")
            cp = SubElement(defs, "clipPath", {"id": clip_id})
            SubElement(cp, "rect", self._box(ep.rect, ox, oy))
            attrs["clip-path"] = f"url(#{clip_id})"
        SubElement(g, "image", attrs)


def build_svg(
    project: Project,
    *,
    images: Optional[Mapping[str, DecodedImage]] = None,
    cancel: Optional[threading.Event] = None,
) -> Element:
    if images is None:
        images = resolve_images(project, cancel=cancel)
    w, h = project.paper.page_size_mm()
    policy = svg_policy(h)
    margin = project.paper.margin_mm

    svg = Element(
        "svg",
        {
            "xmlns": SVG_NS,
            "version": "1.1",
            "width": f"{fmt(w)}mm",
            "height": f"{fmt(h)}mm",
            "viewBox": f"0 0 {fmt(w)} {fmt(h)}",
        },
    )
    builder = _SvgBuilder(svg, images)
    for key in project.layout.keys:
        if cancel is not None and cancel.is_set():
            raise KldCancelled("Exportación SVG cancelada")
        ox, oy = key_page_origin(key, margin)
        kp = policy.place_key(ox, oy, key.width, key.height, key.rotation)
        builder.add_key(plan_key(key), ox, oy, kp.center, kp.angle)
    return svg


def export_project_svg(
    project: Project,
    *,
    images: Optional[Mapping[str, DecodedImage]] = None,
    cancel: Optional[threading.Event] = None,
) -> str:
    svg = build_svg(project, images=images, cancel=cancel)
    log.info("SVG generado: %d teclas", len(project.layout.keys))
    return XML_HEADER + tostring(svg, encoding="unicode")


def write_project_svg(project: Project, out_path: str | Path, **kwargs) -> Path:
    p = Path(out_path)
    if p.suffix.lower() != ".svg":
        p = p.with_suffix(".svg")
    xml = export_project_svg(project, **kwargs)
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(xml, encoding="utf-8")
    except OSError as e:
        raise KldIOError(f"No se pudo exportar SVG: {p}") from e
    return p
