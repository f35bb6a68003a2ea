# File: kld/render/pdf.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.3.1
# Status: stable
# Date: 2026-09-24
# Purpose: Export PDF (reportlab) de una hoja: contornos, rellenos, texto, formas e imágenes por tecla.
# Notes:
# - Página = papel en pt, origen abajo-izquierda. Todo pasa por pdf_policy (espejo en y, ángulo negado).
# - Las imágenes se resuelven completas antes de dibujar; si se cancela no se devuelve nada.
from __future__ import annotations

import io
import threading

from pathlib import Path
from typing import Mapping, Optional

from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas as pdfcanvas

from kld.core.models import Project
from kld.core.version import APP_NAME, APP_VERSION, REFERENCE_BAR_LABEL, REFERENCE_BAR_MM
from kld.geom.rect import Rect
from kld.geom.units import mm_to_points
from kld.render.conventions import KeyPlacement, pdf_policy
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
from kld.utils.errors import KldCancelled, KldIOError
from kld.utils.log import get_logger

log = get_logger(__name__)

REFERENCE_LABEL_PT = 8.0
REFERENCE_LABEL_OFFSET_MM = 6.0


def pdf_font_name(family: str, weight: int) -> str:
    """Fuente estándar PDF más cercana (sin embeber fuentes)."""
    fam = (family or "").lower()
    bold = int(weight or 400) >= 600
    if "mono" in fam or "courier" in fam:
        return "Courier-Bold" if bold else "Courier"
    if ("serif" in fam and "sans" not in fam) or "times" in fam:
        return "Times-Bold" if bold else "Times-Roman"
    return "Helvetica-Bold" if bold else "Helvetica"


class _PdfPainter:
    def __init__(self, c: pdfcanvas.Canvas, images: Mapping[str, DecodedImage]) -> None:
        self.c = c
        self.images = images
        self._readers: dict[str, ImageReader] = {}
        self.stroke_pt = mm_to_points(outline_stroke_mm())

    def _reader(self, ref: str) -> Optional[ImageReader]:
        img = self.images.get(ref)
        if img is None:
            return None
        if ref not in self._readers:
            self._readers[ref] = ImageReader(io.BytesIO(img.data))
        return self._readers[ref]

    def draw_key(self, plan: KeyPlan, kp: KeyPlacement) -> None:
        c = self.c
        c.saveState()
        c.translate(*kp.origin)
        c.rotate(kp.angle)
        self._draw_outline(plan, kp)
        for ep in plan.elements:
            c.saveState()
            if isinstance(ep, TextPlan):
                self._draw_text(ep, kp)
            elif isinstance(ep, ShapePlan):
                self._draw_shape(ep, kp)
            elif isinstance(ep, ImagePlan):
                self._draw_image(ep, kp)
            else:
                raise TypeError(f"Elemento no soportado en PDF: {type(ep).__name__}")
            c.restoreState()
        c.restoreState()

    def _draw_outline(self, plan: KeyPlan, kp: KeyPlacement) -> None:
        c = self.c
        key = plan.key
        fill = 0
        if plan.fill is not None:
            r, g, b, a = parse_hex_color(plan.fill)
            c.setFillColorRGB(r, g, b, alpha=a)
            fill = 1
        c.setStrokeColorRGB(0, 0, 0)
        c.setLineWidth(self.stroke_pt)

        if plan.is_rect and key.corner_radius > 0:
            x, y, w, h = kp.local_rect(Rect(0.0, 0.0, key.width, key.height))
            radius = min(key.corner_radius * kp.scale, w / 2.0, h / 2.0)
            c.roundRect(x, y, w, h, radius, stroke=1, fill=fill)
            return

        pts = kp.local_points(plan.outline)
        path = c.beginPath()
        path.moveTo(*pts[0])
        for pt in pts[1:]:
            path.lineTo(*pt)
        path.close()
        c.drawPath(path, stroke=1, fill=fill)

    def _draw_text(self, ep: TextPlan, kp: KeyPlacement) -> None:
        el = ep.element
        if not el.text:
            return
        c = self.c
        r, g, b, a = parse_hex_color(el.color)
        c.setFillColorRGB(r, g, b, alpha=a * el.opacity)
        c.setFont(pdf_font_name(el.font_family, el.font_weight), el.font_size)
        x, y = kp.local(ep.anchor.x, ep.anchor.baseline)
        if ep.anchor.anchor == "middle":
            c.drawCentredString(x, y, el.text)
        elif ep.anchor.anchor == "end":
            c.drawRightString(x, y, el.text)
        else:
            c.drawString(x, y, el.text)

    def _draw_shape(self, ep: ShapePlan, kp: KeyPlacement) -> None:
        el = ep.element
        r, g, b, a = parse_hex_color(el.background)
        if a <= 0.0:
            return
        c = self.c
        c.setFillColorRGB(r, g, b, alpha=a * el.opacity)
        x, y, w, h = kp.local_rect(ep.rect)
        radius = min(el.corner_radius * kp.scale, w / 2.0, h / 2.0)
        if radius > 0:
            c.roundRect(x, y, w, h, radius, stroke=0, fill=1)
        else:
            c.rect(x, y, w, h, stroke=0, fill=1)

    def _draw_image(self, ep: ImagePlan, kp: KeyPlacement) -> None:
        el = ep.element
        img = self.images.get(el.data_url)
        reader = self._reader(el.data_url)
        if img is None or reader is None:
            return
        c = self.c
        draw = image_draw_rect(ep, img.width, img.height)
        if draw.is_empty:
            return
        if el.fit == "cover":
            clip = c.beginPath()
            clip.rect(*kp.local_rect(ep.rect))
            c.clipPath(clip, stroke=0, fill=0)
        c.setFillAlpha(el.opacity)
        x, y, w, h = kp.local_rect(draw)
        c.drawImage(reader, x, y, width=w, height=h, mask="auto")


def draw_reference_bar(c: pdfcanvas.Canvas, margin_mm: float) -> None:
    """Barra negra de 50x4mm en (margen, margen) desde abajo-izquierda + etiqueta."""
    bar_w, bar_h = REFERENCE_BAR_MM
    m = mm_to_points(margin_mm)
    c.saveState()
    c.setFillColorRGB(0, 0, 0)
    c.rect(m, m, mm_to_points(bar_w), mm_to_points(bar_h), stroke=0, fill=1)
    c.setFillColorRGB(0.2, 0.24, 0.3)
    c.setFont("Helvetica", REFERENCE_LABEL_PT)
    c.drawString(m, mm_to_points(margin_mm + REFERENCE_LABEL_OFFSET_MM), REFERENCE_BAR_LABEL)
    c.restoreState()


def export_project_pdf(
    project: Project,
    *,
    include_ruler: bool = False,
    images: Optional[Mapping[str, DecodedImage]] = None,
    cancel: Optional[threading.Event] = None,
) -> bytes:
    """Genera el PDF completo en memoria.

    `images`: decodificaciones ya resueltas ({data_url: DecodedImage}); si falta,
    se resuelven todas acá antes de dibujar.
    """
    if images is None:
        images = resolve_images(project, cancel=cancel)

    page_w, page_h = project.paper.page_size_mm()
    policy = pdf_policy(page_h)
    margin = project.paper.margin_mm

    buf = io.BytesIO()
    c = pdfcanvas.Canvas(buf, pagesize=(mm_to_points(page_w), mm_to_points(page_h)))
    c.setTitle(project.name)
    c.setCreator(f"{APP_NAME} {APP_VERSION}")
    painter = _PdfPainter(c, images)

    for key in project.layout.keys:
        if cancel is not None and cancel.is_set():
            raise KldCancelled("Exportación PDF cancelada")
        ox, oy = key_page_origin(key, margin)
        kp = policy.place_key(ox, oy, key.width, key.height, key.rotation)
        painter.draw_key(plan_key(key), kp)

    if include_ruler:
        draw_reference_bar(c, margin)

    c.showPage()
    c.save()
    log.info("PDF generado: %d teclas, %.1fx%.1fmm", len(project.layout.keys), page_w, page_h)
    return buf.getvalue()


def write_project_pdf(project: Project, out_path: str | Path, **kwargs) -> Path:
    p = Path(out_path)
    if p.suffix.lower() != ".pdf":
        p = p.with_suffix(".pdf")
    data = export_project_pdf(project, **kwargs)
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(data)
    except OSError as e:
        raise KldIOError(f"No se pudo exportar PDF: {p}") from e
    return p
