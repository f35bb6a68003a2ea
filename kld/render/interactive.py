# File: kld/render/interactive.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.3.0
# Status: stable
# Date: 2026-09-29
# Purpose: Render del lienzo (QPainter) en píxeles de pantalla: hoja, área imprimible, teclas, selección, barra de 50mm.
# Notes:
# - Escala = dpi/25.4 * zoom (screen_policy). Misma geometría que PDF/SVG (kld.render.scene).
# - Imágenes: solo se dibujan las ya decodificadas; las pendientes aparecen en el siguiente repaint.
from __future__ import annotations

from typing import Iterable, Mapping, Optional

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QBrush, QColor, QFont, QFontMetricsF, QImage, QPainter, QPainterPath, QPen, QPolygonF

from kld.core.models import Project
from kld.core.version import REFERENCE_BAR_LABEL, REFERENCE_BAR_MM
from kld.geom.rect import Rect
from kld.render.conventions import CoordinatePolicy, KeyPlacement, screen_policy
from kld.render.images import DecodedImage
from kld.render.scene import (
    ImagePlan,
    KeyPlan,
    ShapePlan,
    TextPlan,
    image_draw_rect,
    key_page_origin,
    parse_hex_color,
    plan_key,
)

THEME_PRESETS = {
    "dark": {
        "bg": (30, 30, 30),
        "paper": (250, 250, 250),
        "print_area": (120, 130, 150),
        "outline": (15, 23, 42),
        "selection": (56, 189, 248),
        "ruler_label": (51, 61, 77),
    },
    "light": {
        "bg": (235, 235, 235),
        "paper": (255, 255, 255),
        "print_area": (150, 160, 175),
        "outline": (0, 0, 0),
        "selection": (2, 132, 199),
        "ruler_label": (51, 61, 77),
    },
}


def qcolor(color: str, opacity: float = 1.0) -> QColor:
    # QColor("#rrggbbaa") se interpreta como #aarrggbb: se parsea a mano.
    r, g, b, a = parse_hex_color(color)
    return QColor.fromRgbF(r, g, b, a * opacity)


def qimages_from_decoded(images: Mapping[str, DecodedImage]) -> dict[str, QImage]:
    out: dict[str, QImage] = {}
    for ref, dec in images.items():
        img = QImage.fromData(dec.data)
        if not img.isNull():
            out[ref] = img
    return out


def _qrect(t: tuple[float, float, float, float]) -> QRectF:
    return QRectF(t[0], t[1], t[2], t[3])


class InteractiveRenderer:
    """Dibuja un Project con un QPainter ya abierto (widget, QImage, etc.)."""

    def __init__(self, policy: CoordinatePolicy, *, theme: str = "dark") -> None:
        self.policy = policy
        self.colors = {k: QColor(*v) for k, v in THEME_PRESETS.get(theme, THEME_PRESETS["dark"]).items()}

    def render(
        self,
        painter: QPainter,
        project: Project,
        *,
        images: Optional[Mapping[str, QImage]] = None,
        selection: Iterable[str] = (),
        include_ruler: bool = False,
    ) -> None:
        images = images or {}
        selected = set(selection)
        painter.save()
        painter.setRenderHint(QPainter.Antialiasing, True)
        painter.setRenderHint(QPainter.SmoothPixmapTransform, True)
        painter.setRenderHint(QPainter.TextAntialiasing, True)
        self._draw_page(painter, project)
        margin = project.paper.margin_mm
        for key in project.layout.keys:
            ox, oy = key_page_origin(key, margin)
            kp = self.policy.place_key(ox, oy, key.width, key.height, key.rotation)
            self.draw_key(painter, plan_key(key), kp, images, key.id in selected)
        if include_ruler:
            self._draw_reference_bar(painter, project)
        painter.restore()

    # ----------------------------
    # Hoja
    # ----------------------------
    def _draw_page(self, painter: QPainter, project: Project) -> None:
        w, h = project.paper.page_size_mm()
        m = project.paper.margin_mm
        painter.setPen(Qt.NoPen)
        painter.setBrush(QBrush(self.colors["paper"]))
        painter.drawRect(_qrect(self.policy.rect(Rect(0.0, 0.0, w, h))))
        pen = QPen(self.colors["print_area"])
        pen.setCosmetic(True)
        pen.setStyle(Qt.DashLine)
        painter.setPen(pen)
        painter.setBrush(Qt.NoBrush)
        painter.drawRect(_qrect(self.policy.rect(Rect(m, m, w - 2 * m, h - 2 * m))))

    def _draw_reference_bar(self, painter: QPainter, project: Project) -> None:
        _, h = project.paper.page_size_mm()
        m = project.paper.margin_mm
        bar_w, bar_h = REFERENCE_BAR_MM
        painter.setPen(Qt.NoPen)
        painter.setBrush(QBrush(QColor(0, 0, 0)))
        painter.drawRect(_qrect(self.policy.rect(Rect(m, h - m - bar_h, bar_w, bar_h))))
        font = QFont("Helvetica")
        font.setPixelSize(max(1, round(self.policy.length(8.0 * 25.4 / 72.0))))
        painter.setFont(font)
        painter.setPen(self.colors["ruler_label"])
        painter.drawText(QPointF(*self.policy.point(m, h - m - 6.0)), REFERENCE_BAR_LABEL)

    # ----------------------------
    # Teclas
    # ----------------------------
    def draw_key(
        self,
        painter: QPainter,
        plan: KeyPlan,
        kp: KeyPlacement,
        images: Mapping[str, QImage],
        selected: bool = False,
    ) -> None:
        painter.save()
        painter.translate(QPointF(*kp.origin))
        painter.rotate(kp.angle)
        self._draw_outline(painter, plan, kp, selected)
        for ep in plan.elements:
            painter.save()
            if isinstance(ep, ShapePlan):
                self._draw_shape(painter, ep, kp)
            elif isinstance(ep, TextPlan):
                self._draw_text(painter, ep, kp)
            elif isinstance(ep, ImagePlan):
                self._draw_image(painter, ep, kp, images)
            else:
                raise TypeError(f"Elemento no soportado en lienzo: {type(ep).__name__}")
            painter.restore()
        painter.restore()

    def _draw_outline(self, painter: QPainter, plan: KeyPlan, kp: KeyPlacement, selected: bool) -> None:
        key = plan.key
        pen = QPen(self.colors["selection"] if selected else self.colors["outline"])
        pen.setCosmetic(True)
        pen.setWidthF(2.0 if selected else 1.0)
        painter.setPen(pen)
        painter.setBrush(QBrush(qcolor(plan.fill)) if plan.fill else Qt.NoBrush)
        if plan.is_rect:
            r = min(key.corner_radius * kp.scale, key.width * kp.scale / 2.0, key.height * kp.scale / 2.0)
            painter.drawRoundedRect(_qrect(kp.local_rect(Rect(0.0, 0.0, key.width, key.height))), r, r)
            return
        poly = QPolygonF([QPointF(x, y) for x, y in kp.local_points(plan.outline)])
        path = QPainterPath()
        path.addPolygon(poly)
        path.closeSubpath()
        painter.drawPath(path)

    def _draw_shape(self, painter: QPainter, ep: ShapePlan, kp: KeyPlacement) -> None:
        el = ep.element
        painter.setPen(Qt.NoPen)
        painter.setBrush(QBrush(qcolor(el.background, el.opacity)))
        rect = _qrect(kp.local_rect(ep.rect))
        r = min(el.corner_radius * kp.scale, rect.width() / 2.0, rect.height() / 2.0)
        painter.drawRoundedRect(rect, r, r)

    def _draw_text(self, painter: QPainter, ep: TextPlan, kp: KeyPlacement) -> None:
        el = ep.element
        if not el.text:
            return
        font = QFont(el.font_family)
        font.setPixelSize(max(1, round(ep.anchor.em * kp.scale)))
        font.setBold(int(el.font_weight) >= 600)
        painter.setFont(font)
        painter.setPen(qcolor(el.color, el.opacity))
        x, y = kp.local(ep.anchor.x, ep.anchor.baseline)
        advance = QFontMetricsF(font).horizontalAdvance(el.text)
        if ep.anchor.anchor == "middle":
            x -= advance / 2.0
        elif ep.anchor.anchor == "end":
            x -= advance
        painter.drawText(QPointF(x, y), el.text)

    def _draw_image(self, painter: QPainter, ep: ImagePlan, kp: KeyPlacement, images: Mapping[str, QImage]) -> None:
        el = ep.element
        img = images.get(el.data_url)
        if img is None or img.isNull():
            return
        draw = image_draw_rect(ep, img.width(), img.height())
        if draw.is_empty:
            return
        if el.fit == "cover":
            painter.setClipRect(_qrect(kp.local_rect(ep.rect)), Qt.IntersectClip)
        painter.setOpacity(painter.opacity() * el.opacity)
        painter.drawImage(_qrect(kp.local_rect(draw)), img)


def render_to_image(
    project: Project,
    *,
    dpi: float = 96.0,
    zoom: float = 1.0,
    images: Optional[Mapping[str, QImage]] = None,
    selection: Iterable[str] = (),
    include_ruler: bool = False,
    theme: str = "light",
) -> QImage:
    """Vista previa raster de la hoja completa (miniaturas, pruebas)."""
    w, h = project.paper.page_size_mm()
    policy = screen_policy(h, dpi, zoom)
    out = QImage(max(1, round(policy.length(w))), max(1, round(policy.length(h))), QImage.Format_ARGB32_Premultiplied)
    out.fill(QColor(*THEME_PRESETS.get(theme, THEME_PRESETS["light"])["bg"]))
    p = QPainter(out)
    try:
        InteractiveRenderer(policy, theme=theme).render(
            p, project, images=images, selection=selection, include_ruler=include_ruler
        )
    finally:
        p.end()
    return out
