# File: kld/ui/canvas_view.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.3.2
# Status: wip
# Date: 2026-10-03
# Purpose: Lienzo interactivo: pinta la sesión con InteractiveRenderer; selección, arrastre, nudge y zoom.
# Notes:
# - Escala efectiva = zoom * ajuste-a-ventana (nunca agranda por encima de 1:1 a DPI del papel).
# - Las imágenes se decodifican en segundo plano; al resolverse se repinta (señal encolada al hilo UI).
from __future__ import annotations

import copy

from dataclasses import dataclass, replace
from typing import Optional

from PySide6.QtCore import QPointF, Qt, Signal
from PySide6.QtGui import QColor, QImage, QPainter, QPolygonF
from PySide6.QtWidgets import QWidget

from kld.core.actions import EditorSession, MoveKeys, NudgeKeys, RemoveKeys
from kld.core.models import ImageElement, Project
from kld.core.settings import env_float
from kld.render.conventions import CoordinatePolicy, screen_policy
from kld.render.images import ImageDecoder
from kld.render.interactive import THEME_PRESETS, InteractiveRenderer
from kld.render.scene import page_outline
from kld.utils.log import get_logger

log = get_logger(__name__)

PAGE_OFFSET_PX = 30.0
NUDGE_MM = 1.0
NUDGE_FINE_MM = 0.1


@dataclass
class _DragState:
    anchor_mm: tuple[float, float]
    starts: dict[str, tuple[float, float]]
    moved: bool = False


class CanvasView(QWidget):
    zoom_changed = Signal(float)
    selection_changed = Signal(list)
    project_changed = Signal(str)  # motivo
    _image_ready = Signal()

    ZOOM_MIN = 0.1
    ZOOM_MAX = 8.0

    def __init__(self, session: EditorSession, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._session = session
        self._decoder = ImageDecoder()
        self._qimages: dict[str, QImage] = {}
        self._zoom = env_float("KLD_CANVAS_START_ZOOM", 1.0, min_value=self.ZOOM_MIN, max_value=self.ZOOM_MAX)
        self._theme_id = "dark"
        self._include_ruler = False
        self._drag: Optional[_DragState] = None
        # Posiciones en vivo durante el arrastre (se confirman con MoveKeys al soltar).
        self._preview_positions: dict[str, tuple[float, float]] = {}

        self.setFocusPolicy(Qt.StrongFocus)
        self.setMinimumSize(320, 240)
        self._image_ready.connect(self.update, Qt.QueuedConnection)

    # ----------------------------
    # Estado
    # ----------------------------
    @property
    def session(self) -> EditorSession:
        return self._session

    def theme_id(self) -> str:
        return self._theme_id

    def set_theme(self, theme_id: str) -> None:
        self._theme_id = theme_id if theme_id in THEME_PRESETS else "dark"
        self.update()

    def set_include_ruler(self, on: bool) -> None:
        self._include_ruler = bool(on)
        self.update()

    def refresh(self) -> None:
        """Llamar tras cambiar el proyecto desde afuera (acciones, undo, carga)."""
        self._request_images(self._session.display_project())
        self.update()

    def shutdown(self) -> None:
        self._decoder.shutdown()

    # ----------------------------
    # Zoom
    # ----------------------------
    def zoom_factor(self) -> float:
        return float(self._zoom)

    def zoom_limits(self) -> tuple[float, float]:
        return self.ZOOM_MIN, self.ZOOM_MAX

    def set_zoom_factor(self, z: float) -> None:
        z = max(self.ZOOM_MIN, min(self.ZOOM_MAX, float(z)))
        if abs(z - self._zoom) < 1e-6:
            return
        self._zoom = z
        self.zoom_changed.emit(self._zoom)
        self.update()

    def zoom_in(self) -> None:
        self.set_zoom_factor(self._zoom * 1.25)

    def zoom_out(self) -> None:
        self.set_zoom_factor(self._zoom / 1.25)

    def zoom_reset(self) -> None:
        self.set_zoom_factor(1.0)

    def _fit_scale(self, project: Project) -> float:
        w, h = project.paper.page_size_mm()
        unit = screen_policy(h, project.paper.dpi).scale
        fit = min((self.width() - 80) / (w * unit), (self.height() - 120) / (h * unit), 1.0)
        return fit if fit > 0 else 1.0

    def policy(self, project: Optional[Project] = None) -> CoordinatePolicy:
        prj = project or self._session.display_project()
        _, h = prj.paper.page_size_mm()
        return screen_policy(h, prj.paper.dpi, self._zoom * self._fit_scale(prj), (PAGE_OFFSET_PX, PAGE_OFFSET_PX))

    def widget_to_mm(self, x: float, y: float, policy: Optional[CoordinatePolicy] = None) -> tuple[float, float]:
        """Punto del widget -> mm de página."""
        pol = policy or self.policy()
        return ((x - pol.offset[0]) / pol.scale, (y - pol.offset[1]) / pol.scale)

    # ----------------------------
    # Imágenes
    # ----------------------------
    def _request_images(self, project: Project) -> None:
        for key in project.layout.keys:
            for el in key.elements:
                if not isinstance(el, ImageElement) or not el.data_url or el.data_url in self._qimages:
                    continue
                fut = self._decoder.submit(el.data_url)
                if not fut.done():
                    fut.add_done_callback(lambda _f: self._image_ready.emit())

    def _ready_images(self, project: Project) -> dict[str, QImage]:
        for key in project.layout.keys:
            for el in key.elements:
                if not isinstance(el, ImageElement) or el.data_url in self._qimages:
                    continue
                dec = self._decoder.peek(el.data_url)
                if dec is not None:
                    img = QImage.fromData(dec.data)
                    if not img.isNull():
                        self._qimages[el.data_url] = img
        return self._qimages

    # ----------------------------
    # Pintado
    # ----------------------------
    def _display_project(self) -> Project:
        prj = self._session.display_project()
        if not self._preview_positions:
            return prj
        # Copia superficial: el proyecto vivo no se toca hasta soltar.
        pos = self._preview_positions
        out = copy.copy(prj)
        out.layout = copy.copy(prj.layout)
        out.layout.keys = [
            replace(k, x=pos[k.id][0], y=pos[k.id][1]) if k.id in pos else k for k in prj.layout.keys
        ]
        return out

    def paintEvent(self, event) -> None:
        prj = self._display_project()
        self._request_images(prj)
        p = QPainter(self)
        try:
            p.fillRect(self.rect(), QColor(*THEME_PRESETS[self._theme_id]["bg"]))
            renderer = InteractiveRenderer(self.policy(prj), theme=self._theme_id)
            renderer.render(
                p,
                prj,
                images=self._ready_images(prj),
                selection=self._session.selection,
                include_ruler=self._include_ruler,
            )
        finally:
            p.end()

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        self.update()

    # ----------------------------
    # Interacción
    # ----------------------------
    def key_at(self, x: float, y: float) -> Optional[str]:
        """Tecla bajo el punto (la de más arriba en orden de dibujo)."""
        prj = self._session.display_project()
        mx, my = self.widget_to_mm(x, y)
        for key in reversed(prj.layout.keys):
            poly = QPolygonF([QPointF(px, py) for px, py in page_outline(key, prj.paper.margin_mm)])
            if poly.containsPoint(QPointF(mx, my), Qt.OddEvenFill):
                return key.id
        return None

    def _set_selection(self, ids: list[str]) -> None:
        self._session.select(ids)
        self.selection_changed.emit(list(self._session.selection))
        self.update()

    def mousePressEvent(self, event) -> None:
        if event.button() != Qt.LeftButton:
            super().mousePressEvent(event)
            return
        pos = event.position()
        kid = self.key_at(pos.x(), pos.y())
        multi = bool(event.modifiers() & Qt.ShiftModifier)
        sel = list(self._session.selection)
        if kid is None:
            if not multi:
                self._set_selection([])
            return
        if multi:
            sel = [k for k in sel if k != kid] if kid in sel else [*sel, kid]
        elif kid not in sel:
            sel = [kid]
        self._set_selection(sel)

        # Arrastre solo en la vista de layout: la hoja de corte es derivada.
        if self._session.view_mode == "layout" and kid in self._session.selection:
            prj = self._session.project
            starts = {k.id: (k.x, k.y) for k in prj.layout.keys if k.id in self._session.selection}
            self._drag = _DragState(anchor_mm=self.widget_to_mm(pos.x(), pos.y()), starts=starts)

    def mouseMoveEvent(self, event) -> None:
        if self._drag is None:
            return
        pos = event.position()
        mx, my = self.widget_to_mm(pos.x(), pos.y())
        dx = mx - self._drag.anchor_mm[0]
        dy = my - self._drag.anchor_mm[1]
        snap = self._session.project.paper.snap
        step = snap.step_mm if snap is not None and snap.enabled else 0.0
        if step:
            dx = round(dx / step) * step
            dy = round(dy / step) * step
        self._preview_positions = {k: (x + dx, y + dy) for k, (x, y) in self._drag.starts.items()}
        self._drag.moved = self._drag.moved or bool(dx or dy)
        self.update()

    def mouseReleaseEvent(self, event) -> None:
        drag, self._drag = self._drag, None
        positions, self._preview_positions = self._preview_positions, {}
        if drag is None or not drag.moved or not positions:
            self.update()
            return
        self._session.dispatch(MoveKeys(tuple((k, x, y) for k, (x, y) in positions.items())))
        self.project_changed.emit("move")
        self.refresh()

    def keyPressEvent(self, event) -> None:
        sel = tuple(self._session.selection)
        if not sel or self._session.view_mode != "layout":
            super().keyPressEvent(event)
            return
        step = NUDGE_FINE_MM if event.modifiers() & Qt.AltModifier else NUDGE_MM
        moves = {
            Qt.Key_Left: (-step, 0.0),
            Qt.Key_Right: (step, 0.0),
            Qt.Key_Up: (0.0, -step),
            Qt.Key_Down: (0.0, step),
        }
        k = event.key()
        if k in moves:
            dx, dy = moves[k]
            self._session.dispatch(NudgeKeys(sel, dx, dy))
            self.project_changed.emit("nudge")
        elif k in (Qt.Key_Delete, Qt.Key_Backspace):
            self._session.dispatch(RemoveKeys(sel))
            self.selection_changed.emit([])
            self.project_changed.emit("remove")
        else:
            super().keyPressEvent(event)
            return
        self.refresh()

    def wheelEvent(self, event) -> None:
        dy = int(event.angleDelta().y())
        if not dy or not (event.modifiers() & Qt.ControlModifier):
            super().wheelEvent(event)
            return
        steps = dy / 120.0
        smooth = 0.4 if event.modifiers() & Qt.ShiftModifier else 0.6
        self.set_zoom_factor(self._zoom * (1.25 ** (steps * smooth)))
        event.accept()
