# File: kld/ui/canvas_container.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.3.0
# Status: stable
# Date: 2026-10-05
# Purpose: Contenedor del lienzo: CanvasView + barra inferior (vista layout/corte, resumen de hoja y zoom).
# Notes:
# - El slider es logarítmico (0.1x..8x con resolución pareja); controla el zoom de la vista, no la escala de impresión.
# - La hoja de corte es solo lectura: se deriva del layout en cada repintado.
from __future__ import annotations

import math

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QButtonGroup,
    QHBoxLayout,
    QLabel,
    QRadioButton,
    QSlider,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from kld.ui.canvas_view import CanvasView

SLIDER_STEPS = 400

_ORIENTATION_LABELS = {"portrait": "vertical", "landscape": "horizontal"}


class CanvasContainer(QWidget):
    """Widget central: lienzo + selector de vista + resumen + zoom."""

    view_mode_changed = Signal(str)

    def __init__(self, canvas: CanvasView, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.canvas = canvas

        root = QVBoxLayout(self)
        root.setContentsMargins(0, 0, 0, 0)
        root.setSpacing(2)
        root.addWidget(self.canvas, 1)
        root.addWidget(self._build_bar(), 0)

        self.canvas.zoom_changed.connect(self._on_canvas_zoom)
        self.canvas.project_changed.connect(lambda _reason: self.update_summary())
        self.canvas.selection_changed.connect(lambda _ids: self.update_summary())
        self._on_canvas_zoom(self.canvas.zoom_factor())
        self.update_summary()

    def _build_bar(self) -> QWidget:
        bar = QWidget(self)
        bl = QHBoxLayout(bar)
        bl.setContentsMargins(6, 0, 6, 0)
        bl.setSpacing(8)

        mode = self.canvas.session.view_mode
        self._rb_layout = QRadioButton("Layout", bar)
        self._rb_cut = QRadioButton("Hoja de corte", bar)
        self._rb_layout.setChecked(mode == "layout")
        self._rb_cut.setChecked(mode == "cut")
        self._view_group = QButtonGroup(self)
        self._view_group.addButton(self._rb_layout)
        self._view_group.addButton(self._rb_cut)
        self._rb_layout.toggled.connect(self._on_view_toggled)
        bl.addWidget(self._rb_layout, 0)
        bl.addWidget(self._rb_cut, 0)

        self._summary = QLabel("", bar)
        self._summary.setAlignment(Qt.AlignVCenter | Qt.AlignLeft)
        bl.addWidget(self._summary, 1)

        btn_out = QToolButton(bar)
        btn_out.setText("−")
        btn_out.clicked.connect(self.canvas.zoom_out)
        bl.addWidget(btn_out, 0)

        self._slider = QSlider(Qt.Horizontal, bar)
        self._slider.setRange(0, SLIDER_STEPS)
        self._slider.setSingleStep(5)
        self._slider.setPageStep(40)
        self._slider.setMinimumWidth(160)
        self._slider.valueChanged.connect(self._on_slider)
        bl.addWidget(self._slider, 0)

        btn_in = QToolButton(bar)
        btn_in.setText("+")
        btn_in.clicked.connect(self.canvas.zoom_in)
        bl.addWidget(btn_in, 0)

        self._pct = QToolButton(bar)
        self._pct.setToolTip("Volver a 100%")
        self._pct.setMinimumWidth(56)
        self._pct.clicked.connect(self.canvas.zoom_reset)
        bl.addWidget(self._pct, 0)
        return bar

    # ----------------------------
    # Vista
    # ----------------------------
    def set_view_mode(self, mode: str) -> None:
        rb = self._rb_cut if mode == "cut" else self._rb_layout
        if not rb.isChecked():
            rb.setChecked(True)

    def _on_view_toggled(self, layout_checked: bool) -> None:
        mode = "layout" if layout_checked else "cut"
        self.canvas.session.set_view_mode(mode)
        self.canvas.refresh()
        self.update_summary()
        self.view_mode_changed.emit(mode)

    def update_summary(self) -> None:
        session = self.canvas.session
        paper = session.project.paper
        w, h = paper.page_size_mm()
        n = len(session.project.layout.keys)
        text = f"{paper.size} {_ORIENTATION_LABELS.get(paper.orientation, paper.orientation)} ({w:g}x{h:g}mm) · {n} teclas"
        if session.selection:
            text += f" · {len(session.selection)} sel."
        self._summary.setText(text)

    # ----------------------------
    # Zoom (slider logarítmico)
    # ----------------------------
    def _slider_to_zoom(self, v: int) -> float:
        zmin, zmax = self.canvas.zoom_limits()
        t = max(0.0, min(1.0, float(v) / SLIDER_STEPS))
        return math.exp(math.log(zmin) + t * (math.log(zmax) - math.log(zmin)))

    def _zoom_to_slider(self, z: float) -> int:
        zmin, zmax = self.canvas.zoom_limits()
        z = max(zmin, min(zmax, float(z)))
        t = (math.log(z) - math.log(zmin)) / (math.log(zmax) - math.log(zmin))
        return int(round(t * SLIDER_STEPS))

    def _on_slider(self, v: int) -> None:
        self.canvas.set_zoom_factor(self._slider_to_zoom(v))

    def _on_canvas_zoom(self, z: float) -> None:
        v = self._zoom_to_slider(z)
        if self._slider.value() != v:
            self._slider.blockSignals(True)
            self._slider.setValue(v)
            self._slider.blockSignals(False)
        self._pct.setText(f"{int(round(float(z) * 100))}%")
