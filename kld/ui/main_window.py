# File: kld/ui/main_window.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.3.1
# Status: wip
# Date: 2026-10-04
# Purpose: Ventana principal: menús Archivo/Editar/Plantillas/Papel/Ver sobre una EditorSession.
# Notes: Toda edición pasa por EditorSession.dispatch (historial deshacer/rehacer).
from __future__ import annotations

import base64
import mimetypes

from pathlib import Path
from typing import Optional

from PySide6.QtGui import QAction, QActionGroup, QCloseEvent, QKeySequence
from PySide6.QtWidgets import QFileDialog, QInputDialog, QLabel, QMainWindow, QMessageBox, QStatusBar

from kld.core.actions import (
    Action,
    AddElement,
    AddKey,
    ApplyTemplate,
    DuplicateKeys,
    EditorSession,
    RemoveKeys,
    SwapKeys,
    UpdatePaper,
    create_shape_element,
    create_text_element,
)
from kld.core.models import ImageElement, Project, new_id
from kld.core.serialization import load_project, save_project
from kld.core.settings import AppSettings
from kld.core.templates import TEMPLATE_LABELS
from kld.core.version import APP_NAME, APP_VERSION
from kld.geom.units import PAPER_SIZES_MM
from kld.render.pdf import write_project_pdf
from kld.svg.exporter import write_project_svg
from kld.ui.canvas_container import CanvasContainer
from kld.ui.canvas_view import CanvasView
from kld.utils.errors import KldError
from kld.utils.log import get_logger

log = get_logger(__name__)


class MainWindow(QMainWindow):
    def __init__(self, project: Optional[Project] = None) -> None:
        super().__init__()
        self.resize(1200, 800)
        self._settings = AppSettings.load()
        self._session = EditorSession(project)
        self._file_path: Optional[Path] = None
        self._dirty = False

        self._build_ui()
        self._build_menu()
        self._refresh()

    # ----------------------------
    # UI
    # ----------------------------
    def _build_ui(self) -> None:
        self._canvas = CanvasView(self._session, self)
        self._canvas.set_theme(self._settings.canvas_theme)
        self._canvas.set_include_ruler(self._settings.include_ruler)
        self._canvas.project_changed.connect(self._on_project_changed)
        self._canvas.selection_changed.connect(self._on_selection_changed)

        self._canvas_container = CanvasContainer(self._canvas, self)
        self._canvas_container.view_mode_changed.connect(lambda _m: self._update_actions())
        self.setCentralWidget(self._canvas_container)

        sb = QStatusBar(self)
        self.setStatusBar(sb)
        self._status_label = QLabel("Listo", self)
        sb.addPermanentWidget(self._status_label)

    def _build_menu(self) -> None:
        mb = self.menuBar()

        m_file = mb.addMenu("Archivo")
        self._add(m_file, "Nuevo", self.action_new, QKeySequence.New)
        self._add(m_file, "Abrir…", self.action_open, QKeySequence.Open)
        self._add(m_file, "Guardar", self.action_save, QKeySequence.Save)
        self._add(m_file, "Guardar como…", self.action_save_as, QKeySequence.SaveAs)
        m_file.addSeparator()
        self._add(m_file, "Exportar PDF…", lambda: self.action_export("pdf"), "Ctrl+E")
        self._add(m_file, "Exportar SVG…", lambda: self.action_export("svg"), "Ctrl+Shift+E")
        m_file.addSeparator()
        self._add(m_file, "Salir", self.close, QKeySequence.Quit)

        m_edit = mb.addMenu("Editar")
        self._act_undo = self._add(m_edit, "Deshacer", self.action_undo, QKeySequence.Undo)
        self._act_redo = self._add(m_edit, "Rehacer", self.action_redo, QKeySequence.Redo)
        m_edit.addSeparator()
        self._add(m_edit, "Agregar tecla", lambda: self._dispatch(AddKey(), "Tecla agregada"), "Ctrl+K")
        self._act_text = self._add(m_edit, "Agregar texto…", self.action_add_text, "Ctrl+T")
        self._act_shape = self._add(m_edit, "Agregar forma", self.action_add_shape)
        self._act_image = self._add(m_edit, "Agregar imagen…", self.action_add_image)
        m_edit.addSeparator()
        self._act_dup = self._add(m_edit, "Duplicar selección", self.action_duplicate, "Ctrl+D")
        self._act_swap = self._add(m_edit, "Intercambiar selección", self.action_swap)
        self._act_del = self._add(m_edit, "Eliminar selección", self.action_remove)

        m_tpl = mb.addMenu("Plantillas")
        self._add(m_tpl, "Grilla…", self.action_grid_template)
        for name in ("ansi104", "iso105", "ansi60", "iso60", "cheapino"):
            self._add(m_tpl, TEMPLATE_LABELS[name], lambda n=name: self._dispatch(ApplyTemplate(name=n), TEMPLATE_LABELS[n]))

        m_paper = mb.addMenu("Papel")
        grp_size = QActionGroup(self)
        self._size_actions: dict[str, QAction] = {}
        for size in PAPER_SIZES_MM:
            a = self._add(m_paper, size, lambda s=size: self._dispatch(UpdatePaper({"size": s}), f"Papel {s}"))
            a.setCheckable(True)
            grp_size.addAction(a)
            self._size_actions[size] = a
        m_paper.addSeparator()
        self._act_landscape = self._add(m_paper, "Horizontal", self._toggle_landscape)
        self._act_landscape.setCheckable(True)
        self._add(m_paper, "Margen…", self.action_margin)

        m_view = mb.addMenu("Ver")
        self._add(m_view, "Acercar", self._canvas.zoom_in, QKeySequence.ZoomIn)
        self._add(m_view, "Alejar", self._canvas.zoom_out, QKeySequence.ZoomOut)
        self._add(m_view, "Zoom 100%", self._canvas.zoom_reset, "Ctrl+0")
        m_view.addSeparator()
        self._act_cut = self._add(m_view, "Hoja de corte", self._toggle_cut_view)
        self._act_cut.setCheckable(True)
        self._act_ruler = self._add(m_view, "Barra de 50mm", self._toggle_ruler)
        self._act_ruler.setCheckable(True)
        self._act_ruler.setChecked(self._settings.include_ruler)
        m_theme = m_view.addMenu("Tema")
        grp_theme = QActionGroup(self)
        for theme_id, label in (("dark", "Oscuro"), ("light", "Claro")):
            a = self._add(m_theme, label, lambda t=theme_id: self._set_theme(t))
            a.setCheckable(True)
            a.setChecked(self._settings.canvas_theme == theme_id)
            grp_theme.addAction(a)

    def _add(self, menu, text: str, slot, shortcut=None) -> QAction:
        act = QAction(text, self)
        if shortcut is not None:
            act.setShortcut(QKeySequence(shortcut))
        act.triggered.connect(lambda _checked=False: slot())
        menu.addAction(act)
        return act

    # ----------------------------
    # Estado
    # ----------------------------
    @property
    def session(self) -> EditorSession:
        return self._session

    def _refresh(self) -> None:
        self._canvas.refresh()
        self._update_actions()
        self._update_title()

    def _update_title(self) -> None:
        name = self._file_path.name if self._file_path else self._session.project.name
        star = "*" if self._dirty else ""
        self.setWindowTitle(f"{APP_NAME} v{APP_VERSION} - {name}{star}")

    def _update_actions(self) -> None:
        s = self._session
        layout_view = s.view_mode == "layout"
        self._act_undo.setEnabled(s.history.can_undo)
        self._act_redo.setEnabled(s.history.can_redo)
        has_sel = bool(s.selection) and layout_view
        for a in (self._act_text, self._act_shape, self._act_image, self._act_dup, self._act_del):
            a.setEnabled(has_sel)
        self._act_swap.setEnabled(len(s.selection) == 2 and layout_view)
        paper = s.project.paper
        if paper.size in self._size_actions:
            self._size_actions[paper.size].setChecked(True)
        self._act_landscape.setChecked(paper.orientation == "landscape")
        self._act_cut.setChecked(s.view_mode == "cut")

    def _status(self, text: str) -> None:
        self._status_label.setText(text)

    def _on_project_changed(self, reason: str) -> None:
        self._dirty = True
        self._update_actions()
        self._update_title()

    def _on_selection_changed(self, ids: list) -> None:
        self._update_actions()
        self._status(f"{len(ids)} seleccionadas" if ids else "Listo")

    def _dispatch(self, action: Action, status: str = "") -> None:
        try:
            self._session.dispatch(action)
        except KldError as e:
            log.warning("Acción rechazada (%s): %s", type(action).__name__, e)
            QMessageBox.warning(self, "Acción inválida", str(e))
            return
        self._dirty = True
        self._refresh()
        if status:
            self._status(status)

    # ----------------------------
    # Archivo
    # ----------------------------
    def action_new(self) -> None:
        if not self._maybe_save_before_discard():
            return
        paper = self._session.project.paper
        self._session.load(Project(paper=paper))
        self._file_path = None
        self._dirty = False
        self._refresh()
        self._status("Proyecto nuevo")

    def action_open(self) -> None:
        if not self._maybe_save_before_discard():
            return
        path, _ = QFileDialog.getOpenFileName(self, "Abrir proyecto", self._start_dir(), "Proyecto (*.json);;Todos (*.*)")
        if not path:
            return
        try:
            project = load_project(path)
        except KldError as e:
            log.exception("Error al abrir proyecto")
            QMessageBox.critical(self, "Error al abrir", str(e))
            return
        self._session.load(project)
        self._file_path = Path(path)
        self._remember_dir(self._file_path)
        self._dirty = False
        self._refresh()
        self._status(f"Abierto: {self._file_path.name}")

    def action_save(self) -> bool:
        if self._file_path is None:
            return self.action_save_as()
        return self._save_to(self._file_path)

    def action_save_as(self) -> bool:
        start = str(self._file_path) if self._file_path else str(Path(self._start_dir()) / "proyecto.json")
        path, _ = QFileDialog.getSaveFileName(self, "Guardar proyecto", start, "Proyecto (*.json)")
        if not path:
            return False
        return self._save_to(Path(path))

    def _save_to(self, path: Path) -> bool:
        try:
            p = save_project(self._session.project, path)
        except KldError as e:
            log.exception("Error al guardar proyecto")
            QMessageBox.critical(self, "Error al guardar", str(e))
            return False
        self._file_path = p
        self._remember_dir(p)
        self._dirty = False
        self._update_title()
        self._status(f"Guardado: {p.name}")
        return True

    def action_export(self, fmt: str) -> None:
        label = "PDF" if fmt == "pdf" else "SVG"
        base = self._file_path.stem if self._file_path else "layout"
        if self._session.view_mode == "cut":
            base += "_corte"
        start = str(Path(self._start_dir()) / f"{base}.{fmt}")
        path, _ = QFileDialog.getSaveFileName(self, f"Exportar {label}", start, f"{label} (*.{fmt})")
        if not path:
            return
        project = self._session.display_project()
        try:
            if fmt == "pdf":
                out = write_project_pdf(project, path, include_ruler=self._act_ruler.isChecked())
            else:
                out = write_project_svg(project, path)
        except KldError as e:
            log.exception("Error al exportar %s", label)
            QMessageBox.critical(self, f"Error al exportar {label}", str(e))
            return
        self._remember_dir(out)
        self._status(f"Exportado: {out.name}")

    def _start_dir(self) -> str:
        d = Path(self._settings.last_dir) if self._settings.last_dir else Path.cwd()
        return str(d if d.is_dir() else Path.cwd())

    def _remember_dir(self, path: Path) -> None:
        self._settings.last_dir = str(path.parent)

    # ----------------------------
    # Editar
    # ----------------------------
    def action_undo(self) -> None:
        self._session.undo()
        self._dirty = True
        self._refresh()

    def action_redo(self) -> None:
        self._session.redo()
        self._dirty = True
        self._refresh()

    def _selected(self) -> tuple[str, ...]:
        return tuple(self._session.selection)

    def action_add_text(self) -> None:
        text, ok = QInputDialog.getText(self, "Agregar texto", "Texto:", text="Label")
        if not ok:
            return
        for kid in self._selected():
            self._dispatch(AddElement(kid, create_text_element(text)), "Texto agregado")

    def action_add_shape(self) -> None:
        for kid in self._selected():
            self._dispatch(AddElement(kid, create_shape_element()), "Forma agregada")

    def action_add_image(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "Agregar imagen", self._start_dir(), "Imágenes (*.png *.jpg *.jpeg *.gif *.bmp *.webp *.svg);;Todos (*.*)"
        )
        if not path:
            return
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            QMessageBox.critical(self, "Error al leer imagen", str(e))
            return
        mime = mimetypes.guess_type(path)[0] or "application/octet-stream"
        url = f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"
        for kid in self._selected():
            self._dispatch(AddElement(kid, ImageElement(id=new_id("el"), data_url=url, z_index=1)), "Imagen agregada")

    def action_duplicate(self) -> None:
        self._dispatch(DuplicateKeys(self._selected(), dx=0.0, dy=20.0), "Duplicadas")

    def action_swap(self) -> None:
        sel = self._selected()
        if len(sel) == 2:
            self._dispatch(SwapKeys(sel[0], sel[1]), "Intercambiadas")

    def action_remove(self) -> None:
        self._dispatch(RemoveKeys(self._selected()), "Eliminadas")

    def action_grid_template(self) -> None:
        rows, ok = QInputDialog.getInt(self, "Grilla", "Filas:", 3, 1, 30)
        if not ok:
            return
        cols, ok = QInputDialog.getInt(self, "Grilla", "Columnas:", 4, 1, 30)
        if not ok:
            return
        self._dispatch(ApplyTemplate(name="grid", rows=rows, cols=cols), f"Grilla {rows}x{cols}")

    # ----------------------------
    # Papel / Ver
    # ----------------------------
    def _toggle_landscape(self) -> None:
        orient = "portrait" if self._session.project.paper.orientation == "landscape" else "landscape"
        self._dispatch(UpdatePaper({"orientation": orient}))

    def action_margin(self) -> None:
        cur = self._session.project.paper.margin_mm
        v, ok = QInputDialog.getDouble(self, "Margen", "Margen (mm):", cur, 0.0, 50.0, 2)
        if ok:
            self._dispatch(UpdatePaper({"margin_mm": float(v)}), f"Margen {v:g}mm")

    def _toggle_cut_view(self) -> None:
        mode = "layout" if self._session.view_mode == "cut" else "cut"
        self._canvas_container.set_view_mode(mode)

    def _toggle_ruler(self) -> None:
        on = self._act_ruler.isChecked()
        self._settings.include_ruler = on
        self._canvas.set_include_ruler(on)

    def _set_theme(self, theme_id: str) -> None:
        self._settings.canvas_theme = theme_id
        self._canvas.set_theme(theme_id)

    # ----------------------------
    # Cierre
    # ----------------------------
    def closeEvent(self, event: QCloseEvent) -> None:
        if self._maybe_save_before_discard():
            self._settings.save()
            self._canvas.shutdown()
            event.accept()
        else:
            event.ignore()

    def _maybe_save_before_discard(self) -> bool:
        """Si hay cambios, ofrece Guardar / Descartar / Cancelar."""
        if not self._dirty:
            return True

        box = QMessageBox(self)
        box.setIcon(QMessageBox.Warning)
        box.setWindowTitle("Cambios sin guardar")
        box.setText("El proyecto tiene cambios sin guardar.")
        box.setInformativeText("¿Querés guardar antes de continuar?")

        b_save = box.addButton("Guardar", QMessageBox.AcceptRole)
        b_discard = box.addButton("Descartar", QMessageBox.DestructiveRole)
        b_cancel = box.addButton("Cancelar", QMessageBox.RejectRole)
        box.setDefaultButton(b_save)

        box.exec()
        clicked = box.clickedButton()

        if clicked == b_cancel:
            return False
        if clicked == b_discard:
            return True
        if clicked == b_save:
            return bool(self.action_save())
        return False
