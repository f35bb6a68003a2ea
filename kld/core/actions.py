# File: kld/core/actions.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.3.0
# Status: wip
# Date: 2026-09-20
# Purpose: Acciones de edición como valores + aplicación pura (Project, Action) -> Project; sesión del editor.
# Notes:
# - apply_action nunca muta el proyecto recibido (trabaja sobre una copia profunda).
# - EditorSession registra historial antes de cada acción; deshacer/rehacer no pasan por acá.
from __future__ import annotations

import copy

from dataclasses import dataclass, field, fields
from typing import Any, Literal, Mapping, Optional, Sequence, Union

from kld.core.history import HistoryManager
from kld.core.models import (
    FIT_MODES,
    KEY_TYPES,
    TRANSPARENT,
    Key,
    KeyElement,
    PaperSettings,
    Project,
    ShapeElement,
    SnapSettings,
    TextElement,
    _as_align_x,
    _as_align_y,
    _as_color,
    _as_float,
    _as_int,
    _as_opacity,
    _as_positive,
    _opt_float,
    _opt_size,
    new_id,
)
from kld.core import templates
from kld.core.version import DEFAULT_KEY_GAP_MM, DEFAULT_KEY_SIZE_MM, DEFAULT_MARGIN_MM
from kld.geom.cut_sheet import cut_sheet_project
from kld.geom.placement import find_free_slot
from kld.geom.units import PAPER_SIZES_MM
from kld.utils.errors import KldValidationError
from kld.utils.log import get_logger

log = get_logger(__name__)

ViewMode = Literal["layout", "cut"]


# ----------------------------
# Acciones
# ----------------------------

@dataclass(frozen=True)
class AddKey:
    width: float = DEFAULT_KEY_SIZE_MM
    height: float = DEFAULT_KEY_SIZE_MM
    key_type: str = "rect"
    rotation: float = 0.0
    background: str = TRANSPARENT
    key_id: Optional[str] = None


@dataclass(frozen=True)
class UpdateKey:
    key_id: str
    changes: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RemoveKeys:
    key_ids: tuple[str, ...]


@dataclass(frozen=True)
class MoveKeys:
    # (id, x, y) absolutos en mm
    positions: tuple[tuple[str, float, float], ...]


@dataclass(frozen=True)
class NudgeKeys:
    key_ids: tuple[str, ...]
    dx: float = 0.0
    dy: float = 0.0


@dataclass(frozen=True)
class DuplicateKeys:
    key_ids: tuple[str, ...]
    dx: float = 0.0
    dy: float = 20.0


@dataclass(frozen=True)
class SwapKeys:
    first_id: str
    second_id: str


@dataclass(frozen=True)
class AddElement:
    key_id: str
    element: KeyElement


@dataclass(frozen=True)
class UpdateElement:
    key_id: str
    element_id: str
    changes: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RemoveElement:
    key_id: str
    element_id: str


@dataclass(frozen=True)
class UpdatePaper:
    changes: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ApplyTemplate:
    name: str = "grid"
    rows: int = 3
    cols: int = 4
    key_size_mm: float = DEFAULT_KEY_SIZE_MM
    gap_mm: float = DEFAULT_KEY_GAP_MM


Action = Union[
    AddKey,
    UpdateKey,
    RemoveKeys,
    MoveKeys,
    NudgeKeys,
    DuplicateKeys,
    SwapKeys,
    AddElement,
    UpdateElement,
    RemoveElement,
    UpdatePaper,
    ApplyTemplate,
]



# ----------------------------
# Aplicación pura
# ----------------------------

def apply_action(project: Project, action: Action) -> Project:
    """Devuelve un proyecto nuevo con la acción aplicada.

    Ids inexistentes se ignoran (acción sin efecto); valores inválidos
    lanzan KldValidationError sin tocar el proyecto recibido.
    """
    out = copy.deepcopy(project)

    if isinstance(action, AddKey):
        _add_key(out, action)
    elif isinstance(action, UpdateKey):
        key = out.get_key(action.key_id)
        if key is not None:
            _patch(key, action.changes, _KEY_COERCERS, where=f"key {key.id}")
    elif isinstance(action, RemoveKeys):
        drop = set(action.key_ids)
        out.layout.keys = [k for k in out.layout.keys if k.id not in drop]
    elif isinstance(action, MoveKeys):
        for kid, x, y in action.positions:
            key = out.get_key(kid)
            if key is not None:
                key.x, key.y = float(x), float(y)
    elif isinstance(action, NudgeKeys):
        _nudge(out, action)
    elif isinstance(action, DuplicateKeys):
        _duplicate(out, action)
    elif isinstance(action, SwapKeys):
        a = out.get_key(action.first_id)
        b = out.get_key(action.second_id)
        if a is not None and b is not None and a is not b:
            (a.x, a.y), (b.x, b.y) = (b.x, b.y), (a.x, a.y)
    elif isinstance(action, AddElement):
        key = out.get_key(action.key_id)
        if key is not None:
            el = copy.deepcopy(action.element)
            if key.get_element(el.id) is not None:
                raise KldValidationError(f"Elemento duplicado en {key.id}: {el.id!r}")
            key.elements.append(el)
    elif isinstance(action, UpdateElement):
        key = out.get_key(action.key_id)
        el = key.get_element(action.element_id) if key is not None else None
        if el is not None:
            editable = {f.name for f in fields(el) if f.name != "id"}
            coercers = {n: c for n, c in _ELEMENT_COERCERS.items() if n in editable}
            _patch(el, action.changes, coercers, where=f"element {el.id}")
    elif isinstance(action, RemoveElement):
        key = out.get_key(action.key_id)
        if key is not None:
            key.elements = [e for e in key.elements if e.id != action.element_id]
    elif isinstance(action, UpdatePaper):
        _update_paper(out.paper, action.changes)
    elif isinstance(action, ApplyTemplate):
        _apply_template(out, action)
    else:
        raise KldValidationError(f"Acción desconocida: {type(action).__name__}")
    return out


def _add_key(project: Project, action: AddKey) -> None:
    if action.key_type not in KEY_TYPES:
        raise KldValidationError(f"keyType inválido: {action.key_type!r}")
    slot = find_free_slot(project.layout.keys, action.width, action.height)
    key = Key(
        id=action.key_id or new_id("key"),
        x=slot.x,
        y=slot.y,
        width=float(action.width),
        height=float(action.height),
        key_type=action.key_type,  # type: ignore[arg-type]
        rotation=float(action.rotation),
        background=action.background,
    )
    if project.get_key(key.id) is not None:
        raise KldValidationError(f"Tecla duplicada: {key.id!r}")
    project.layout.keys.append(key)


def _patch(target: Any, changes: Mapping[str, Any], coercers: Mapping[str, Any], *, where: str) -> None:
    unknown = [k for k in changes if k not in coercers]
    if unknown:
        raise KldValidationError(f"{where}: campos no editables: {', '.join(sorted(unknown))}")
    # Se coerciona todo antes de asignar: un campo inválido no deja cambios a medias.
    coerced = {name: coercers[name](value, f"{where}.{name}") for name, value in changes.items()}
    for name, value in coerced.items():
        setattr(target, name, value)


def _as_key_type(value: Any, label: str) -> str:
    if value not in KEY_TYPES:
        raise KldValidationError(f"{label} inválido: {value!r}")
    return value


def _as_fit(value: Any, label: str) -> str:
    if value not in FIT_MODES:
        raise KldValidationError(f"{label} inválido: {value!r}")
    return value


def _as_non_negative(value: Any, label: str) -> float:
    v = _as_float(value, label)
    if v < 0:
        raise KldValidationError(f"{label} debe ser >= 0")
    return v


def _as_text(value: Any, label: str) -> str:
    if not isinstance(value, str):
        raise KldValidationError(f"{label} inválido (texto): {value!r}")
    return value


def _as_snap(value: Any, label: str) -> Optional[SnapSettings]:
    if value is None or isinstance(value, SnapSettings):
        if value is not None and _as_float(value.step_mm, f"{label}.step_mm") <= 0:
            raise KldValidationError(f"{label}.step_mm debe ser > 0")
        return value
    raise KldValidationError(f"{label} inválido: {value!r}")


def _corner(value: Any, label: str) -> float:
    return max(0.0, _as_float(value, label))


_KEY_COERCERS = {
    "x": _as_float,
    "y": _as_float,
    "width": _as_positive,
    "height": _as_positive,
    "key_type": _as_key_type,
    "rotation": _as_float,
    "padding": _as_non_negative,
    "corner_radius": _corner,
    "background": _as_color,
}

_ELEMENT_COERCERS = {
    "x": _opt_float,
    "y": _opt_float,
    "width": _opt_size,
    "height": _opt_size,
    "z_index": _as_int,
    "padding": _opt_float,
    "opacity": _as_opacity,
    "text": _as_text,
    "font_family": _as_text,
    "font_size": _as_positive,
    "font_weight": _as_int,
    "color": _as_color,
    "align_x": _as_align_x,
    "align_y": _as_align_y,
    "data_url": _as_text,
    "fit": _as_fit,
    "background": _as_color,
    "corner_radius": _corner,
}

_PAPER_COERCERS = {
    "size": _as_text,
    "orientation": _as_text,
    "margin_mm": _as_non_negative,
    "dpi": _as_positive,
    "snap": _as_snap,
}


def _nudge(project: Project, action: NudgeKeys) -> None:
    snap = project.paper.snap
    step = snap.step_mm if snap is not None and snap.enabled else 0.0
    targets = set(action.key_ids)
    for key in project.layout.keys:
        if key.id not in targets:
            continue
        nx = key.x + float(action.dx)
        ny = key.y + float(action.dy)
        if step:
            nx = round(nx / step) * step
            ny = round(ny / step) * step
        key.x, key.y = nx, ny


def _duplicate(project: Project, action: DuplicateKeys) -> None:
    targets = set(action.key_ids)
    sources = [k for k in project.layout.keys if k.id in targets]
    for src in sources:
        dup = copy.deepcopy(src)
        dup.id = new_id("key")
        dup.x = src.x + float(action.dx)
        dup.y = src.y + float(action.dy)
        for el in dup.elements:
            el.id = new_id("el")
        project.layout.keys.append(dup)


def _update_paper(paper: PaperSettings, changes: Mapping[str, Any]) -> None:
    _patch(paper, changes, _PAPER_COERCERS, where="paper")
    if paper.size not in PAPER_SIZES_MM:
        raise KldValidationError(f"paper.size inválido: {paper.size!r}")
    if paper.orientation not in ("portrait", "landscape"):
        raise KldValidationError(f"paper.orientation inválido: {paper.orientation!r}")


def _apply_template(project: Project, action: ApplyTemplate) -> None:
    name = action.name
    paper = project.paper
    if name == "grid":
        if action.rows < 1 or action.cols < 1:
            raise KldValidationError("La grilla necesita al menos 1 fila y 1 columna")
        keys = templates.build_grid_template(action.rows, action.cols, action.key_size_mm, action.gap_mm)
    elif name in ("ansi104", "iso105"):
        keys = templates.build_ansi104_template() if name == "ansi104" else templates.build_iso105_template()
        if paper.size == "A4":
            paper.size = "A3"
        paper.orientation = "landscape"
    elif name in ("ansi60", "iso60"):
        keys = templates.build_ansi60_template() if name == "ansi60" else templates.build_iso60_template()
        paper.orientation = "landscape"
    elif name == "cheapino":
        paper.size = "A4"
        paper.orientation = "landscape"
        paper.margin_mm = DEFAULT_MARGIN_MM
        paper.snap = SnapSettings(enabled=True, step_mm=1.0)
        page_w, _ = paper.page_size_mm()
        keys = templates.build_cheapino_template(page_w)
    else:
        raise KldValidationError(f"Plantilla desconocida: {name!r}")
    project.layout.keys = keys
    project.layout.name = templates.template_label(name, action.rows, action.cols)
    log.info("Plantilla %s aplicada (%d teclas)", name, len(keys))


# ----------------------------
# Fábricas de elementos
# ----------------------------

_SLOTS: dict[str, tuple[str, str]] = {
    "top-left": ("left", "top"),
    "top-center": ("center", "top"),
    "top-right": ("right", "top"),
    "middle-left": ("left", "center"),
    "middle-center": ("center", "center"),
    "middle-right": ("right", "center"),
    "bottom-left": ("left", "bottom"),
    "bottom-center": ("center", "bottom"),
    "bottom-right": ("right", "bottom"),
}


def create_text_element(text: str = "Label", slot: Optional[str] = None) -> TextElement:
    """Texto que ocupa toda la tecla, alineado según `slot` (por defecto centrado)."""
    align_x, align_y = _SLOTS.get(slot or "", ("center", "center"))
    return TextElement(
        id=new_id("el"),
        text=text,
        padding=2.0,
        z_index=2,
        align_x=align_x,  # type: ignore[arg-type]
        align_y=align_y,  # type: ignore[arg-type]
    )


def create_shape_element(color: str = "#243142") -> ShapeElement:
    return ShapeElement(id=new_id("el"), background=color, corner_radius=2.0, z_index=0)


# ----------------------------
# Sesión del editor
# ----------------------------

class EditorSession:
    """Estado vivo del editor: proyecto actual, historial, selección y vista."""

    def __init__(self, project: Optional[Project] = None, *, history_depth: Optional[int] = None) -> None:
        self.project: Project = project if project is not None else Project()
        self.history = HistoryManager(history_depth)
        self.selection: list[str] = []
        self.view_mode: ViewMode = "layout"

    def dispatch(self, action: Action) -> Project:
        self.project = self.history.commit(self.project, lambda p: apply_action(p, action))
        self._prune_selection()
        return self.project

    def undo(self) -> Project:
        self.project = self.history.undo(self.project)
        self._prune_selection()
        return self.project

    def redo(self) -> Project:
        self.project = self.history.redo(self.project)
        self._prune_selection()
        return self.project

    def load(self, project: Project) -> None:
        self.project = project
        self.history.clear()
        self.selection = []

    def select(self, key_ids: Sequence[str]) -> None:
        known = {k.id for k in self.project.layout.keys}
        self.selection = [k for k in key_ids if k in known]

    def set_view_mode(self, mode: ViewMode) -> None:
        if mode not in ("layout", "cut"):
            raise KldValidationError(f"Vista inválida: {mode!r}")
        self.view_mode = mode

    def display_project(self) -> Project:
        """Proyecto a mostrar/exportar según la vista (cut = hoja de corte)."""
        if self.view_mode == "cut":
            return cut_sheet_project(self.project)
        return self.project

    def _prune_selection(self) -> None:
        known = {k.id for k in self.project.layout.keys}
        self.selection = [k for k in self.selection if k in known]
