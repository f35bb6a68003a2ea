# File: kld/core/models.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.4.0
# Status: stable
# Date: 2026-10-02
# Purpose: Modelos de datos del proyecto (papel + layout de teclas + elementos).
# Notes: El documento JSON usa camelCase (formato portable); from_dict valida todo o nada.
from __future__ import annotations

import re
import uuid

from dataclasses import dataclass, field
from typing import Any, ClassVar, Iterable, Literal, Optional, Union

from kld.core.version import (
    DEFAULT_DPI,
    DEFAULT_KEY_CORNER_MM,
    DEFAULT_KEY_PADDING_MM,
    DEFAULT_MARGIN_MM,
)
from kld.geom.units import PAPER_SIZES_MM, paper_size_mm
from kld.utils.errors import KldSchemaError

PaperSize = Literal["A4", "Letter", "A3", "Tabloid"]
Orientation = Literal["portrait", "landscape"]
KeyType = Literal["rect", "iso-enter", "big-enter"]
FitMode = Literal["contain", "cover"]
AlignX = Literal["left", "center", "right"]
AlignY = Literal["top", "center", "bottom"]

KEY_TYPES = ("rect", "iso-enter", "big-enter")
ELEMENT_TYPES = ("text", "image", "shape")
FIT_MODES = ("contain", "cover")
ALIGN_X = ("left", "center", "right")
ALIGN_Y = ("top", "center", "bottom")

TRANSPARENT = "transparent"
_HEX_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


def new_id(prefix: str = "key") -> str:
    """Genera un id corto y único.

    Nota: se usa UUID truncado para evitar colisiones sin depender de estado global.
    """
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


@dataclass
class SnapSettings:
    enabled: bool = True
    step_mm: float = 2.0

    def to_dict(self) -> dict[str, Any]:
        return {"enabled": bool(self.enabled), "mm": float(self.step_mm)}

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "SnapSettings":
        if not isinstance(d, dict):
            raise KldSchemaError("paper.snap inválido: se espera objeto")
        step = _as_float(d.get("mm", 2.0), "paper.snap.mm")
        if step <= 0:
            raise KldSchemaError("paper.snap.mm inválido: debe ser > 0")
        return SnapSettings(enabled=bool(d.get("enabled", True)), step_mm=step)


@dataclass
class PaperSettings:
    size: PaperSize = "A4"
    orientation: Orientation = "portrait"
    margin_mm: float = DEFAULT_MARGIN_MM
    dpi: float = DEFAULT_DPI
    snap: Optional[SnapSettings] = None

    def page_size_mm(self) -> tuple[float, float]:
        """(ancho, alto) físico de la hoja en mm, con la orientación aplicada."""
        return paper_size_mm(self.size, self.orientation)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "size": str(self.size),
            "orientation": str(self.orientation),
            "marginMm": float(self.margin_mm),
            "dpi": float(self.dpi),
        }
        if self.snap is not None:
            d["snap"] = self.snap.to_dict()
        return d

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "PaperSettings":
        if not isinstance(d, dict):
            raise KldSchemaError("paper inválido: se espera objeto")
        size = d.get("size", "A4")
        if size not in PAPER_SIZES_MM:
            raise KldSchemaError(f"paper.size inválido: {size!r}")
        orientation = d.get("orientation") or "portrait"
        if orientation not in ("portrait", "landscape"):
            raise KldSchemaError(f"paper.orientation inválido: {orientation!r}")
        margin = _as_float(d.get("marginMm", DEFAULT_MARGIN_MM), "paper.marginMm")
        if margin < 0:
            raise KldSchemaError("paper.marginMm inválido: debe ser >= 0")
        dpi = _as_float(d.get("dpi", DEFAULT_DPI), "paper.dpi")
        if dpi <= 0:
            raise KldSchemaError("paper.dpi inválido: debe ser > 0")
        snap_raw = d.get("snap")
        snap = SnapSettings.from_dict(snap_raw) if snap_raw is not None else None
        return PaperSettings(
            size=size,
            orientation=orientation,
            margin_mm=margin,
            dpi=dpi,
            snap=snap,
        )


# ----------------------------
# Elementos (variantes cerradas)
# ----------------------------

@dataclass
class ElementBase:
    """Campos comunes. x/y/width/height en mm relativos a la tecla.

    width/height = None significa "todo el ancho/alto de la tecla".
    padding = None hereda el padding de la tecla.
    """

    kind: ClassVar[str] = ""

    id: str = field(default_factory=lambda: new_id("el"))
    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    z_index: int = 0
    padding: Optional[float] = None
    opacity: float = 1.0

    def _base_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": str(self.id),
            "type": self.kind,
            "x": float(self.x or 0.0),
            "y": float(self.y or 0.0),
            "zIndex": int(self.z_index),
            "opacity": float(self.opacity),
        }
        if self.width is not None:
            d["width"] = float(self.width)
        if self.height is not None:
            d["height"] = float(self.height)
        if self.padding is not None:
            d["padding"] = float(self.padding)
        return d


@dataclass
class TextElement(ElementBase):
    kind: ClassVar[str] = "text"

    text: str = "Label"
    font_family: str = "Inter"
    font_size: float = 11.0  # pt
    font_weight: int = 600
    color: str = "#f8fafc"
    align_x: AlignX = "center"
    align_y: AlignY = "center"

    def to_dict(self) -> dict[str, Any]:
        d = self._base_dict()
        d.update(
            {
                "text": str(self.text),
                "fontFamily": str(self.font_family),
                "fontSize": float(self.font_size),
                "fontWeight": int(self.font_weight),
                "color": str(self.color),
                "align": str(self.align_x),
                "alignY": str(self.align_y),
            }
        )
        return d


@dataclass
class ImageElement(ElementBase):
    kind: ClassVar[str] = "image"

    data_url: str = ""
    fit: FitMode = "contain"
    align_x: AlignX = "center"
    align_y: AlignY = "center"

    def to_dict(self) -> dict[str, Any]:
        d = self._base_dict()
        d.update(
            {
                "dataUrl": str(self.data_url),
                "fit": str(self.fit),
                "alignX": str(self.align_x),
                "alignY": str(self.align_y),
            }
        )
        return d


@dataclass
class ShapeElement(ElementBase):
    kind: ClassVar[str] = "shape"

    background: str = "#1e293b"
    corner_radius: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        d = self._base_dict()
        d.update({"background": str(self.background), "cornerRadius": float(self.corner_radius)})
        return d


KeyElement = Union[TextElement, ImageElement, ShapeElement]


def element_from_dict(d: dict[str, Any], *, where: str = "element") -> KeyElement:
    if not isinstance(d, dict):
        raise KldSchemaError(f"{where} inválido: se espera objeto")
    eid = str(d.get("id", "")).strip()
    if not eid:
        raise KldSchemaError(f"{where} inválido: falta 'id'")
    etype = d.get("type")
    if etype not in ELEMENT_TYPES:
        raise KldSchemaError(f"{where} {eid!r}: type inválido: {etype!r}")

    base: dict[str, Any] = {
        "id": eid,
        "x": _opt_float(d.get("x"), f"{where}.x"),
        "y": _opt_float(d.get("y"), f"{where}.y"),
        # 0 o ausente = tamaño completo de la tecla (compat documentos viejos)
        "width": _opt_size(d.get("width"), f"{where}.width"),
        "height": _opt_size(d.get("height"), f"{where}.height"),
        "z_index": _as_int(d.get("zIndex", 0), f"{where}.zIndex"),
        "padding": _opt_float(d.get("padding"), f"{where}.padding"),
        "opacity": _as_opacity(d.get("opacity", 1.0), f"{where}.opacity"),
    }

    if etype == "text":
        return TextElement(
            **base,
            text=str(d.get("text", "")),
            font_family=str(d.get("fontFamily") or "Inter"),
            font_size=_as_positive(d.get("fontSize", 11.0), f"{where}.fontSize"),
            font_weight=_as_int(d.get("fontWeight", 400), f"{where}.fontWeight"),
            color=_as_color(d.get("color", "#f8fafc"), f"{where}.color"),
            align_x=_as_align_x(d.get("align", d.get("alignX", "center")), f"{where}.align"),
            align_y=_as_align_y(d.get("alignY", "center"), f"{where}.alignY"),
        )
    if etype == "image":
        fit = d.get("fit", "contain")
        if fit not in FIT_MODES:
            raise KldSchemaError(f"{where}.fit inválido: {fit!r}")
        data_url = d.get("dataUrl", "")
        if not isinstance(data_url, str):
            raise KldSchemaError(f"{where}.dataUrl inválido: se espera string")
        return ImageElement(
            **base,
            data_url=data_url,
            fit=fit,
            align_x=_as_align_x(d.get("alignX", "center"), f"{where}.alignX"),
            align_y=_as_align_y(d.get("alignY", "center"), f"{where}.alignY"),
        )
    return ShapeElement(
        **base,
        background=_as_color(d.get("background", "#1e293b"), f"{where}.background"),
        corner_radius=max(0.0, _as_float(d.get("cornerRadius", 0.0), f"{where}.cornerRadius")),
    )


# ----------------------------
# Teclas / layout / proyecto
# ----------------------------

@dataclass
class Key:
    id: str = field(default_factory=lambda: new_id("key"))
    x: float = 0.0
    y: float = 0.0
    width: float = 13.5
    height: float = 13.5
    key_type: KeyType = "rect"
    rotation: float = 0.0  # grados, horario positivo
    padding: float = DEFAULT_KEY_PADDING_MM
    corner_radius: float = DEFAULT_KEY_CORNER_MM
    background: str = TRANSPARENT
    elements: list[KeyElement] = field(default_factory=list)

    def has_fill(self) -> bool:
        return bool(self.background) and self.background != TRANSPARENT

    def get_element(self, element_id: str) -> KeyElement | None:
        for el in self.elements:
            if el.id == element_id:
                return el
        return None

    def next_z(self) -> int:
        if not self.elements:
            return 0
        return int(max(e.z_index for e in self.elements)) + 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "x": float(self.x),
            "y": float(self.y),
            "width": float(self.width),
            "height": float(self.height),
            "keyType": str(self.key_type),
            "rotation": float(self.rotation),
            "padding": float(self.padding),
            "cornerRadius": float(self.corner_radius),
            "background": str(self.background),
            "elements": [e.to_dict() for e in self.elements],
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Key":
        if not isinstance(d, dict):
            raise KldSchemaError("Tecla inválida: se esperaba dict")
        kid = str(d.get("id", "")).strip()
        if not kid:
            raise KldSchemaError("Tecla inválida: falta 'id'")
        where = f"keys[{kid}]"

        width = _as_float(d.get("width"), f"{where}.width")
        height = _as_float(d.get("height"), f"{where}.height")
        if width <= 0 or height <= 0:
            raise KldSchemaError(f"{where}: width/height deben ser > 0")

        key_type = d.get("keyType") or "rect"
        if key_type not in KEY_TYPES:
            raise KldSchemaError(f"{where}.keyType inválido: {key_type!r}")

        padding = _as_float(d.get("padding", DEFAULT_KEY_PADDING_MM), f"{where}.padding")
        if padding < 0:
            raise KldSchemaError(f"{where}.padding inválido: debe ser >= 0")

        elements_raw = d.get("elements", [])
        if not isinstance(elements_raw, list):
            raise KldSchemaError(f"{where}.elements inválido: se espera lista")
        elements = [element_from_dict(e, where=f"{where}.elements[{i}]") for i, e in enumerate(elements_raw)]
        _uniq_ids((e.id for e in elements), f"{where}.elements[]")

        return Key(
            id=kid,
            x=_as_float(d.get("x", 0.0), f"{where}.x"),
            y=_as_float(d.get("y", 0.0), f"{where}.y"),
            width=width,
            height=height,
            key_type=key_type,
            rotation=_as_float(d.get("rotation") or 0.0, f"{where}.rotation"),
            padding=padding,
            corner_radius=max(0.0, _as_float(d.get("cornerRadius", DEFAULT_KEY_CORNER_MM), f"{where}.cornerRadius")),
            background=_as_color(d.get("background") or TRANSPARENT, f"{where}.background"),
            elements=elements,
        )


@dataclass
class Layout:
    id: str = field(default_factory=lambda: new_id("layout"))
    name: str = "New Layout"
    keys: list[Key] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"id": str(self.id), "name": str(self.name), "keys": [k.to_dict() for k in self.keys]}

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Layout":
        if not isinstance(d, dict):
            raise KldSchemaError("layout inválido: se espera objeto")
        keys_raw = d.get("keys")
        if not isinstance(keys_raw, list):
            raise KldSchemaError("layout.keys inválido: se espera lista")
        keys = [Key.from_dict(k) for k in keys_raw]
        _uniq_ids((k.id for k in keys), "layout.keys[]")
        return Layout(
            id=str(d.get("id") or new_id("layout")),
            name=str(d.get("name") or "New Layout"),
            keys=keys,
        )


@dataclass
class Project:
    id: str = field(default_factory=lambda: new_id("prj"))
    name: str = "Keyboarder"
    paper: PaperSettings = field(default_factory=PaperSettings)
    layout: Layout = field(default_factory=lambda: Layout(name="Macro Pad"))

    def get_key(self, key_id: str) -> Key | None:
        for k in self.layout.keys:
            if k.id == key_id:
                return k
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "name": str(self.name),
            "paper": self.paper.to_dict(),
            "layout": self.layout.to_dict(),
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Project":
        """Construye un Project validado. Cualquier error rechaza el documento entero."""
        if not isinstance(d, dict):
            raise KldSchemaError("Proyecto inválido: raíz no es objeto JSON")
        missing = [k for k in ("paper", "layout") if k not in d]
        if missing:
            raise KldSchemaError(f"Proyecto inválido: faltan claves requeridas: {', '.join(missing)}")
        return Project(
            id=str(d.get("id") or new_id("prj")),
            name=str(d.get("name") or "Keyboarder"),
            paper=PaperSettings.from_dict(d["paper"]),
            layout=Layout.from_dict(d["layout"]),
        )


# ----------------------------
# Helpers de validación
# ----------------------------

def _as_float(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise KldSchemaError(f"Campo {field} inválido (float): {value!r}")
    try:
        out = float(value)
    except (TypeError, ValueError) as e:
        raise KldSchemaError(f"Campo {field} inválido (float): {value!r}") from e
    if out != out or out in (float("inf"), float("-inf")):
        raise KldSchemaError(f"Campo {field} inválido (no finito): {value!r}")
    return out


def _as_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise KldSchemaError(f"Campo {field} inválido (int): {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise KldSchemaError(f"Campo {field} inválido (int): {value!r}") from e


def _as_positive(value: Any, field: str) -> float:
    v = _as_float(value, field)
    if v <= 0:
        raise KldSchemaError(f"Campo {field} inválido: debe ser > 0")
    return v


def _opt_float(value: Any, field: str) -> Optional[float]:
    if value is None:
        return None
    return _as_float(value, field)


def _opt_size(value: Any, field: str) -> Optional[float]:
    v = _opt_float(value, field)
    if v is None or v <= 0:
        return None
    return v


def _as_opacity(value: Any, field: str) -> float:
    v = _as_float(value, field)
    return max(0.0, min(1.0, v))


def _as_color(value: Any, field: str) -> str:
    s = str(value or "").strip()
    if s.lower() == TRANSPARENT:
        return TRANSPARENT
    if not _HEX_RE.match(s):
        raise KldSchemaError(f"Campo {field} inválido (color hex): {value!r}")
    return s


def _as_align_x(value: Any, field: str) -> AlignX:
    s = str(value or "center").strip().lower()
    if s not in ALIGN_X:
        raise KldSchemaError(f"Campo {field} inválido: {value!r}")
    return s  # type: ignore[return-value]


def _as_align_y(value: Any, field: str) -> AlignY:
    s = str(value or "center").strip().lower()
    if s == "middle":
        s = "center"
    if s not in ALIGN_Y:
        raise KldSchemaError(f"Campo {field} inválido: {value!r}")
    return s  # type: ignore[return-value]


def _uniq_ids(ids: Iterable[str], where: str) -> None:
    seen: set[str] = set()
    for i in ids:
        if i in seen:
            raise KldSchemaError(f"IDs duplicados en {where}: {i!r}")
        seen.add(i)
