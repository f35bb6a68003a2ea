# File: kld/core/templates.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.2.0
# Status: wip
# Date: 2026-09-14
# Purpose: Plantillas de layout (grilla, ANSI/ISO completos y 60%, split Cheapino/Miryoku).
# Notes: Medidas en mm. 1u = DEFAULT_KEY_SIZE_MM, separación DEFAULT_KEY_GAP_MM.
from __future__ import annotations

from typing import Optional, TypedDict

from kld.core.models import Key, KeyType, new_id
from kld.core.version import DEFAULT_KEY_GAP_MM, DEFAULT_KEY_SIZE_MM

UNIT_MM = DEFAULT_KEY_SIZE_MM
GAP_MM = DEFAULT_KEY_GAP_MM
STEP_MM = UNIT_MM + GAP_MM


class CellDef(TypedDict, total=False):
    u: float
    h: float
    type: KeyType


def make_key(
    x: float,
    y: float,
    width: float,
    height: float,
    *,
    key_type: KeyType = "rect",
    rotation: float = 0.0,
) -> Key:
    return Key(id=new_id("key"), x=x, y=y, width=width, height=height, key_type=key_type, rotation=rotation)


def build_grid_template(rows: int, cols: int, key_size_mm: float = UNIT_MM, gap_mm: float = GAP_MM) -> list[Key]:
    keys: list[Key] = []
    for r in range(int(rows)):
        for c in range(int(cols)):
            keys.append(make_key(c * (key_size_mm + gap_mm), r * (key_size_mm + gap_mm), key_size_mm, key_size_mm))
    return keys


def build_matrix_template(rows: list[list[CellDef]], start_x: float = 0.0, start_y: float = 0.0) -> list[Key]:
    """Filas de celdas en unidades (u = ancho, h = alto); x avanza por ancho + gap."""
    keys: list[Key] = []
    for r, row in enumerate(rows):
        x = start_x
        y = start_y + r * STEP_MM
        for cell in row:
            w = cell.get("u", 1.0) * UNIT_MM
            h = cell.get("h", 1.0) * UNIT_MM
            keys.append(make_key(x, y, w, h, key_type=cell.get("type", "rect")))
            x += w + GAP_MM
    return keys


def _row(count: int) -> list[CellDef]:
    return [{} for _ in range(count)]


ANSI_FROW: list[list[CellDef]] = [_row(15)]

ANSI_MAIN_ROWS: list[list[CellDef]] = [
    [*_row(12), {"u": 2}],
    [{"u": 1.5}, *_row(11), {"u": 1.5}],
    [{"u": 1.75}, *_row(11), {"u": 2.25}],
    [{"u": 2.25}, *_row(10), {"u": 2.75}],
    [{"u": 1.25}, {"u": 1.25}, {"u": 1.25}, {"u": 6.25}, {"u": 1.25}, {"u": 1.25}, {"u": 1.25}],
]

ISO_MAIN_ROWS: list[list[CellDef]] = [
    [*_row(12), {"u": 2}],
    [{"u": 1.5}, *_row(11), {"u": 1, "type": "iso-enter"}],
    [{"u": 1.75}, *_row(11), {"u": 1}],
    [{"u": 1.25}, {"u": 1}, *_row(10), {"u": 1, "type": "iso-enter"}],
    [{"u": 1.25}, {"u": 1.25}, {"u": 1.25}, {"u": 6.25}, {"u": 1.25}, {"u": 1.25}, {"u": 1.25}],
]

ARROW_CLUSTER: list[list[CellDef]] = [_row(2), _row(3)]

NUMPAD_CLUSTER: list[list[CellDef]] = [
    _row(4),
    [{}, {}, {}, {"h": 2}],
    [{}, {}, {}, {"h": 2}],
    _row(4),
    [{"u": 2}, {}, {"u": 1, "h": 2}],
    _row(1),
]


def _full_size(main_rows: list[list[CellDef]], *, with_frow: bool) -> list[Key]:
    keys: list[Key] = []
    if with_frow:
        keys.extend(build_matrix_template(ANSI_FROW, 0.0, 0.0))
    keys.extend(build_matrix_template(main_rows, 0.0, STEP_MM))
    arrow_x = 15 * STEP_MM
    keys.extend(build_matrix_template(ARROW_CLUSTER, arrow_x, STEP_MM * 2.5))
    keys.extend(build_matrix_template(NUMPAD_CLUSTER, arrow_x + 4 * STEP_MM, STEP_MM))
    return keys


def build_ansi104_template() -> list[Key]:
    return _full_size(ANSI_MAIN_ROWS, with_frow=True)


def build_iso105_template() -> list[Key]:
    return _full_size(ISO_MAIN_ROWS, with_frow=False)


# Posiciones medidas del 60% ANSI (x, y, ancho, alto) en mm.
ANSI_60_LAYOUT: list[tuple[float, float, float, float]] = [
    *[(i * 13.75, 0.0, 13.5, 13.5) for i in range(12)],
    (165.0, 0.0, 13.5, 13.5),
    (178.75, 0.0, 27.0, 13.5),
    (0.0, 13.75, 20.25, 13.5),
    *[(20.5 + i * 13.75, 13.75, 13.5, 13.5) for i in range(12)],
    (185.5, 13.75, 20.25, 13.5),
    (0.0, 27.5, 23.625, 13.5),
    *[(24.0 + i * 13.75, 27.5, 13.5, 13.5) for i in range(11)],
    (175.25, 27.5, 30.375, 13.5),
    (0.0, 41.25, 30.375, 13.5),
    *[(30.75 + i * 13.75, 41.25, 13.5, 13.5) for i in range(10)],
    (168.5, 41.25, 37.125, 13.5),
    (0.0, 55.0, 16.875, 13.5),
    (17.25, 55.0, 16.875, 13.5),
    (34.5, 55.0, 16.875, 13.5),
    (52.0, 55.0, 84.375, 13.5),
    (137.0, 55.0, 16.875, 13.5),
    (154.25, 55.0, 16.875, 13.5),
    (171.5, 55.0, 16.875, 13.5),
    (188.75, 55.0, 16.9, 13.5),
]


def build_ansi60_template() -> list[Key]:
    return [make_key(x, y, w, h) for x, y, w, h in ANSI_60_LAYOUT]


def build_iso60_template() -> list[Key]:
    return build_matrix_template(ISO_MAIN_ROWS, 0.0, 0.0)


# Mitad izquierda (x, y, rotación). La derecha se espeja.
MIRYOKU_LEFT: list[tuple[float, float, float]] = [
    (27, 32, 0), (27, 48, 0), (27, 64, 0),
    (43, 26, 0), (43, 42, 0), (43, 58, 0),
    (59, 20, 0), (59, 36, 0), (59, 52, 0),
    (75, 26, 0), (75, 42, 0), (75, 58, 0),
    (91, 28, 0), (91, 45, 0), (91, 61, 0),
    # Pulgares
    (82, 82, 0), (99, 83, 6), (116, 86, 12),
]


def build_cheapino_template(paper_width_mm: float, key_size_mm: float = UNIT_MM) -> list[Key]:
    max_left_x = max(x for x, _, _ in MIRYOKU_LEFT)
    min_center = max_left_x + key_size_mm + 6.0
    mirror_line = min(paper_width_mm - key_size_mm - 6.0, min_center + 5.75)

    keys = [make_key(x, y, key_size_mm, key_size_mm, rotation=rot) for x, y, rot in MIRYOKU_LEFT]
    for x, y, rot in MIRYOKU_LEFT:
        keys.append(make_key(mirror_line * 2.0 - x - key_size_mm, y, key_size_mm, key_size_mm, rotation=-rot if rot else 0.0))
    return keys


TEMPLATE_NAMES = ("grid", "ansi104", "iso105", "ansi60", "iso60", "cheapino")

TEMPLATE_LABELS = {
    "grid": "{rows}x{cols} grid",
    "ansi104": "ANSI 104",
    "iso105": "ISO 105",
    "ansi60": "ANSI 60%",
    "iso60": "ISO 60%",
    "cheapino": "Cheapino / Miryoku",
}


def template_label(name: str, rows: Optional[int] = None, cols: Optional[int] = None) -> str:
    return TEMPLATE_LABELS.get(name, name).format(rows=rows, cols=cols)
