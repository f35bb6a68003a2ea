# File: kld/geom/cut_sheet.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.2.1
# Status: stable
# Date: 2026-09-10
# Purpose: Hoja de corte: reacomoda todas las teclas en filas, sin rotación, para cortar fácil.
# Notes: Nunca muta el layout de entrada; devuelve copias profundas.
from __future__ import annotations

import copy
import math

from typing import TYPE_CHECKING, Optional, Sequence

from kld.core.settings import env_float
from kld.core.version import CUT_SHEET_GAP_MM

if TYPE_CHECKING:  # pragma: no cover
    from kld.core.models import Key, Project


def cut_sheet_gap_mm() -> float:
    return env_float("KLD_CUT_SHEET_GAP_MM", CUT_SHEET_GAP_MM, min_value=0.0, max_value=50.0)


def reflow_cut_sheet(
    keys: Sequence["Key"],
    page_width_mm: float,
    margin_mm: float,
    gap_mm: Optional[float] = None,
) -> list["Key"]:
    """Empaque fila-mayor de las teclas.

    Orden por (y, x); celda = (ancho máx + gap) x (alto máx + gap);
    teclas por fila = max(1, floor((ancho útil + gap) / (ancho máx + gap))).
    Cada tecla sale en (margen + col*paso_x, margen + fila*paso_y) con rotación 0.
    Como cada tecla entra en su celda, los bbox no se solapan.
    """
    if not keys:
        return []
    gap = cut_sheet_gap_mm() if gap_mm is None else max(0.0, float(gap_mm))
    margin = float(margin_mm)
    usable_width = float(page_width_mm) - margin * 2.0

    ordered = sorted(keys, key=lambda k: (k.y, k.x))
    max_w = max(k.width for k in ordered)
    max_h = max(k.height for k in ordered)
    per_row = max(1, int(math.floor((usable_width + gap) / (max_w + gap))))

    out: list["Key"] = []
    for idx, key in enumerate(ordered):
        row, col = divmod(idx, per_row)
        placed = copy.deepcopy(key)
        placed.x = margin + col * (max_w + gap)
        placed.y = margin + row * (max_h + gap)
        placed.rotation = 0.0
        out.append(placed)
    return out


def cut_sheet_project(project: "Project", gap_mm: Optional[float] = None) -> "Project":
    """Copia del proyecto con el layout reemplazado por la hoja de corte."""
    clone = copy.deepcopy(project)
    page_w, _ = project.paper.page_size_mm()
    clone.layout.keys = reflow_cut_sheet(project.layout.keys, page_w, project.paper.margin_mm, gap_mm)
    clone.layout.name = f"{project.layout.name or 'Layout'} (cut sheet)"
    return clone
