# File: kld/geom/placement.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.2.0
# Status: stable
# Date: 2026-09-10
# Purpose: Primer hueco libre en grilla para una tecla nueva.
# Notes: Si no hay hueco dentro del área de búsqueda se cae a la primera celda (solape aceptado, found=False).
from __future__ import annotations

import logging

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional

from kld.core.settings import env_float
from kld.core.version import DEFAULT_KEY_GAP_MM, PLACEMENT_SCAN_MAX_MM
from kld.geom.rect import Rect
from kld.utils.errors import KldGeometryError

if TYPE_CHECKING:  # pragma: no cover
    from kld.core.models import Key

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacementResult:
    x: float
    y: float
    found: bool  # False = fallback a la primera celda (puede solapar)


def placement_gap_mm() -> float:
    return env_float("KLD_PLACEMENT_GAP_MM", DEFAULT_KEY_GAP_MM, min_value=0.0, max_value=50.0)


def find_free_slot(
    existing: Iterable["Key"],
    width: float,
    height: float,
    *,
    gap_mm: Optional[float] = None,
    max_extent_mm: tuple[float, float] = PLACEMENT_SCAN_MAX_MM,
) -> PlacementResult:
    """(x, y) lexicográficamente menor en (y, x) sobre la grilla (ancho+gap, alto+gap).

    Un candidato choca si su rect, ampliado por `gap`, se solapa con el de
    alguna tecla existente (tocar borde no es choque).
    """
    w = float(width)
    h = float(height)
    if w <= 0.0 or h <= 0.0:
        raise KldGeometryError(f"Tamaño de tecla inválido: {w!r} x {h!r}")
    gap = placement_gap_mm() if gap_mm is None else max(0.0, float(gap_mm))

    # Separación mínima = gap entre bordes: alcanza con ampliar el obstáculo por gap.
    obstacles = [Rect(k.x, k.y, k.width, k.height).expanded(gap) for k in existing]
    step_x = w + gap
    step_y = h + gap
    max_x, max_y = (float(max_extent_mm[0]), float(max_extent_mm[1]))

    row = 0
    while row * step_y < max_y:
        y = row * step_y
        col = 0
        while col * step_x < max_x:
            x = col * step_x
            cand = Rect(x, y, w, h)
            if not any(cand.overlaps(o) for o in obstacles):
                return PlacementResult(x, y, True)
            col += 1
        row += 1

    log.warning("Sin hueco libre para %.2fx%.2fmm dentro de %sx%smm: se usa (0, 0)", w, h, max_x, max_y)
    return PlacementResult(0.0, 0.0, False)
