# File: kld/geom/element_box.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.2.0
# Status: stable
# Date: 2026-09-06
# Purpose: Rectángulo de dibujo de un elemento dentro de su tecla (padding heredado o propio).
# Notes: El padding se resta simétrico; ancho/alto negativos = rect degenerado, no error.
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from kld.geom.rect import Rect

if TYPE_CHECKING:  # pragma: no cover
    from kld.core.models import Key, KeyElement


def effective_padding(element_padding: Optional[float], key_padding: Optional[float]) -> float:
    """Padding del elemento si existe; si no, el de la tecla; si no, 0."""
    if element_padding is not None:
        return float(element_padding)
    if key_padding is not None:
        return float(key_padding)
    return 0.0


def element_rect(
    key_width: float,
    key_height: float,
    *,
    x: Optional[float] = None,
    y: Optional[float] = None,
    width: Optional[float] = None,
    height: Optional[float] = None,
    padding: float = 0.0,
) -> Rect:
    """Rect local (mm) = offset/tamaño del elemento menos padding en los 4 lados.

    Offset ausente = 0; tamaño ausente (None o 0) = tamaño completo de la tecla.
    """
    x0 = float(x or 0.0)
    y0 = float(y or 0.0)
    w = float(width) if width else float(key_width)
    h = float(height) if height else float(key_height)
    p = float(padding)
    return Rect(x0 + p, y0 + p, w - 2.0 * p, h - 2.0 * p)


def place_element(element: "KeyElement", key: "Key") -> Rect:
    return element_rect(
        key.width,
        key.height,
        x=element.x,
        y=element.y,
        width=element.width,
        height=element.height,
        padding=effective_padding(element.padding, key.padding),
    )
