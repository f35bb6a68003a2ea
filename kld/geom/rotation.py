# File: kld/geom/rotation.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.2.0
# Status: stable
# Date: 2026-09-05
# Purpose: Rotación de puntos alrededor del centro de la tecla (una sola implementación para los 3 destinos).
# Notes: El ángulo del modelo es horario-positivo (mm, y hacia abajo). El sentido del destino se pasa explícito.
from __future__ import annotations

import math

from enum import Enum
from typing import Iterable

Point = tuple[float, float]


class RotationSense(str, Enum):
    """Sentido positivo nativo del marco de destino.

    - clockwise: marcos y-abajo (mm del modelo, píxeles, SVG).
    - counter_clockwise: marcos y-arriba (PDF).
    """

    CLOCKWISE = "clockwise"
    COUNTER_CLOCKWISE = "counter_clockwise"


def signed_angle(angle_deg: float, sense: RotationSense = RotationSense.CLOCKWISE) -> float:
    """Ángulo del modelo expresado en la convención del destino."""
    a = float(angle_deg or 0.0)
    if sense == RotationSense.COUNTER_CLOCKWISE:
        return -a
    return a


def rotate_points(
    points: Iterable[Point],
    width: float,
    height: float,
    angle_deg: float,
    *,
    sense: RotationSense = RotationSense.CLOCKWISE,
) -> list[Point]:
    """Rota `points` alrededor de (width/2, height/2) del mismo marco local.

    Matriz 2D estándar con el ángulo ya convertido al sentido del destino:
    en un marco y-abajo el giro se ve horario; en uno y-arriba (PDF) el
    ángulo se niega para que el resultado visual sea el mismo.
    Rotación 0 devuelve los puntos tal cual (sin ruido de coma flotante).
    """
    pts = list(points)
    if not angle_deg:
        return pts
    a = math.radians(signed_angle(angle_deg, sense))
    c = math.cos(a)
    s = math.sin(a)
    cx = float(width) / 2.0
    cy = float(height) / 2.0
    out: list[Point] = []
    for x, y in pts:
        dx = x - cx
        dy = y - cy
        out.append((cx + dx * c - dy * s, cy + dx * s + dy * c))
    return out
