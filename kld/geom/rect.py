# File: kld/geom/rect.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.1.0
# Status: stable
# Date: 2026-09-03
# Purpose: Rectángulo inmutable en mm (y hacia abajo) y helpers de intersección.
# Notes: Ancho/alto negativos son válidos (rect degenerado = no se dibuja).
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0.0 or self.height <= 0.0

    def center(self) -> tuple[float, float]:
        return self.x + self.width / 2.0, self.y + self.height / 2.0

    def corners(self) -> list[tuple[float, float]]:
        """Esquinas en sentido horario (y hacia abajo) desde arriba-izquierda."""
        return [(self.x, self.y), (self.right, self.y), (self.right, self.bottom), (self.x, self.bottom)]

    def expanded(self, by: float) -> "Rect":
        return Rect(self.x - by, self.y - by, self.width + 2.0 * by, self.height + 2.0 * by)

    def translated(self, dx: float, dy: float) -> "Rect":
        return Rect(self.x + dx, self.y + dy, self.width, self.height)

    def overlaps(self, other: "Rect") -> bool:
        """Intersección con área > 0 (tocar un borde no cuenta)."""
        return (
            self.x < other.right
            and other.x < self.right
            and self.y < other.bottom
            and other.y < self.bottom
        )


def bounding_rect(points: list[tuple[float, float]]) -> Rect:
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return Rect(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))
