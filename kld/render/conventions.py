# File: kld/render/conventions.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.3.0
# Status: stable
# Date: 2026-09-16
# Purpose: Convenciones de coordenadas por destino (píxeles, puntos PDF, mm SVG) sobre una sola geometría en mm.
# Notes:
# - Modelo: mm, origen arriba-izquierda, y hacia abajo, rotación horaria positiva.
# - Cada destino declara escala, sentido de y y sentido de rotación; la matemática vive en kld.geom.
from __future__ import annotations

from dataclasses import dataclass

from kld.geom.rect import Rect
from kld.geom.rotation import Point, RotationSense, rotate_points, signed_angle
from kld.geom.units import MM_PER_INCH, POINTS_PER_INCH

ORIGIN_TOP_LEFT = "top-left"
ORIGIN_BOTTOM_LEFT = "bottom-left"


@dataclass(frozen=True)
class KeyPlacement:
    """Marco local de una tecla ya convertido al destino.

    `origin`: esquina local (0, 0) tras rotar, en unidades del destino.
    `center`: centro de la tecla sin rotar, en unidades del destino.
    `angle`: ángulo en la convención del destino.
    Dibujar en el marco local = trasladar a `origin`, rotar `angle` y usar
    `local()`/`local_rect()` para cada coordenada.
    """

    origin: Point
    center: Point
    angle: float
    scale: float
    y_sign: float

    def local(self, x_mm: float, y_mm: float) -> Point:
        return (x_mm * self.scale, y_mm * self.scale * self.y_sign)

    def local_points(self, points: list[Point]) -> list[Point]:
        return [self.local(x, y) for x, y in points]

    def local_rect(self, rect: Rect) -> tuple[float, float, float, float]:
        """(x, y, w, h) del rect con alto positivo: y es el borde de menor coordenada del destino."""
        w = rect.width * self.scale
        h = rect.height * self.scale
        x = rect.x * self.scale
        if self.y_sign < 0:
            return (x, -(rect.y + rect.height) * self.scale, w, h)
        return (x, rect.y * self.scale, w, h)


@dataclass(frozen=True)
class CoordinatePolicy:
    """Adaptador mm -> destino.

    - `scale`: unidades del destino por mm.
    - `origin`: top-left (y abajo) o bottom-left (y arriba, se espeja con el alto de página).
    - `sense`: sentido positivo nativo de la rotación del destino.
    - `offset`: corrimiento en unidades del destino (pan del lienzo).
    """

    name: str
    scale: float
    page_height_mm: float
    origin: str = ORIGIN_TOP_LEFT
    sense: RotationSense = RotationSense.CLOCKWISE
    offset: Point = (0.0, 0.0)

    @property
    def y_up(self) -> bool:
        return self.origin == ORIGIN_BOTTOM_LEFT

    def length(self, mm: float) -> float:
        return float(mm) * self.scale

    def point(self, x_mm: float, y_mm: float) -> Point:
        """Punto de página (mm, modelo) -> destino."""
        y = (self.page_height_mm - y_mm) if self.y_up else y_mm
        return (self.offset[0] + x_mm * self.scale, self.offset[1] + y * self.scale)

    def rect(self, rect: Rect) -> tuple[float, float, float, float]:
        """Rect de página -> (x, y, w, h) del destino; en y-arriba y es el borde inferior."""
        if self.y_up:
            x, y = self.point(rect.x, rect.bottom)
        else:
            x, y = self.point(rect.x, rect.y)
        return (x, y, rect.width * self.scale, rect.height * self.scale)

    def angle(self, rotation_deg: float) -> float:
        return signed_angle(rotation_deg, self.sense)

    def place_key(self, x_mm: float, y_mm: float, width: float, height: float, rotation: float) -> KeyPlacement:
        """Marco local de la tecla cuya esquina sin rotar cae en (x_mm, y_mm) de página."""
        ox, oy = rotate_points([(0.0, 0.0)], width, height, rotation)[0]
        return KeyPlacement(
            origin=self.point(x_mm + ox, y_mm + oy),
            center=self.point(x_mm + width / 2.0, y_mm + height / 2.0),
            angle=self.angle(rotation),
            scale=self.scale,
            y_sign=-1.0 if self.y_up else 1.0,
        )


def screen_policy(page_height_mm: float, dpi: float, zoom: float = 1.0, offset: Point = (0.0, 0.0)) -> CoordinatePolicy:
    return CoordinatePolicy(
        name="screen",
        scale=float(dpi) / MM_PER_INCH * float(zoom),
        page_height_mm=page_height_mm,
        offset=(float(offset[0]), float(offset[1])),
    )


def pdf_policy(page_height_mm: float) -> CoordinatePolicy:
    return CoordinatePolicy(
        name="pdf",
        scale=POINTS_PER_INCH / MM_PER_INCH,
        page_height_mm=page_height_mm,
        origin=ORIGIN_BOTTOM_LEFT,
        sense=RotationSense.COUNTER_CLOCKWISE,
    )


def svg_policy(page_height_mm: float) -> CoordinatePolicy:
    return CoordinatePolicy(name="svg", scale=1.0, page_height_mm=page_height_mm)
