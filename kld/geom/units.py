# File: kld/geom/units.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.2.0
# Status: stable
# Date: 2026-09-03
# Purpose: Conversión mm <-> unidades de destino (px a un DPI/zoom, puntos PDF) y tamaños de papel.
# Notes: Sin redondeo interno; redondear solo en el borde de salida.
from __future__ import annotations

MM_PER_INCH = 25.4
POINTS_PER_INCH = 72.0

# (ancho, alto) en mm, orientación vertical.
PAPER_SIZES_MM: dict[str, tuple[float, float]] = {
    "A4": (210.0, 297.0),
    "Letter": (215.9, 279.4),
    "A3": (297.0, 420.0),
    "Tabloid": (279.4, 431.8),
}


def to_device(mm: float, units_per_inch: float) -> float:
    """mm -> unidad de destino (px con units_per_inch=dpi, pt con 72)."""
    return (float(mm) / MM_PER_INCH) * float(units_per_inch)


def from_device(value: float, units_per_inch: float) -> float:
    """Inversa de to_device."""
    return (float(value) / float(units_per_inch)) * MM_PER_INCH


def mm_to_points(mm: float) -> float:
    return to_device(mm, POINTS_PER_INCH)


def points_to_mm(pt: float) -> float:
    return from_device(pt, POINTS_PER_INCH)


def mm_to_pixels(mm: float, dpi: float, zoom: float = 1.0) -> float:
    return to_device(mm, dpi) * float(zoom)


def pixels_to_mm(px: float, dpi: float, zoom: float = 1.0) -> float:
    return from_device(float(px) / float(zoom), dpi)


def paper_size_mm(size: str, orientation: str = "portrait") -> tuple[float, float]:
    """Tamaño de hoja en mm. landscape intercambia ancho/alto."""
    w, h = PAPER_SIZES_MM.get(size, PAPER_SIZES_MM["A4"])
    if orientation == "landscape":
        return h, w
    return w, h
