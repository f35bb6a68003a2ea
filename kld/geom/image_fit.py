# File: kld/geom/image_fit.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.2.0
# Status: stable
# Date: 2026-09-06
# Purpose: Rect de dibujo de una imagen según fit (contain/cover) + alineación.
# Notes: cover puede exceder el área disponible; el renderer recorta al área.
from __future__ import annotations

from kld.geom.rect import Rect


def resolve_image_fit(
    available: Rect,
    natural_width: float,
    natural_height: float,
    fit: str = "contain",
    align_x: str = "center",
    align_y: str = "center",
) -> Rect:
    """Devuelve el rect dibujado (mismo marco que `available`).

    - contain: entra completa, conserva proporción.
    - cover: cubre todo el área, conserva proporción.
    - Alineación: center reparte el sobrante/faltante, left/top ancla en 0,
      right/bottom ancla al borde lejano.

    Alto natural 0 (o ancho 0) o área degenerada: devuelve el área tal cual.
    """
    if not natural_height or not natural_width or available.is_empty:
        return available

    avail_w = float(available.width)
    avail_h = float(available.height)
    natural_ratio = float(natural_width) / float(natural_height)
    area_ratio = avail_w / avail_h

    if fit == "cover":
        if area_ratio < natural_ratio:
            draw_h = avail_h
            draw_w = avail_h * natural_ratio
        else:
            draw_w = avail_w
            draw_h = avail_w / natural_ratio
    else:
        if area_ratio > natural_ratio:
            draw_h = avail_h
            draw_w = avail_h * natural_ratio
        else:
            draw_w = avail_w
            draw_h = avail_w / natural_ratio

    return Rect(
        available.x + _align_offset(avail_w - draw_w, align_x, far="right"),
        available.y + _align_offset(avail_h - draw_h, align_y, far="bottom"),
        draw_w,
        draw_h,
    )


def _align_offset(excess: float, align: str, *, far: str) -> float:
    if align == far:
        return excess
    if align in ("left", "top"):
        return 0.0
    return excess / 2.0
