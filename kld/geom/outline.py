# File: kld/geom/outline.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.3.1
# Status: stable
# Date: 2026-09-05
# Purpose: Contorno cerrado de una tecla (rect / iso-enter / big-enter) en mm locales.
# Notes: Origen arriba-izquierda, y hacia abajo. El último punto cierra implícitamente con el primero.
from __future__ import annotations

from kld.core.version import BIG_ENTER_TOP_WIDTH_MM
from kld.utils.errors import KldGeometryError

Point = tuple[float, float]


def key_outline(key_type: str, width: float, height: float) -> list[Point]:
    """Polígono del contorno de la tecla.

    - rect: 4 esquinas, horario desde arriba-izquierda.
    - iso-enter: "L" de 6 vértices. Mitad superior a todo el ancho; la mitad
      inferior es una columna alineada a la derecha de ancho alto/2.
    - big-enter: "L" espejada. Mitad inferior a todo el ancho; la mitad
      superior alineada a la derecha con ancho min(ancho, 20.25mm). Arranca
      abajo-izquierda, por eso el sentido queda invertido respecto de iso-enter.

    Teclas degeneradas (alto/2 mayor que el ancho, etc.): el recorte se limita
    al ancho disponible; los vértices quedan colineales pero el polígono no se
    auto-intersecta y su bbox sigue siendo ancho x alto.
    """
    w = float(width)
    h = float(height)
    if w <= 0.0 or h <= 0.0:
        raise KldGeometryError(f"Contorno inválido: ancho/alto deben ser > 0 ({w!r} x {h!r})")

    if key_type == "rect":
        return [(0.0, 0.0), (w, 0.0), (w, h), (0.0, h)]

    half_h = h / 2.0
    if key_type == "iso-enter":
        notch_x = w - min(half_h, w)
        return [
            (0.0, 0.0),
            (w, 0.0),
            (w, h),
            (notch_x, h),
            (notch_x, half_h),
            (0.0, half_h),
        ]

    if key_type == "big-enter":
        notch_x = w - min(w, BIG_ENTER_TOP_WIDTH_MM)
        return [
            (0.0, h),
            (w, h),
            (w, 0.0),
            (notch_x, 0.0),
            (notch_x, half_h),
            (0.0, half_h),
        ]

    raise KldGeometryError(f"keyType no soportado: {key_type!r}")

