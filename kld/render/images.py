# File: kld/render/images.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.2.2
# Status: stable
# Date: 2026-09-22
# Purpose: Decodificación de imágenes embebidas (data: URL) con Qt, en segundo plano y cancelable.
# Notes:
# - PNG/JPEG se embeben tal cual; otros formatos raster se pasan a PNG; SVG se rasteriza con QtSvg.
# - Imagen ilegible => None (el elemento se omite sin placeholder).
# - QImage/QSvgRenderer son reentrantes: se pueden usar fuera del hilo UI.
from __future__ import annotations

import base64
import binascii
import os
import threading

from concurrent.futures import Future, ThreadPoolExecutor, wait, FIRST_COMPLETED
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional
from urllib.parse import unquote_to_bytes

from PySide6.QtCore import QBuffer, QByteArray, QIODevice, Qt
from PySide6.QtGui import QGuiApplication, QImage, QPainter
from PySide6.QtSvg import QSvgRenderer

from kld.core.settings import env_int
from kld.utils.errors import KldCancelled
from kld.utils.log import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from kld.core.models import Project

log = get_logger(__name__)

PASSTHROUGH_MIMES = ("image/png", "image/jpeg")
SVG_MIME = "image/svg+xml"


@dataclass(frozen=True)
class DataUrl:
    mime: str
    data: bytes


@dataclass(frozen=True)
class DecodedImage:
    """Imagen lista para embeber: bytes PNG/JPEG + tamaño natural en píxeles."""

    mime: str
    data: bytes
    width: int
    height: int

    def as_data_url(self) -> str:
        return f"data:{self.mime};base64,{base64.b64encode(self.data).decode('ascii')}"


def parse_data_url(ref: str) -> Optional[DataUrl]:
    """data:[<mime>][;base64],<payload>  ->  DataUrl. Cualquier otra cosa: None."""
    if not isinstance(ref, str) or not ref.startswith("data:"):
        return None
    header, sep, payload = ref[5:].partition(",")
    if not sep:
        return None
    parts = [p.strip() for p in header.split(";")]
    mime = (parts[0] or "text/plain").lower()
    try:
        if "base64" in (p.lower() for p in parts[1:]):
            data = base64.b64decode(payload, validate=False)
        else:
            data = unquote_to_bytes(payload)
    except (binascii.Error, ValueError):
        return None
    if not data:
        return None
    return DataUrl(mime=mime, data=data)


def _png_bytes(img: QImage) -> bytes:
    ba = QByteArray()
    buf = QBuffer(ba)
    buf.open(QIODevice.WriteOnly)
    img.save(buf, "PNG")
    buf.close()
    return bytes(ba.data())


def _rasterize_svg(data: bytes) -> Optional[DecodedImage]:
    renderer = QSvgRenderer(QByteArray(data))
    if not renderer.isValid():
        return None
    size = renderer.defaultSize()
    if size.width() <= 0 or size.height() <= 0:
        return None
    # Escala de rasterizado: más píxeles para impresión, misma proporción.
    scale = env_int("KLD_SVG_RASTER_SCALE", 4, min_value=1, max_value=16)
    img = QImage(size.width() * scale, size.height() * scale, QImage.Format_ARGB32_Premultiplied)
    img.fill(Qt.transparent)
    p = QPainter(img)
    try:
        renderer.render(p)
    finally:
        p.end()
    return DecodedImage("image/png", _png_bytes(img), size.width(), size.height())


def decode_image(ref: str) -> Optional[DecodedImage]:
    """Decodifica una data: URL. None si no es una imagen legible."""
    parsed = parse_data_url(ref)
    if parsed is None:
        return None
    if parsed.mime == SVG_MIME:
        return _rasterize_svg(parsed.data)
    img = QImage.fromData(parsed.data)
    if img.isNull() or img.width() <= 0 or img.height() <= 0:
        return None
    if parsed.mime in PASSTHROUGH_MIMES:
        return DecodedImage(parsed.mime, parsed.data, img.width(), img.height())
    return DecodedImage("image/png", _png_bytes(img), img.width(), img.height())


def ensure_gui_app() -> QGuiApplication:
    """QGuiApplication para usos sin ventana (CLI). En headless usa la plataforma offscreen."""
    app = QGuiApplication.instance()
    if app is not None:
        return app  # type: ignore[return-value]
    if not os.environ.get("DISPLAY") and not os.environ.get("WAYLAND_DISPLAY"):
        os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    return QGuiApplication([])


class ImageDecoder:
    """Pool de decodificación con cache por referencia.

    `submit(ref)` devuelve siempre el mismo Future para la misma data: URL.
    """

    def __init__(self, max_workers: Optional[int] = None) -> None:
        workers = max_workers or env_int("KLD_IMAGE_WORKERS", 2, min_value=1, max_value=8)
        self._pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="kld-img")
        self._cache: dict[str, Future] = {}
        self._lock = threading.Lock()

    def submit(self, ref: str) -> "Future[Optional[DecodedImage]]":
        with self._lock:
            fut = self._cache.get(ref)
            if fut is None or fut.cancelled():
                fut = self._pool.submit(self._decode, ref)
                self._cache[ref] = fut
            return fut

    @staticmethod
    def _decode(ref: str) -> Optional[DecodedImage]:
        out = decode_image(ref)
        if out is None:
            log.info("Imagen omitida: contenido no decodificable (%d chars)", len(ref or ""))
        return out

    def peek(self, ref: str) -> Optional[DecodedImage]:
        """Resultado ya disponible (sin bloquear) o None."""
        with self._lock:
            fut = self._cache.get(ref)
        if fut is None or not fut.done() or fut.cancelled() or fut.exception() is not None:
            return None
        return fut.result()

    def cancel_pending(self) -> None:
        with self._lock:
            for fut in self._cache.values():
                fut.cancel()

    def shutdown(self) -> None:
        self.cancel_pending()
        self._pool.shutdown(wait=False, cancel_futures=True)


def image_refs(project: "Project") -> list[str]:
    """data: URLs distintas usadas por el proyecto, en orden de aparición."""
    from kld.core.models import ImageElement

    seen: dict[str, None] = {}
    for key in project.layout.keys:
        for el in key.elements:
            if isinstance(el, ImageElement) and el.data_url:
                seen.setdefault(el.data_url, None)
    return list(seen)


def resolve_images(
    project: "Project",
    *,
    decoder: Optional[ImageDecoder] = None,
    cancel: Optional[threading.Event] = None,
    refs: Optional[Iterable[str]] = None,
) -> dict[str, DecodedImage]:
    """Espera todas las imágenes del proyecto antes de exportar.

    Devuelve {data_url: DecodedImage}; las ilegibles no aparecen.
    Si `cancel` se activa, cancela lo pendiente y lanza KldCancelled.
    """
    own = decoder is None
    dec = decoder or ImageDecoder()
    try:
        futures = {ref: dec.submit(ref) for ref in (refs if refs is not None else image_refs(project))}
        pending = set(futures.values())
        while pending:
            if cancel is not None and cancel.is_set():
                for fut in pending:
                    fut.cancel()
                raise KldCancelled("Exportación cancelada")
            _, pending = wait(pending, timeout=0.05, return_when=FIRST_COMPLETED)

        out: dict[str, DecodedImage] = {}
        for ref, fut in futures.items():
            if fut.cancelled():
                continue
            exc = fut.exception()
            if exc is not None:
                log.warning("Imagen omitida: fallo al decodificar: %s", exc)
                continue
            img = fut.result()
            if img is not None:
                out[ref] = img
        return out
    finally:
        if own:
            dec.shutdown()
