# File: kld/utils/errors.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.1.0
# Status: stable
# Date: 2026-09-02
# Purpose: Errores tipados del proyecto.
# Notes: Cambios incrementales, no romper funcionalidades probadas.
from __future__ import annotations


class KldError(Exception):
    """Error base del proyecto."""


class KldValidationError(KldError):
    """Error de validación (input/archivo/estructura)."""


class KldSchemaError(KldValidationError):
    """Error de esquema del documento de proyecto."""


class KldGeometryError(KldError):
    """Pedido geométrico inválido (ej: tecla con ancho/alto <= 0)."""


class KldIOError(KldError):
    """Error de E/S (lectura/escritura)."""


class KldCancelled(KldError):
    """Export cancelado (no es un fallo)."""
