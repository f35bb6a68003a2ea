# File: kld/core/serialization.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.2.0
# Status: stable
# Date: 2026-09-18
# Purpose: Carga/guardado del documento de proyecto (JSON camelCase, imágenes embebidas como data: URL).
# Notes: La carga es atómica: si algo no valida no se devuelve nada.
from __future__ import annotations

import json

from pathlib import Path

from kld.core.models import Project
from kld.utils.errors import KldIOError, KldValidationError

PROJECT_SUFFIX = ".json"


def project_from_json(text: str, *, source: str = "<texto>") -> Project:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise KldValidationError(
            "Proyecto inválido (JSON malformado): {} (línea {}, columna {})".format(source, e.lineno, e.colno)
        ) from e
    if not isinstance(data, dict):
        raise KldValidationError("Estructura inválida: raíz no es objeto JSON")
    return Project.from_dict(data)


def project_to_json(project: Project) -> str:
    return json.dumps(project.to_dict(), ensure_ascii=False, indent=2)


def load_project(path: str | Path) -> Project:
    p = Path(path)
    try:
        raw = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise KldIOError("No se pudo leer el proyecto: {}".format(p)) from e
    return project_from_json(raw, source=str(p))


def save_project(project: Project, path: str | Path) -> Path:
    """Guarda en JSON. Escritura atómica (tmp + replace)."""
    p = Path(path)
    if not p.suffix:
        p = p.with_suffix(PROJECT_SUFFIX)
    txt = project_to_json(project)
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        tmp = p.with_suffix(p.suffix + ".tmp")
        tmp.write_text(txt, encoding="utf-8")
        tmp.replace(p)
    except OSError as e:
        raise KldIOError("No se pudo guardar el proyecto: {}".format(p)) from e
    return p
