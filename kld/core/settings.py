# File: kld/core/settings.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.3.0
# Status: wip
# Date: 2026-09-20
# Purpose: Settings de proyecto (kld_settings.json -> env) y preferencias de usuario.
# Notes: No depende de Qt; las preferencias se guardan en ~/.kld/settings.json.
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

log = logging.getLogger(__name__)


def settings_dir() -> Path:
    """Carpeta de settings del usuario."""
    return Path.home() / ".kld"


def settings_path() -> Path:
    return settings_dir() / "settings.json"


# ------------------------------
# Lectores tolerantes de env
# ------------------------------
# Los consumidores (exporters / solver / history / canvas) leen KLD_* en cada
# llamada: un kld_settings.json aplicado en runtime se ve sin reiniciar.

def env_float(name: str, default: float, *, min_value: float = -1e9, max_value: float = 1e9) -> float:
    try:
        v = float(os.getenv(name, str(default)).strip())
    except (TypeError, ValueError):
        return float(default)
    if v != v:
        return float(default)
    if v < float(min_value):
        return float(min_value)
    if v > float(max_value):
        return float(max_value)
    return float(v)


def env_int(name: str, default: int, *, min_value: int = 0, max_value: int = 1_000_000) -> int:
    raw = os.environ.get(name, "")
    if raw is None or str(raw).strip() == "":
        return int(default)
    try:
        v = int(str(raw).strip())
    except ValueError:
        return int(default)
    return max(min_value, min(max_value, v))


def env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return bool(default)
    s = str(raw).strip().lower()
    if s in ("1", "true", "yes", "y", "on"):
        return True
    if s in ("0", "false", "no", "n", "off"):
        return False
    return bool(default)


# ------------------------------
# Project settings (repo-local)
# ------------------------------
PROJECT_SETTINGS_FILENAME = "kld_settings.json"


def find_project_settings_path(start: Path | None = None) -> Path | None:
    """Busca kld_settings.json subiendo desde start (o CWD)."""
    start = (start or Path.cwd()).resolve()
    for p in (start, *start.parents):
        candidate = p / PROJECT_SETTINGS_FILENAME
        if candidate.is_file():
            return candidate
    return None


def _deep_get(d: Dict[str, Any], path: str, default: Any = None) -> Any:
    cur: Any = d
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


# (json path, env var, min, max)
_FLOAT_SETTINGS = (
    ("export.outline_stroke_mm", "KLD_OUTLINE_STROKE_MM", 0.0, 5.0),
    ("export.cut_sheet_gap_mm", "KLD_CUT_SHEET_GAP_MM", 0.0, 50.0),
    ("layout.placement_gap_mm", "KLD_PLACEMENT_GAP_MM", 0.0, 50.0),
    ("ui.canvas.zoom_after_fit", "KLD_CANVAS_START_ZOOM", 0.05, 20.0),
)


def apply_project_settings(
    *, start: Path | None = None, logger: logging.Logger | None = None, prefer_env: bool = True
) -> Dict[str, Any]:
    """Carga kld_settings.json (si existe) y lo aplica como variables de entorno.

    - Si `prefer_env=True`, una env var ya seteada NO se pisa.
    - Si `prefer_env=False`, el JSON pisa la env var.

    Devuelve un dict con los valores aplicados desde JSON (útil para logging/debug).
    """
    _log = logger or log
    p = find_project_settings_path(start)
    if not p:
        return {}

    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        _log.warning("No se pudo leer %s: %s", p, e)
        return {}
    if not isinstance(data, dict):
        _log.warning("%s ignorado: la raíz no es un objeto JSON", p)
        return {}

    applied: Dict[str, Any] = {}

    def _set_env(key: str, value: Any) -> None:
        if prefer_env and os.environ.get(key):
            return
        os.environ[key] = str(value)

    for path, env_name, lo, hi in _FLOAT_SETTINGS:
        v = _deep_get(data, path)
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            continue
        v = float(v)
        if lo <= v <= hi:
            applied[path] = v
            _set_env(env_name, v)

    depth = _deep_get(data, "history.depth")
    if isinstance(depth, int) and not isinstance(depth, bool) and 1 <= depth <= 500:
        applied["history.depth"] = depth
        _set_env("KLD_HISTORY_DEPTH", depth)

    theme = _deep_get(data, "ui.canvas.theme")
    if isinstance(theme, str) and theme.strip().lower() in VALID_CANVAS_THEMES:
        applied["ui.canvas.theme"] = theme.strip().lower()
        _set_env("KLD_CANVAS_THEME", applied["ui.canvas.theme"])

    if applied:
        _log.info("Project settings aplicados desde %s: %s", p, applied)
    return applied


VALID_CANVAS_THEMES = ("dark", "light")


@dataclass
class AppSettings:
    """Preferencias persistentes del usuario."""

    canvas_theme: str = "dark"
    include_ruler: bool = False
    last_dir: str = ""

    @classmethod
    def load(cls) -> "AppSettings":
        p = settings_path()
        try:
            if not p.exists():
                return cls(canvas_theme=_coerce_canvas_theme(os.environ.get("KLD_CANVAS_THEME", "dark")))
            data = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            log.debug("No se pudieron cargar settings: %s", p, exc_info=True)
            return cls()
        if not isinstance(data, dict):
            return cls()
        out = cls()
        out.canvas_theme = _coerce_canvas_theme(data.get("canvas_theme", os.environ.get("KLD_CANVAS_THEME", out.canvas_theme)))
        out.include_ruler = bool(data.get("include_ruler", False))
        out.last_dir = str(data.get("last_dir", "") or "")
        return out

    def save(self) -> None:
        payload: Dict[str, Any] = {
            "schema_version": 1,
            "canvas_theme": _coerce_canvas_theme(self.canvas_theme),
            "include_ruler": bool(self.include_ruler),
            "last_dir": str(self.last_dir or ""),
        }
        try:
            settings_dir().mkdir(parents=True, exist_ok=True)
            settings_path().write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError:
            # Las preferencias nunca deben romper la app.
            log.debug("No se pudieron guardar settings", exc_info=True)


def _coerce_canvas_theme(v: Any) -> str:
    s = str(v or "").strip().lower()
    if s in VALID_CANVAS_THEMES:
        return s
    return "dark"
