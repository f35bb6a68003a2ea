# File: kld/utils/log.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.2.0
# Status: stable
# Date: 2026-09-02
# Purpose: Logging centralizado (consola + archivo) y helpers.
# Notes:
# - KLD_LOG_DIR / KLD_LOG_LEVEL pisan los argumentos (útil en CI y en la CLI).
# - Bibliotecas ruidosas (PIL, reportlab) quedan en WARNING salvo en DEBUG.
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

LOG_FILENAME = "kld.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
_NOISY_LOGGERS = ("PIL", "reportlab")

_configured = False


def _level_from_env(default: int) -> int:
    raw = (os.environ.get("KLD_LOG_LEVEL") or "").strip().upper()
    if not raw:
        return default
    if raw.isdigit():
        return int(raw)
    value = logging.getLevelName(raw)
    return value if isinstance(value, int) else default


def setup_logging(log_dir: Optional[str | os.PathLike] = None, level: int = logging.INFO) -> None:
    """Handlers de consola y archivo (`<log_dir>/kld.log`) en el logger raíz.

    Idempotente: solo la primera llamada configura. Si el archivo no se
    puede abrir se sigue solo con consola.
    """
    global _configured
    if _configured:
        return

    level = _level_from_env(level)
    d = Path(os.environ.get("KLD_LOG_DIR") or log_dir or "logs")
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    root = logging.getLogger()
    root.setLevel(level)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)

    try:
        d.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(d / LOG_FILENAME, encoding="utf-8")
    except OSError as e:
        logging.getLogger(__name__).warning("Log solo en consola (%s): %s", d, e)
    else:
        fh.setLevel(level)
        fh.setFormatter(formatter)
        root.addHandler(fh)

    if level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
