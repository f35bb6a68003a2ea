# File: kld/app.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.2.0
# Status: stable
# Date: 2026-10-04
# Purpose: Entry-point de la aplicación gráfica.
# Notes: Acepta opcionalmente un proyecto .json como primer argumento.
from __future__ import annotations

import sys

from PySide6.QtWidgets import QApplication

from kld.core.serialization import load_project
from kld.core.settings import apply_project_settings
from kld.core.version import APP_VERSION
from kld.ui.main_window import MainWindow
from kld.utils.errors import KldError
from kld.utils.log import get_logger, setup_logging

log = get_logger(__name__)


def main() -> int:
    setup_logging()
    # Defaults de proyecto (repo-local): kld_settings.json
    apply_project_settings(logger=log, prefer_env=True)
    app = QApplication(sys.argv)

    project = None
    args = [a for a in sys.argv[1:] if not a.startswith("-")]
    if args:
        try:
            project = load_project(args[0])
        except KldError as e:
            log.error("No se pudo abrir %s: %s", args[0], e)

    w = MainWindow(project)
    w.show()
    log.info("KLD iniciado (v%s)", APP_VERSION)
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
