# File: kld/cli.py
# Project: KeycapLabelDesigner (KLD)
# Version: 0.2.0
# Status: stable
# Date: 2026-10-01
# Purpose: Línea de comandos: exportar PDF/SVG (layout u hoja de corte) y verificar el SVG contra el modelo.
# Notes: Códigos de salida: 0 OK, 2 validación, 1 E/S.
from __future__ import annotations

import argparse
import logging
import sys

from pathlib import Path
from typing import Optional, Sequence

from kld.core.serialization import load_project
from kld.core.settings import apply_project_settings
from kld.core.version import APP_NAME, APP_VERSION
from kld.geom.cut_sheet import cut_sheet_project
from kld.render.images import ensure_gui_app
from kld.render.pdf import write_project_pdf
from kld.svg.bbox_check import check_svg_against_project
from kld.svg.exporter import export_project_svg, write_project_svg
from kld.utils.errors import KldCancelled, KldGeometryError, KldIOError, KldValidationError
from kld.utils.log import get_logger, setup_logging

log = get_logger(__name__)

EXIT_OK = 0
EXIT_IO = 1
EXIT_INVALID = 2


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="kld", description=f"{APP_NAME} v{APP_VERSION}")
    ap.add_argument("-v", "--verbose", action="store_true", help="log a nivel DEBUG")
    sub = ap.add_subparsers(dest="command", required=True)

    ex = sub.add_parser("export", help="exporta el proyecto a PDF o SVG")
    ex.add_argument("project", type=Path, help="documento de proyecto (.json)")
    ex.add_argument("-o", "--output", type=Path, required=True, help="archivo de salida")
    ex.add_argument("--format", choices=("pdf", "svg"), default=None, help="por defecto: según extensión de salida")
    ex.add_argument("--cut-sheet", action="store_true", help="exporta la hoja de corte (sin rotación, empaquetada)")
    ex.add_argument("--ruler", action="store_true", help="agrega la barra de referencia de 50mm (solo PDF)")

    ck = sub.add_parser("check", help="exporta a SVG en memoria y verifica los contornos con svgelements")
    ck.add_argument("project", type=Path)
    ck.add_argument("--cut-sheet", action="store_true")
    ck.add_argument("--tolerance", type=float, default=0.01, help="tolerancia en mm")
    return ap


def _output_format(out: Path, explicit: Optional[str]) -> str:
    if explicit:
        return explicit
    return "svg" if out.suffix.lower() == ".svg" else "pdf"


def _cmd_export(args: argparse.Namespace) -> int:
    project = load_project(args.project)
    if args.cut_sheet:
        project = cut_sheet_project(project)
    fmt = _output_format(args.output, args.format)
    if fmt == "svg":
        if args.ruler:
            log.warning("--ruler solo aplica a PDF; se ignora en SVG")
        out = write_project_svg(project, args.output)
    else:
        out = write_project_pdf(project, args.output, include_ruler=args.ruler)
    print(out)
    return EXIT_OK


def _cmd_check(args: argparse.Namespace) -> int:
    project = load_project(args.project)
    if args.cut_sheet:
        project = cut_sheet_project(project)
    svg = export_project_svg(project)
    mismatches = check_svg_against_project(svg, project, tolerance_mm=args.tolerance)
    for m in mismatches:
        print(m.describe())
    if mismatches:
        return EXIT_INVALID
    print(f"OK: {len(project.layout.keys)} contornos")
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.WARNING)
    apply_project_settings(logger=log, prefer_env=True)
    # QtSvg/QImage necesitan una QGuiApplication para rasterizar.
    ensure_gui_app()
    try:
        if args.command == "export":
            return _cmd_export(args)
        return _cmd_check(args)
    except (KldValidationError, KldGeometryError) as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_INVALID
    except KldIOError as e:
        cause = f" ({e.__cause__})" if e.__cause__ else ""
        print(f"error: {e}{cause}", file=sys.stderr)
        return EXIT_IO
    except KldCancelled as e:
        print(f"cancelado: {e}", file=sys.stderr)
        return EXIT_IO


if __name__ == "__main__":
    raise SystemExit(main())
