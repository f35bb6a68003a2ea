from __future__ import annotations

import pytest

from kld.cli import EXIT_INVALID, EXIT_IO, EXIT_OK, main
from kld.core.models import Key
from kld.core.serialization import save_project


@pytest.fixture
def project_file(tmp_path, monkeypatch, make_project, text_key):
    monkeypatch.chdir(tmp_path)
    rotated = Key(id="r", x=30.0, width=18.0, height=18.0, rotation=12.0)
    return save_project(make_project(text_key, rotated), tmp_path / "layout.json")


def test_export_pdf(project_file, tmp_path, capsys) -> None:
    out = tmp_path / "out.pdf"
    assert main(["export", str(project_file), "-o", str(out), "--ruler"]) == EXIT_OK
    assert out.read_bytes().startswith(b"%PDF")
    assert capsys.readouterr().out.strip() == str(out)


def test_export_svg_by_extension(project_file, tmp_path) -> None:
    out = tmp_path / "out.svg"
    assert main(["export", str(project_file), "-o", str(out)]) == EXIT_OK
    assert "k1-outline" in out.read_text(encoding="utf-8")


def test_export_cut_sheet_drops_rotation(project_file, tmp_path) -> None:
    out = tmp_path / "cut.svg"
    assert main(["export", str(project_file), "-o", str(out), "--cut-sheet"]) == EXIT_OK
    assert "rotate(" not in out.read_text(encoding="utf-8")


def test_check_ok(project_file, capsys) -> None:
    assert main(["check", str(project_file), "--tolerance", "0.05"]) == EXIT_OK
    assert capsys.readouterr().out.strip() == "OK: 2 contornos"


def test_invalid_project_exit_code(tmp_path, monkeypatch, capsys) -> None:
    monkeypatch.chdir(tmp_path)
    bad = tmp_path / "bad.json"
    bad.write_text('{"paper": {"size": "B5"}, "layout": {"keys": []}}', encoding="utf-8")
    assert main(["export", str(bad), "-o", str(tmp_path / "x.pdf")]) == EXIT_INVALID
    assert "paper.size" in capsys.readouterr().err


def test_missing_project_exit_code(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    assert main(["check", str(tmp_path / "nope.json")]) == EXIT_IO
