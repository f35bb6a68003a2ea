from __future__ import annotations

import json
import os

from kld.core.settings import AppSettings, apply_project_settings, env_bool, env_float, env_int


def test_env_float_clamps_and_defaults(monkeypatch) -> None:
    assert env_float("KLD_X", 1.5) == 1.5
    monkeypatch.setenv("KLD_X", "abc")
    assert env_float("KLD_X", 1.5) == 1.5
    monkeypatch.setenv("KLD_X", "nan")
    assert env_float("KLD_X", 1.5) == 1.5
    monkeypatch.setenv("KLD_X", "99")
    assert env_float("KLD_X", 1.5, max_value=10.0) == 10.0


def test_env_int_and_bool(monkeypatch) -> None:
    monkeypatch.setenv("KLD_N", " 12 ")
    assert env_int("KLD_N", 3) == 12
    monkeypatch.setenv("KLD_N", "-5")
    assert env_int("KLD_N", 3, min_value=1) == 1
    monkeypatch.setenv("KLD_B", "off")
    assert env_bool("KLD_B", True) is False
    monkeypatch.setenv("KLD_B", "maybe")
    assert env_bool("KLD_B", True) is True


def test_project_settings_become_env(tmp_path) -> None:
    (tmp_path / "kld_settings.json").write_text(
        json.dumps(
            {
                "export": {"outline_stroke_mm": 0.4, "cut_sheet_gap_mm": 99},
                "history": {"depth": 12},
                "ui": {"canvas": {"theme": "Light"}},
            }
        ),
        encoding="utf-8",
    )
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    applied = apply_project_settings(start=nested)
    assert applied == {"export.outline_stroke_mm": 0.4, "history.depth": 12, "ui.canvas.theme": "light"}
    assert os.environ["KLD_OUTLINE_STROKE_MM"] == "0.4"
    assert os.environ["KLD_HISTORY_DEPTH"] == "12"
    assert "KLD_CUT_SHEET_GAP_MM" not in os.environ


def test_existing_env_wins_by_default(tmp_path, monkeypatch) -> None:
    (tmp_path / "kld_settings.json").write_text('{"history": {"depth": 12}}', encoding="utf-8")
    monkeypatch.setenv("KLD_HISTORY_DEPTH", "4")
    apply_project_settings(start=tmp_path)
    assert os.environ["KLD_HISTORY_DEPTH"] == "4"
    apply_project_settings(start=tmp_path, prefer_env=False)
    assert os.environ["KLD_HISTORY_DEPTH"] == "12"


def test_broken_settings_file_is_ignored(tmp_path) -> None:
    (tmp_path / "kld_settings.json").write_text("{", encoding="utf-8")
    assert apply_project_settings(start=tmp_path) == {}


def test_app_settings_roundtrip(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    assert AppSettings.load() == AppSettings()
    s = AppSettings(canvas_theme="light", include_ruler=True, last_dir="/tmp")
    s.save()
    assert (tmp_path / ".kld" / "settings.json").is_file()
    assert AppSettings.load() == s


def test_app_settings_theme_from_env(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("KLD_CANVAS_THEME", "light")
    assert AppSettings.load().canvas_theme == "light"
