from __future__ import annotations

import os
from collections.abc import Callable, Generator

import pytest

from kld.core.models import Key, Layout, PaperSettings, Project, TextElement

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


def _clear_kld_env() -> None:
    for key in list(os.environ):
        if key.startswith("KLD_"):
            os.environ.pop(key, None)


_clear_kld_env()


@pytest.fixture(autouse=True)
def clear_kld_env() -> Generator[None, None, None]:
    _clear_kld_env()
    yield
    _clear_kld_env()


@pytest.fixture(scope="session", autouse=True)
def qapp():
    from PySide6.QtWidgets import QApplication

    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def make_project() -> Callable[..., Project]:
    def _make(*keys: Key, size: str = "A4", orientation: str = "portrait", margin_mm: float = 6.0) -> Project:
        return Project(
            id="prj_test",
            name="Test",
            paper=PaperSettings(size=size, orientation=orientation, margin_mm=margin_mm),  # type: ignore[arg-type]
            layout=Layout(id="layout_test", name="Test", keys=list(keys)),
        )

    return _make


@pytest.fixture
def text_key() -> Key:
    return Key(
        id="k1",
        x=0.0,
        y=0.0,
        width=18.0,
        height=18.0,
        elements=[TextElement(id="t1", text="Q", padding=2.0, font_size=11.0)],
    )
