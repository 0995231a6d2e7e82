"""Shared pytest fixtures for formweave tests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from formweave import App, StateStore, TreeBuilder
from formweave.runtime.config import WeaveConfig
from formweave.runtime.logging import ROOT_LOGGER


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point runtime files and logs at a temporary directory."""
    home = tmp_path / "formweave-home"
    monkeypatch.setenv("FORMWEAVE_HOME", str(home))
    monkeypatch.setenv("FORMWEAVE_OPEN_BROWSER", "0")
    return home


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Drop handlers installed by setup_logging (the CLI installs them per command)."""
    yield
    root = logging.getLogger(ROOT_LOGGER)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.NOTSET)


@pytest.fixture
def config(isolated_home: Path) -> WeaveConfig:
    return WeaveConfig.from_env()


@pytest.fixture
def greeter_app() -> App:
    """One text field and a button that writes a greeting."""
    app = App("Greeter")

    @app.view
    def greeter(ui: TreeBuilder) -> None:
        ui.text_field("name", placeholder="Your name")

        def greet(state: StateStore) -> None:
            state["greeting"] = f"Hello, {state['name']}"

        ui.button("Greet", on_click=greet)
        if ui.state.get("greeting"):
            ui.text(ui.state["greeting"])

    return app


@pytest.fixture
def greeter_client(greeter_app: App) -> Iterator[TestClient]:
    with TestClient(greeter_app.create_server()) as client:
        yield client


@pytest.fixture
def make_definition(tmp_path: Path) -> Callable[[str, str], Path]:
    """Factory writing a definition file under tmp_path."""

    def write(name: str, body: str) -> Path:
        path = tmp_path / f"{name}.py"
        path.write_text(body, encoding="utf-8")
        return path

    return write


SURVEY_SOURCE = '''
from formweave import App

app = App("Survey")


@app.view
def survey(ui):
    ui.text_field("a")
    ui.text_field("b")
'''


@pytest.fixture
def survey_file(make_definition: Callable[[str, str], Path]) -> Path:
    return make_definition("survey", SURVEY_SOURCE)
