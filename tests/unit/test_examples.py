"""The bundled example definitions load and behave."""

from __future__ import annotations

from pathlib import Path

import pytest

from formweave import StateStore
from formweave.runtime.engine import Engine
from formweave.runtime.loader import load_app

EXAMPLES_DIR = Path(__file__).parents[2] / "examples"


@pytest.mark.parametrize("name", ["todo", "survey", "address_book", "triage"])
def test_example_builds(name: str) -> None:
    app = load_app(EXAMPLES_DIR / f"{name}.py")
    tree = app.build(StateStore())
    assert tree.nodes


def test_todo_add_and_done() -> None:
    engine = Engine(load_app(EXAMPLES_DIR / "todo.py"))
    session = engine.sessions.create()
    engine.page(session)
    engine.action(session, "add_todo_1", {"new_todo": ["Buy milk"]})
    engine.action(session, "add_todo_1", {"new_todo": ["Walk dog"]})
    assert session.store["todos"] == ["Buy milk", "Walk dog"]
    assert session.store["new_todo"] == ""

    engine.action(session, "done_2", {})
    assert session.store["todos"] == ["Walk dog"]


def test_address_book_commit() -> None:
    engine = Engine(load_app(EXAMPLES_DIR / "address_book.py"))
    session = engine.sessions.create()
    engine.page(session)
    engine.submit_form(
        session,
        "contact",
        {"contact[name]": ["Ada"], "contact[city]": ["London"], "contact[favorite]": ["on"]},
    )
    assert session.store["contacts"] == [
        {"name": "Ada", "city": "London", "kind": "Friend", "favorite": True}
    ]
    assert session.store["contact"] == {
        "name": "",
        "city": "",
        "kind": "Friend",
        "favorite": False,
    }


def test_triage_progress() -> None:
    engine = Engine(load_app(EXAMPLES_DIR / "triage.py"))
    session = engine.sessions.create()
    engine.page(session)
    for index in (1, 2, 3):
        fragment = engine.sync(session, {f"verdict_{index}": ["maybe"]}, render=True)
    assert fragment is not None
    assert 'style="width: 100%;"' in fragment
    assert "All done" in fragment
    assert session.store["note_3"] == ""
