"""
App: a titled Definition Block plus rendering preferences.

    app = App("Greeter")

    @app.view
    def greeter(ui):
        ui.text_field("name", placeholder="Your name")
        ui.button("Greet", on_click=lambda state: state.update(greeting=f"Hi {state['name']}"))

    app.run()          # browser session, blocks
    app.run_once()     # returns the submitted values
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from formweave.adapters.alpine_htmx import AlpineHtmxAdapter
from formweave.adapters.base import Adapter
from formweave.core.errors import DefinitionError
from formweave.runtime.builder import Definition, build
from formweave.runtime.state import StateStore
from formweave.specs.nodes import ComponentTree

if TYPE_CHECKING:
    from fastapi import FastAPI

LAYOUTS = ("default", "wide", "fluid")


class App:
    """Holds a Definition Block; servers and runners are created from it."""

    def __init__(
        self,
        title: str = "formweave",
        definition: Definition | None = None,
        *,
        layout: str = "default",
        adapter: Adapter | None = None,
        id_prefix: str = "",
    ) -> None:
        if layout not in LAYOUTS:
            raise DefinitionError(f"Unknown layout '{layout}'", {"choices": LAYOUTS})
        self.title = title
        self._definition = definition
        self.layout = layout
        self.adapter = adapter or AlpineHtmxAdapter()
        self.id_prefix = id_prefix

    def __repr__(self) -> str:
        return f"App({self.title!r})"

    def view(self, definition: Definition) -> Definition:
        """Decorator registering the Definition Block."""
        self._definition = definition
        return definition

    @property
    def definition(self) -> Definition:
        if self._definition is None:
            raise DefinitionError(f"App '{self.title}' has no definition")
        return self._definition

    def build(self, store: StateStore | None = None) -> ComponentTree:
        """Run the definition once against ``store`` (a fresh one by default)."""
        return build(
            self.definition,
            store if store is not None else StateStore(),
            id_prefix=self.id_prefix,
        )

    def create_server(self, **kwargs: Any) -> FastAPI:
        """FastAPI application serving this app at ``/``."""
        from formweave.runtime.server import create_app

        return create_app(self, **kwargs)

    def run(self, **kwargs: Any) -> None:
        """Serve in a browser until interrupted."""
        from formweave.runtime.server import run_standalone

        run_standalone(self, **kwargs)

    def run_once(self, **kwargs: Any) -> dict[str, Any]:
        """Serve until the user submits once; return the submitted values.

        Raises:
            TimeoutExceeded: when nothing is submitted before the deadline
        """
        from formweave.runtime.oneshot import OneShotRunner

        return OneShotRunner(self, **kwargs).run()
