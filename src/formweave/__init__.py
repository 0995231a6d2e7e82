"""
formweave - forms and small tools from a single Python function.

A definition function describes the UI; it is re-run against the session's
state on every interaction, and the browser stays in sync through htmx and
Alpine.js.

    from formweave import App

    app = App("Hello")

    @app.view
    def hello(ui):
        ui.text_field("name", placeholder="Your name")
        if ui.state["name"]:
            ui.text(f"Hello, {ui.state['name']}!")

    app.run()
"""

from __future__ import annotations

from formweave._version import __version__
from formweave.core.errors import (
    DefinitionError,
    FormweaveError,
    HandlerFailure,
    LoadError,
    PortExhaustion,
    ServiceUnavailable,
    TimeoutExceeded,
    UnresolvedTarget,
)
from formweave.runtime.app import App
from formweave.runtime.builder import TreeBuilder, build
from formweave.runtime.state import StateStore

__all__ = [
    "__version__",
    "App",
    "StateStore",
    "TreeBuilder",
    "build",
    "DefinitionError",
    "FormweaveError",
    "HandlerFailure",
    "LoadError",
    "PortExhaustion",
    "ServiceUnavailable",
    "TimeoutExceeded",
    "UnresolvedTarget",
]
