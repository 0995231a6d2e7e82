"""
Adapter interface and shared template environment.

An adapter turns a Component Tree plus the State Store into HTML. The
runtime only ever talks to this interface, so the client-side library pair
(Alpine.js and htmx by default) can be swapped without touching the engine.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import StrEnum
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import BaseModel, ConfigDict, Field

from formweave.runtime.state import StateStore
from formweave.specs.nodes import ComponentTree

TEMPLATES_DIR = Path(__file__).parent.parent / "templates"


class RenderMode(StrEnum):
    """Full document with shell, or anchor contents only."""

    FULL = "full"
    PARTIAL = "partial"


class RenderContext(BaseModel):
    """Per-request rendering inputs that are not part of the tree."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(default="formweave", description="Document title")
    route_prefix: str = Field(default="", description="Prefix for every action URL")
    layout: str = Field(default="default", description="Width preset of the shell")
    one_shot: bool = Field(default=False, description="Render the final submit control")
    notices: tuple[str, ...] = Field(default=(), description="Messages shown above the tree")

    def url(self, path: str) -> str:
        return f"{self.route_prefix}{path}"


class Adapter(ABC):
    """Renders Component Trees for one client-side library pair."""

    name: str = "base"

    @abstractmethod
    def render(
        self,
        tree: ComponentTree,
        store: StateStore,
        mode: RenderMode,
        context: RenderContext,
    ) -> str:
        """Render ``tree`` against ``store``."""

    @abstractmethod
    def render_confirmation(self, context: RenderContext) -> str:
        """Document returned once a one-shot submission has been accepted."""


def create_jinja_env(templates_dir: Path = TEMPLATES_DIR) -> Environment:
    """Create the Jinja2 environment for document shells."""
    return Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


# Module-level singleton
_env: Environment | None = None


def get_jinja_env() -> Environment:
    """Get the shared Jinja2 environment (lazy singleton)."""
    global _env
    if _env is None:
        _env = create_jinja_env()
    return _env


def render_template(template_name: str, **kwargs: Any) -> str:
    """Render a template from ``formweave/templates``."""
    return get_jinja_env().get_template(template_name).render(**kwargs)
