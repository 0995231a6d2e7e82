"""
Tree Builder.

Runs a definition block against a State Store and collects the ordered,
nested Component Tree. The definition is an ordinary function receiving a
``TreeBuilder``; containers are context managers so nesting follows the
block structure of the definition:

    def view(ui: TreeBuilder) -> None:
        ui.text_field("name", placeholder="Your name")
        with ui.card():
            if ui.state["name"]:
                ui.text(f"Hi {ui.state['name']}")
            ui.button("Clear", on_click=lambda state: state.update(name=""))

Declaring an interactive node defaults its key in the store. Conditional
branches on ``ui.state`` are the whole reactivity mechanism, so two builds
over different stores may legitimately produce different trees.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator, MutableMapping, Sequence
from contextlib import AbstractContextManager, contextmanager
from typing import Any

from formweave.core.errors import DefinitionError
from formweave.runtime.identifiers import IdentifierAssigner
from formweave.runtime.state import StateStore, hydrate
from formweave.specs.nodes import ComponentTree, Node, NodeKind

Definition = Callable[["TreeBuilder"], None]
ActionHandler = Callable[[StateStore], Any]
CommitHandler = Callable[[StateStore, dict[str, Any]], Any]

_KEY_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

ALERT_VARIANTS = ("info", "success", "warning", "error")


def tag_value(tag: str) -> str:
    """Stored value for a tag label: lower case, whitespace runs as underscores."""
    return re.sub(r"\s+", "_", tag.strip().lower())


class TreeBuilder:
    """Collects nodes for one build pass. Create a fresh builder per build."""

    def __init__(self, store: StateStore, id_prefix: str = "") -> None:
        self.state = store
        self._ids = IdentifierAssigner(id_prefix)
        # Stack of child lists; the bottom entry holds the root nodes
        self._frames: list[list[Node]] = [[]]
        self._scope: str | None = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _add(self, node: Node) -> Node:
        self._frames[-1].append(node)
        return node

    def _check_key(self, key: str) -> str:
        if not isinstance(key, str) or not _KEY_PATTERN.match(key):
            raise DefinitionError(f"State key {key!r} must be an identifier")
        return key

    def _target(self) -> MutableMapping[str, Any]:
        """Mapping that receives defaults: the store or the current form buffer."""
        if self._scope is None:
            return self.state
        buffer: MutableMapping[str, Any] = self.state[self._scope]
        return buffer

    def _input(self, kind: NodeKind, key: str, label: str | None = None, **options: Any) -> Node:
        node = Node(
            kind=kind,
            key=self._check_key(key),
            label=label,
            scope=self._scope,
            options={k: v for k, v in options.items() if v is not None},
        )
        hydrate(self._target(), node)
        return self._add(node)

    @contextmanager
    def _container(
        self,
        kind: NodeKind,
        *,
        key: str | None = None,
        label: str | None = None,
        handler: Callable[..., Any] | None = None,
        **options: Any,
    ) -> Iterator[None]:
        self._frames.append([])
        try:
            yield
        finally:
            children = self._frames.pop()
        self._add(
            Node(
                kind=kind,
                key=key,
                label=label,
                scope=self._scope if kind is not NodeKind.FORM else None,
                children=tuple(children),
                handler=handler,
                options={k: v for k, v in options.items() if v is not None},
            )
        )

    def finish(self) -> ComponentTree:
        if len(self._frames) != 1:
            raise DefinitionError("Definition finished with an open container")
        return ComponentTree(nodes=tuple(self._frames[0]))

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def text_field(
        self,
        key: str,
        *,
        placeholder: str = "",
        default: str | None = None,
        submit: bool = True,
    ) -> Node:
        """Single-line text input bound to ``key``."""
        return self._input(
            NodeKind.TEXT_FIELD, key, placeholder=placeholder, default=default, submit=submit
        )

    def text_area(
        self,
        key: str,
        *,
        placeholder: str = "",
        rows: int = 3,
        default: str | None = None,
        submit: bool = True,
    ) -> Node:
        """Multi-line text input bound to ``key``."""
        return self._input(
            NodeKind.TEXT_AREA,
            key,
            placeholder=placeholder,
            rows=rows,
            default=default,
            submit=submit,
        )

    def checkbox(self, key: str, label: str = "", *, default: bool | None = None) -> Node:
        """Boolean toggle bound to ``key``."""
        return self._input(NodeKind.CHECKBOX, key, label, default=default)

    def select(self, key: str, choices: Sequence[str], *, default: str | None = None) -> Node:
        """Dropdown; the stored value starts at ``default`` or ``""``."""
        return self._input(NodeKind.SELECT, key, choices=list(choices), default=default)

    def radio_group(self, key: str, choices: Sequence[str], *, default: str | None = None) -> Node:
        return self._input(NodeKind.RADIO_GROUP, key, choices=list(choices), default=default)

    def checkbox_group(
        self,
        key: str,
        choices: Sequence[str],
        *,
        default: Sequence[str] | None = None,
        select_all: str | None = None,
        select_none: str | None = None,
    ) -> Node:
        """Multi-select stored as a list of the checked values."""
        return self._input(
            NodeKind.CHECKBOX_GROUP,
            key,
            choices=list(choices),
            default=list(default) if default is not None else None,
            select_all=select_all,
            select_none=select_none,
        )

    def tag_buttons(
        self,
        key: str,
        tags: Sequence[str],
        *,
        style: str = "default",
        default: str | None = None,
    ) -> Node:
        """Single-select row of tags. Stores the picked tag as ``tag_value(tag)``."""
        return self._input(
            NodeKind.TAG_BUTTONS,
            key,
            choices=list(tags),
            style=style,
            default=default,
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def button(
        self,
        label: str,
        on_click: ActionHandler | None = None,
        *,
        style: str = "primary",
        submit: bool = True,
    ) -> str:
        """Action node. Returns its stable identifier."""
        node_id = self._ids.assign(label)
        self._add(
            Node(
                kind=NodeKind.BUTTON,
                label=label,
                node_id=node_id,
                scope=self._scope,
                handler=on_click,
                options={"style": style, "submit": submit},
            )
        )
        return node_id

    def external_link_button(self, label: str, url: str, *, submit: bool = False) -> Node:
        """Opens ``url`` in a new tab; with ``submit`` it also sends the one-shot result."""
        return self._add(
            Node(
                kind=NodeKind.EXTERNAL_LINK_BUTTON,
                label=label,
                scope=self._scope,
                options={"url": url, "submit": submit},
            )
        )

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def text(self, content: Any) -> Node:
        return self._add(Node(kind=NodeKind.TEXT, label=str(content), scope=self._scope))

    def header(self, content: Any, level: int = 2) -> Node:
        level = max(1, min(6, level))
        return self._add(
            Node(
                kind=NodeKind.HEADER,
                label=str(content),
                scope=self._scope,
                options={"level": level},
            )
        )

    def markdown(self, content: str) -> Node:
        return self._add(Node(kind=NodeKind.MARKDOWN, label=content, scope=self._scope))

    md = markdown

    def status_badge(self, status: str, reasoning: str = "") -> Node:
        """Verdict chip: ``strong``, ``maybe`` or ``skip``."""
        return self._add(
            Node(
                kind=NodeKind.STATUS_BADGE,
                label=reasoning,
                scope=self._scope,
                options={"status": str(status)},
            )
        )

    def progress_bar(
        self,
        value: float,
        *,
        max_value: float = 100,
        variant: str = "primary",
        show_label: bool = True,
        animated: bool = False,
    ) -> Node:
        return self._add(
            Node(
                kind=NodeKind.PROGRESS_BAR,
                scope=self._scope,
                options={
                    "value": value,
                    "max": max_value,
                    "variant": variant,
                    "show_label": show_label,
                    "animated": animated,
                },
            )
        )

    def html(self, content: str) -> Node:
        """Raw markup, rendered without escaping."""
        return self._add(Node(kind=NodeKind.HTML, label=content, scope=self._scope))

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    def div(
        self, *, css_class: str | None = None, style: str | None = None
    ) -> AbstractContextManager[None]:
        return self._container(NodeKind.DIV, css_class=css_class, style=style)

    def card(self, *, css_class: str | None = None) -> AbstractContextManager[None]:
        return self._container(NodeKind.CARD, css_class=css_class)

    def collapsible(
        self, label: str, *, expanded: bool = False
    ) -> AbstractContextManager[None]:
        return self._container(NodeKind.COLLAPSIBLE, label=label, expanded=expanded)

    def columns(
        self, *, widths: Sequence[str] | None = None, gap: str | None = None
    ) -> AbstractContextManager[None]:
        """Side-by-side layout; each ``column`` inside takes the next width."""
        return self._container(
            NodeKind.COLUMNS, widths=list(widths) if widths is not None else None, gap=gap
        )

    def column(self, *, css_class: str | None = None) -> AbstractContextManager[None]:
        return self._container(NodeKind.COLUMN, css_class=css_class)

    def alert(
        self,
        variant: str = "info",
        *,
        title: str | None = None,
        dismissible: bool = False,
    ) -> AbstractContextManager[None]:
        """Callout box (``info``, ``success``, ``warning`` or ``error``) around its children."""
        if variant not in ALERT_VARIANTS:
            raise DefinitionError(f"Unknown alert variant {variant!r}", {"allowed": ALERT_VARIANTS})
        return self._container(
            NodeKind.ALERT, label=title, variant=variant, dismissible=dismissible
        )

    @contextmanager
    def form(
        self,
        name: str,
        *,
        submit: str | None = "Submit",
        cancel: str | None = None,
        on_submit: CommitHandler | None = None,
    ) -> Iterator[None]:
        """Scoped form: fields edit a client-side buffer committed on submit.

        Fields declared inside are bound to ``state[name][field]`` and are not
        top-level keys.
        """
        if self._scope is not None:
            raise DefinitionError(
                f"Form '{name}' cannot be nested inside form '{self._scope}'",
            )
        self._check_key(name)
        buffer = self.state.setdefault(name, {})
        if not isinstance(buffer, MutableMapping):
            raise DefinitionError(
                f"Form '{name}' collides with a non-mapping state value",
                {"value": buffer},
            )

        self._scope = name
        try:
            with self._container(
                NodeKind.FORM,
                key=name,
                handler=on_submit,
                submit=submit,
                cancel=cancel,
            ):
                yield
        finally:
            self._scope = None


def build(definition: Definition, store: StateStore, *, id_prefix: str = "") -> ComponentTree:
    """Execute ``definition`` against ``store`` and return the resulting tree.

    The identifier counter starts over on every call, so identical stores
    produce identical trees.
    """
    builder = TreeBuilder(store, id_prefix)
    definition(builder)
    return builder.finish()
