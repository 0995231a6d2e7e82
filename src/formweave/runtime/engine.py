"""
Sync engine: the four request verbs against one app's sessions.

Every verb follows the same shape: coerce posted values into the store,
rebuild the tree from the store, optionally run a handler, rebuild again and
render. Verbs are synchronous; the router runs them off the event loop.

Handler failures never escape a verb. They are logged and shown as a notice
in the returned fragment, and coerced values merged before the handler ran
stay in the store.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from formweave.adapters.base import RenderContext, RenderMode
from formweave.core.errors import HandlerFailure, UnresolvedTarget
from formweave.runtime.app import App
from formweave.runtime.builder import build
from formweave.runtime.coercion import decode_scoped, merge_fields
from formweave.runtime.sessions import Session, SessionRegistry
from formweave.specs.nodes import ComponentTree, Node

logger = logging.getLogger(__name__)

Fields = Mapping[str, list[str]]
CompletionCallback = Callable[[dict[str, Any]], None]


class Engine:
    """
    Runs one App for many sessions.

    Args:
        app: App whose definition is rebuilt on every request
        sessions: Session table (a fresh one by default)
        route_prefix: Prefix of every URL the rendered controls post to
        one_shot: Render the final submit control
        on_complete: Receives the one-shot result, at most once
    """

    def __init__(
        self,
        app: App,
        *,
        sessions: SessionRegistry | None = None,
        route_prefix: str = "",
        one_shot: bool = False,
        on_complete: CompletionCallback | None = None,
    ) -> None:
        self.app = app
        self.sessions = sessions if sessions is not None else SessionRegistry()
        self.route_prefix = route_prefix
        self.one_shot = one_shot
        self.on_complete = on_complete
        self._complete_lock = threading.Lock()
        self._completed = False

    @property
    def completed(self) -> bool:
        return self._completed

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _context(self, notices: Sequence[str] = ()) -> RenderContext:
        return RenderContext(
            title=self.app.title,
            route_prefix=self.route_prefix,
            layout=self.app.layout,
            one_shot=self.one_shot,
            notices=tuple(notices),
        )

    def _build(self, session: Session) -> ComponentTree:
        tree = build(self.app.definition, session.store, id_prefix=self.app.id_prefix)
        session.last_tree = tree
        return tree

    def _render(self, session: Session, notices: Sequence[str] = ()) -> str:
        tree = self._build(session)
        return self.app.adapter.render(
            tree, session.store, RenderMode.PARTIAL, self._context(notices)
        )

    def _merge(self, session: Session, fields: Fields) -> dict[str, Any]:
        """Coerce top-level fields declared by the session's latest tree."""
        tree = session.last_tree or self._build(session)
        return merge_fields(session.store, tree.input_nodes(), fields)

    def _run_handler(self, target: str, call: Callable[[], Any]) -> str | None:
        """Run a handler; returns a notice instead of raising."""
        try:
            call()
        except Exception as exc:
            failure = HandlerFailure(target, exc)
            logger.exception(failure.message)
            return failure.message
        return None

    # ------------------------------------------------------------------
    # Verbs
    # ------------------------------------------------------------------

    def page(self, session: Session) -> str:
        """Full document for the session's current store."""
        tree = self._build(session)
        return self.app.adapter.render(tree, session.store, RenderMode.FULL, self._context())

    def sync(self, session: Session, fields: Fields, *, render: bool = False) -> str | None:
        """Merge posted values. Returns the re-rendered anchor when ``render`` is set."""
        self._merge(session, fields)
        if not render:
            return None
        return self._render(session)

    def action(self, session: Session, action_id: str, fields: Fields) -> str:
        """Merge posted values, then run the handler of ``action_id`` if it still exists."""
        self._merge(session, fields)
        tree = self._build(session)
        node = tree.find_action(action_id)

        notices: list[str] = []
        if node is None:
            logger.warning(UnresolvedTarget(action_id).message)
        elif node.handler is not None:
            handler = node.handler
            notice = self._run_handler(action_id, lambda: handler(session.store))
            if notice:
                notices.append(notice)

        return self._render(session, notices)

    def submit_form(self, session: Session, name: str, fields: Fields) -> str:
        """Commit a scoped form: replace ``store[name]`` and run its commit handler."""
        tree = self._build(session)
        form = tree.find_form(name)
        if form is None:
            logger.warning(UnresolvedTarget(name, kind="form").message)
            return self._render(session)

        buffer = dict(session.store.get(name) or {})
        merge_fields(buffer, _form_fields(form), decode_scoped(fields, name))
        session.store[name] = buffer

        notices: list[str] = []
        if form.handler is not None:
            handler = form.handler
            values = copy.deepcopy(buffer)
            notice = self._run_handler(name, lambda: handler(session.store, values))
            if notice:
                notices.append(notice)

        return self._render(session, notices)

    def submit_once(self, session: Session, fields: Fields) -> str:
        """Merge posted values, capture the result and hand it to the completion callback."""
        self._merge(session, fields)
        tree = self._build(session)
        result = collect_result(tree, session.store)
        self._complete(result)
        return self.app.adapter.render_confirmation(self._context())

    def _complete(self, result: dict[str, Any]) -> None:
        with self._complete_lock:
            if self._completed:
                logger.info("Ignoring repeated submission")
                return
            self._completed = True
        logger.info("Submission received with %d keys", len(result))
        if self.on_complete is not None:
            self.on_complete(result)


def _form_fields(form: Node) -> list[Node]:
    return [node for node in form.walk() if node.is_interactive and node.scope == form.key]


def collect_result(tree: ComponentTree, store: Mapping[str, Any]) -> dict[str, Any]:
    """Values of every top-level interactive key and every scoped form buffer."""
    result: dict[str, Any] = {}
    for node in tree.input_nodes():
        if node.key is not None and node.key in store:
            result[node.key] = copy.deepcopy(store[node.key])
    for form in tree.forms():
        if form.key is not None and form.key in store:
            result[form.key] = copy.deepcopy(store[form.key])
    return result
