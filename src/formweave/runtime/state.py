"""
Session-scoped State Store.

The store is the only artifact that survives between requests. Tree builds
hydrate it with per-kind defaults; coercion and handlers mutate it in place.
"""

from __future__ import annotations

import copy
import json
from collections.abc import Iterator, MutableMapping
from typing import Any

from formweave.specs.nodes import Node, NodeKind


class StateStore(MutableMapping[str, Any]):
    """Mutable mapping of state keys to str, bool, list or nested dict values."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"StateStore({self._data!r})"

    def snapshot(self) -> dict[str, Any]:
        """Deep copy of the current contents."""
        return copy.deepcopy(self._data)

    def to_json(self) -> str:
        """JSON encoding used to seed the client-side mirror."""
        return json.dumps(self._data, default=str)

    def clear(self) -> None:
        self._data.clear()


def default_for(node: Node) -> Any:
    """Initial value for an interactive node, by kind."""
    default = node.options.get("default")
    if node.kind in (NodeKind.TEXT_FIELD, NodeKind.TEXT_AREA):
        return "" if default is None else default
    if node.kind is NodeKind.CHECKBOX:
        return bool(default) if default is not None else False
    if node.kind in (NodeKind.SELECT, NodeKind.RADIO_GROUP, NodeKind.TAG_BUTTONS):
        return "" if default is None else default
    if node.kind is NodeKind.CHECKBOX_GROUP:
        return list(default) if default is not None else []
    if node.kind is NodeKind.FORM:
        return {}
    raise ValueError(f"Node kind '{node.kind}' has no state default")


def hydrate(target: MutableMapping[str, Any], node: Node) -> None:
    """Default the node's key in ``target`` if it is missing."""
    if node.key is not None and node.key not in target:
        target[node.key] = default_for(node)
