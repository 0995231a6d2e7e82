"""
Coercion of posted form values into typed store values.

The browser posts every value as a string. The shape of the value already in
the store decides how a posted value is interpreted:

    absent + bool current      -> False   (unchecked boxes are not posted)
    absent otherwise           -> unchanged
    list current               -> posted values minus the "" sentinel
    several posted values      -> list
    "true" / "on"              -> True
    "false"                    -> False
    anything else              -> the raw string
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping, MutableMapping
from typing import Any, Final

from formweave.specs.nodes import Node

logger = logging.getLogger(__name__)


class _Unchanged:
    """Sentinel: leave the stored value as it is."""

    _instance: _Unchanged | None = None

    def __new__(cls) -> _Unchanged:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNCHANGED"

    def __bool__(self) -> bool:
        return False


UNCHANGED: Final = _Unchanged()

TRUTHY: Final = frozenset({"true", "on"})
FALSY: Final = frozenset({"false"})

# Hidden input emitted by checkbox groups so an empty selection still posts
LIST_SENTINEL: Final = ""

_SCOPED_KEY = re.compile(
    r"^(?P<scope>[A-Za-z_][A-Za-z0-9_]*)\[(?P<field>[A-Za-z_][A-Za-z0-9_]*)\]$"
)

FormFields = dict[str, list[str]]


def coerce_value(values: list[str] | None, current: Any) -> Any:
    """Coerce posted ``values`` for one key against its ``current`` value.

    ``values`` is ``None`` when the key was not posted at all. Returns
    ``UNCHANGED`` when the store should keep ``current``.
    """
    if values is None:
        if isinstance(current, bool):
            return False
        return UNCHANGED

    if isinstance(current, list):
        return [value for value in values if value != LIST_SENTINEL]

    if len(values) > 1:
        return list(values)
    if not values:
        return UNCHANGED

    raw = values[0]
    if raw in TRUTHY:
        return True
    if raw in FALSY:
        return False
    return raw


def merge_fields(
    target: MutableMapping[str, Any],
    nodes: Iterable[Node],
    fields: Mapping[str, list[str]],
) -> dict[str, Any]:
    """Coerce ``fields`` for the declared ``nodes`` and write them into ``target``.

    Keys that no node declares are ignored. Returns the values that were written.
    """
    declared = [node for node in nodes if node.key is not None]
    written: dict[str, Any] = {}
    for node in declared:
        key = node.key
        value = coerce_value(fields.get(key), target.get(key))
        if value is UNCHANGED:
            continue
        target[key] = value
        written[key] = value

    ignored = set(fields) - {node.key for node in declared}
    if ignored:
        logger.debug("Ignoring undeclared keys: %s", sorted(ignored))
    return written


def decode_scoped(fields: Mapping[str, list[str]], scope: str) -> FormFields:
    """Extract ``scope[field]`` entries, keyed by the bare field name."""
    decoded: FormFields = {}
    for name, values in fields.items():
        match = _SCOPED_KEY.match(name)
        if match and match.group("scope") == scope:
            decoded.setdefault(match.group("field"), []).extend(values)
    return decoded


def form_to_fields(form: Any) -> FormFields:
    """Turn a multi-valued form (Starlette ``FormData``) into ``{key: [values]}``.

    File uploads are not supported; non-string entries are skipped.
    """
    fields: FormFields = {}
    for name, value in form.multi_items():
        if isinstance(value, str):
            fields.setdefault(name, []).append(value)
    return fields
