"""
Stable identifiers for action nodes.

Requests address buttons purely by these strings; no identifier table is
kept between requests, so an id must be re-derivable from declaration order.
"""

from __future__ import annotations

import re

_NON_WORD = re.compile(r"\W+")


def normalize_label(label: str) -> str:
    """Lowercase a label and collapse non-word runs to underscores."""
    text = _NON_WORD.sub("_", label.strip().lower()).strip("_")
    return text or "action"


def action_id(label: str, ordinal: int, prefix: str = "") -> str:
    """Identifier for the ``ordinal``-th action node of a build.

    Example:
        >>> action_id("Greet", 1)
        'greet_1'
        >>> action_id("Add item", 3, prefix="btn_")
        'btn_add_item_3'
    """
    return f"{prefix}{normalize_label(label)}_{ordinal}"


class IdentifierAssigner:
    """Ordinal counter for one Tree Build pass."""

    START = 1

    def __init__(self, prefix: str = "") -> None:
        self.prefix = prefix
        self._next = self.START

    def assign(self, label: str) -> str:
        node_id = action_id(label, self._next, self.prefix)
        self._next += 1
        return node_id

    @property
    def assigned(self) -> int:
        """Number of identifiers handed out so far."""
        return self._next - self.START
