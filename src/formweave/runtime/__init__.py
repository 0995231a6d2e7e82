"""
formweave runtime.

This package provides:
- State Store and per-kind defaults
- Stable identifiers for action nodes
- Tree Builder that runs definition blocks
- Coercion of posted values
- Sync engine, HTTP routes, standalone server, one-shot runner and host

Server-side modules are imported from their own modules
(``formweave.runtime.server``, ``formweave.runtime.host`` ...).
"""

from formweave.runtime.builder import TreeBuilder, build
from formweave.runtime.coercion import UNCHANGED, coerce_value, merge_fields
from formweave.runtime.identifiers import IdentifierAssigner, action_id
from formweave.runtime.state import StateStore

__all__ = [
    "UNCHANGED",
    "IdentifierAssigner",
    "StateStore",
    "TreeBuilder",
    "action_id",
    "build",
    "coerce_value",
    "merge_fields",
]
