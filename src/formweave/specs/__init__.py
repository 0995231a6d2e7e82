"""
Component tree specification types.
"""

from formweave.specs.nodes import ComponentTree, Node, NodeCategory, NodeKind

__all__ = [
    "ComponentTree",
    "Node",
    "NodeCategory",
    "NodeKind",
]
