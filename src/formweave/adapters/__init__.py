"""
Renderers that turn Component Trees into HTML.
"""

from formweave.adapters.alpine_htmx import AlpineHtmxAdapter
from formweave.adapters.base import Adapter, RenderContext, RenderMode

__all__ = [
    "Adapter",
    "AlpineHtmxAdapter",
    "RenderContext",
    "RenderMode",
]
