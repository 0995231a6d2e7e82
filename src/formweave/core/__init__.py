"""Core types shared by every formweave layer."""

from .errors import (
    DefinitionError,
    FormweaveError,
    HandlerFailure,
    LoadError,
    PortExhaustion,
    ServiceUnavailable,
    TimeoutExceeded,
    UnresolvedTarget,
)

__all__ = [
    "FormweaveError",
    "DefinitionError",
    "UnresolvedTarget",
    "HandlerFailure",
    "TimeoutExceeded",
    "PortExhaustion",
    "ServiceUnavailable",
    "LoadError",
]
