"""
Error types for formweave definitions, request handling and serving.
"""

from __future__ import annotations

from typing import Any


class FormweaveError(Exception):
    """Base exception for all formweave errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        self.message = message
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            details = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({details})"
        return self.message


class DefinitionError(FormweaveError):
    """
    Raised when a definition block declares something the builder cannot accept.

    Examples:
    - State key that is not an identifier
    - Scoped form nested inside another scoped form
    - Form name colliding with a non-mapping stored value
    """

    pass


class UnresolvedTarget(FormweaveError):
    """
    Raised (and normally swallowed into a log line) when a request addresses
    an action or form that the freshly built tree does not contain.
    """

    def __init__(self, target: str, kind: str = "action"):
        self.target = target
        self.kind = kind
        super().__init__(f"No {kind} '{target}' in the current tree", {"target": target})


class HandlerFailure(FormweaveError):
    """Wraps an exception raised by an action or commit handler."""

    def __init__(self, target: str, original: BaseException):
        self.target = target
        self.original = original
        super().__init__(
            f"Handler for '{target}' failed: {type(original).__name__}: {original}",
        )


class TimeoutExceeded(FormweaveError):
    """One-shot mode reached its deadline without a submission."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"No submission received within {timeout:g}s")


class PortExhaustion(FormweaveError):
    """No free listening port in the scanned range."""

    def __init__(self, start: int, end: int, host: str = "127.0.0.1"):
        self.start = start
        self.end = end
        super().__init__(
            f"No available port between {start} and {end}",
            {"host": host},
        )


class ServiceUnavailable(FormweaveError):
    """The shared multi-app host could not be reached."""

    pass


class LoadError(FormweaveError):
    """A definition file is missing or does not expose an App."""

    pass
