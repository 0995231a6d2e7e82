"""
htmx-aware response helpers.

Builds HTMLResponse objects with HX-* headers so the server can steer where
the client swaps a fragment.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from fastapi.responses import HTMLResponse
from markupsafe import Markup


@dataclass(frozen=True, slots=True)
class HtmxDetails:
    """Parsed htmx request headers.

    https://htmx.org/reference/#request_headers
    """

    trigger_id: str = ""

    @classmethod
    def from_request(cls, request: Any) -> HtmxDetails:
        """Construct from a Starlette/FastAPI request."""
        if not hasattr(request, "headers"):
            return cls()
        return cls(trigger_id=request.headers.get("HX-Trigger", ""))


def htmx_response(
    content: str,
    *,
    status_code: int = 200,
    triggers: dict[str, Any] | list[str] | None = None,
    retarget: str | None = None,
    reswap: str | None = None,
) -> HTMLResponse:
    """Create an HTMLResponse with htmx headers.

    Args:
        content: HTML body content.
        status_code: HTTP status code (default 200).
        triggers: Events to fire on the client via HX-Trigger.
            - list[str]: simple event names (no payload)
            - dict[str, Any]: event names with JSON payloads
        retarget: CSS selector overriding the triggering element's hx-target.
        reswap: Override the triggering element's hx-swap strategy.

    Returns:
        HTMLResponse with the HX-* headers set.
    """
    headers: dict[str, str] = {}

    if triggers:
        headers["HX-Trigger"] = _encode_trigger(triggers)
    if retarget:
        headers["HX-Retarget"] = retarget
    if reswap:
        headers["HX-Reswap"] = reswap

    return HTMLResponse(content=content, status_code=status_code, headers=headers)


def htmx_error_response(errors: list[str], *, anchor: str = "#app-container") -> HTMLResponse:
    """Error notice swapped into the app anchor.

    Sent with status 200 because htmx does not swap error responses; the
    ``fw:error`` event lets pages react to it.
    """
    items = Markup("").join(Markup("<li>{}</li>").format(error) for error in errors)
    html = Markup(
        '<div class="fw-notice fw-notice-error" role="alert">'
        "<strong>Something went wrong</strong><ul>{}</ul></div>"
    ).format(items)
    return htmx_response(
        str(html),
        retarget=anchor,
        reswap="innerHTML",
        triggers={"fw:error": {"count": len(errors)}},
    )


def _encode_trigger(value: dict[str, Any] | list[str]) -> str:
    """Encode trigger value to HX-Trigger header format."""
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return ", ".join(value)
    return json.dumps(value)
