"""
HTTP routes for one app.

- GET  /                  full document
- POST /update            merge values; 204, or the anchor with ?render=1
- POST /action/{id}       run an action, return the anchor
- POST /form/{name}       commit a scoped form, return the anchor
- POST /submit            one-shot submission, return a confirmation page

Routes only decode requests and encode responses; the engine does the work.
Any exception escaping a verb is contained here and rendered as an error
notice, so one failing app or session never takes the process down.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, Response
from markupsafe import Markup

from formweave.runtime.coercion import form_to_fields
from formweave.runtime.engine import Engine
from formweave.runtime.htmx import HtmxDetails, htmx_error_response, htmx_response
from formweave.runtime.sessions import Session

logger = logging.getLogger(__name__)

# 24-hour cookie expiry
_COOKIE_MAX_AGE = 86400

EngineResolver = Callable[[Request], Engine]


def _with_cookie(response: Response, engine: Engine, session: Session, created: bool) -> Response:
    if created:
        response.set_cookie(
            engine.sessions.cookie_name,
            engine.sessions.cookie_value(session),
            httponly=True,
            samesite="lax",
            max_age=_COOKIE_MAX_AGE,
        )
    return response


def _session(request: Request, engine: Engine) -> tuple[Session, bool]:
    return engine.sessions.resolve(request.cookies.get(engine.sessions.cookie_name))


def _failure(request: Request, exc: Exception) -> HTMLResponse:
    logger.exception("Request %s %s failed", request.method, request.url.path)
    return htmx_error_response([f"{type(exc).__name__}: {exc}"])


def create_app_router(resolve: EngineResolver, *, one_shot: bool = False) -> APIRouter:
    """Create the routes of one app.

    Args:
        resolve: Returns the engine serving a request (may raise HTTPException)
        one_shot: Register ``POST /submit``

    Returns:
        FastAPI router; mount it with a prefix to host several apps.
    """
    router = APIRouter()

    async def page(request: Request) -> Response:
        engine = resolve(request)
        session, created = _session(request, engine)
        try:
            html = await asyncio.to_thread(engine.page, session)
        except Exception as exc:
            logger.exception("Rendering '%s' failed", engine.app.title)
            body = Markup("<h1>{}</h1><pre>{}: {}</pre>").format(
                engine.app.title, type(exc).__name__, exc
            )
            return HTMLResponse(str(body), status_code=500)
        return _with_cookie(HTMLResponse(html), engine, session, created)

    async def update(request: Request, render: bool = False) -> Response:
        engine = resolve(request)
        session, created = _session(request, engine)
        fields = form_to_fields(await request.form())
        try:
            html = await asyncio.to_thread(engine.sync, session, fields, render=render)
        except Exception as exc:
            return _with_cookie(_failure(request, exc), engine, session, created)
        response: Response = Response(status_code=204) if html is None else htmx_response(html)
        return _with_cookie(response, engine, session, created)

    async def action(request: Request, action_id: str) -> Response:
        engine = resolve(request)
        session, created = _session(request, engine)
        fields = form_to_fields(await request.form())
        logger.debug(
            "Action %s (trigger %r)", action_id, HtmxDetails.from_request(request).trigger_id
        )
        try:
            html = await asyncio.to_thread(engine.action, session, action_id, fields)
        except Exception as exc:
            return _with_cookie(_failure(request, exc), engine, session, created)
        return _with_cookie(htmx_response(html), engine, session, created)

    async def form(request: Request, name: str) -> Response:
        engine = resolve(request)
        session, created = _session(request, engine)
        fields = form_to_fields(await request.form())
        try:
            html = await asyncio.to_thread(engine.submit_form, session, name, fields)
        except Exception as exc:
            return _with_cookie(_failure(request, exc), engine, session, created)
        return _with_cookie(htmx_response(html), engine, session, created)

    async def submit(request: Request) -> Response:
        engine = resolve(request)
        session, created = _session(request, engine)
        fields = form_to_fields(await request.form())
        try:
            html = await asyncio.to_thread(engine.submit_once, session, fields)
        except Exception as exc:
            return _with_cookie(_failure(request, exc), engine, session, created)
        return _with_cookie(HTMLResponse(html), engine, session, created)

    # Register routes
    router.get("/", response_class=HTMLResponse)(page)
    router.post("/update", response_model=None)(update)
    router.post("/action/{action_id}", response_class=HTMLResponse)(action)
    router.post("/form/{name}", response_class=HTMLResponse)(form)
    if one_shot:
        router.post("/submit", response_class=HTMLResponse)(submit)

    return router


def static_resolver(engine: Engine) -> EngineResolver:
    """Resolver for a server that runs a single app."""

    def resolve(_request: Request) -> Engine:
        return engine

    return resolve

