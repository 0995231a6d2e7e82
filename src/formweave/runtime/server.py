"""
FastAPI server factory and the standalone runner.

``create_app`` serves one App at ``/``; ``run_standalone`` picks a free port,
opens a browser and blocks in uvicorn until interrupted.
"""

from __future__ import annotations

import threading
import webbrowser
from typing import TYPE_CHECKING

import uvicorn
from fastapi import FastAPI

from formweave._version import __version__
from formweave.runtime.config import WeaveConfig
from formweave.runtime.engine import CompletionCallback, Engine
from formweave.runtime.logging import get_logger
from formweave.runtime.ports import find_available_port
from formweave.runtime.routes import create_app_router, static_resolver
from formweave.runtime.sessions import SessionRegistry

if TYPE_CHECKING:
    from formweave.runtime.app import App

logger = get_logger("SERVER")


def create_app(
    app: App,
    *,
    config: WeaveConfig | None = None,
    one_shot: bool = False,
    on_complete: CompletionCallback | None = None,
) -> FastAPI:
    """
    Create the FastAPI application for one App.

    Args:
        app: App to serve
        config: Runtime settings (environment defaults when omitted)
        one_shot: Add the final submit control and ``POST /submit``
        on_complete: Receives the one-shot result

    Returns:
        Configured FastAPI application; ``.state.engine`` holds the engine
    """
    config = config or WeaveConfig.from_env()
    engine = Engine(
        app,
        sessions=SessionRegistry(config.secret_key),
        one_shot=one_shot,
        on_complete=on_complete,
    )

    api = FastAPI(title=app.title, version=__version__, docs_url=None, redoc_url=None)
    api.state.engine = engine

    @api.get("/health", tags=["System"], summary="Health check")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    api.include_router(create_app_router(static_resolver(engine), one_shot=one_shot))
    return api


def open_browser_later(url: str, delay: float = 1.0) -> threading.Timer:
    """Open ``url`` once the server had a moment to bind."""
    timer = threading.Timer(delay, webbrowser.open, args=(url,))
    timer.daemon = True
    timer.start()
    return timer


def run_standalone(
    app: App,
    *,
    host: str | None = None,
    port: int | None = None,
    open_browser: bool | None = None,
    config: WeaveConfig | None = None,
) -> None:
    """
    Serve ``app`` on the first free port at or above ``port``. Blocks.

    Raises:
        PortExhaustion: when no port in the configured range is free
    """
    config = (config or WeaveConfig.from_env()).override(
        host=host, port=port, open_browser=open_browser
    )
    bound = find_available_port(config.port, config.host, config.port_range)
    if bound != config.port:
        logger.info("Port %d is in use, using %d", config.port, bound)

    url = f"http://{config.host}:{bound}"
    logger.info("Serving '%s' at %s", app.title, url)
    if config.open_browser:
        open_browser_later(url)

    try:
        uvicorn.run(
            create_app(app, config=config),
            host=config.host,
            port=bound,
            log_level="warning",
        )
    except KeyboardInterrupt:
        logger.info("Shutting down")
