"""
Multi-app host service.

One long-running process serves any number of apps, each under
``/apps/{id}/`` with its own engine and session table:

- GET    /                 index of hosted apps
- GET    /api/apps         hosted apps as JSON
- POST   /load-app         load a definition file, returns its id and URL
- DELETE /api/apps/{id}    stop hosting an app
- GET    /health

The host table is owned by an ``AppHost`` created with the service. Only the
load and remove endpoints change it, and they run on the event loop, so there
is a single writer. The lifespan drains the table on shutdown.
"""

from __future__ import annotations

import logging
import secrets
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, Field

from formweave._version import __version__
from formweave.adapters.base import render_template
from formweave.core.errors import LoadError
from formweave.runtime.app import App
from formweave.runtime.config import WeaveConfig
from formweave.runtime.engine import Engine
from formweave.runtime.loader import load_app
from formweave.runtime.logging import get_logger, log_with_context
from formweave.runtime.ports import clear_runtime_file, find_available_port, write_runtime_file
from formweave.runtime.routes import create_app_router
from formweave.runtime.sessions import SessionRegistry, cookie_name

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = get_logger("HOST")

APPS_PREFIX = "/apps"


class LoadAppRequest(BaseModel):
    """Body of ``POST /load-app``."""

    file_path: str = Field(description="Definition file on the host's filesystem")
    name: str | None = Field(default=None, description="Display name (App title by default)")


@dataclass
class HostedApp:
    """An app served by the host."""

    id: str
    name: str
    engine: Engine
    file_path: Path | None = None
    loaded_at: float = field(default_factory=time.time)

    @property
    def url(self) -> str:
        return f"{APPS_PREFIX}/{self.id}/"

    def describe(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "file_path": str(self.file_path) if self.file_path else None,
            "loaded_at": self.loaded_at,
            "sessions": len(self.engine.sessions),
        }


class AppHost:
    """Owns the table of hosted apps."""

    def __init__(self, config: WeaveConfig | None = None) -> None:
        self.config = config or WeaveConfig.from_env()
        self._apps: dict[str, HostedApp] = {}

    def __len__(self) -> int:
        return len(self._apps)

    def __contains__(self, app_id: object) -> bool:
        return app_id in self._apps

    def _new_id(self) -> str:
        while True:
            app_id = secrets.token_hex(4)
            if app_id not in self._apps:
                return app_id

    def add(
        self, app: App, *, name: str | None = None, file_path: Path | None = None
    ) -> HostedApp:
        """Host an App instance under a fresh id."""
        app_id = self._new_id()
        engine = Engine(
            app,
            sessions=SessionRegistry(self.config.secret_key, cookie_name(app_id)),
            route_prefix=f"{APPS_PREFIX}/{app_id}",
        )
        hosted = HostedApp(id=app_id, name=name or app.title, engine=engine, file_path=file_path)
        self._apps[app_id] = hosted
        log_with_context(
            logger, logging.INFO, f"Loaded '{hosted.name}'", id=app_id, url=hosted.url
        )
        return hosted

    def load(self, file_path: Path | str, *, name: str | None = None) -> HostedApp:
        """Load a definition file and host its App.

        Raises:
            LoadError: when the file cannot provide an App
        """
        path = Path(file_path).expanduser().resolve()
        return self.add(load_app(path), name=name, file_path=path)

    def get(self, app_id: str) -> HostedApp | None:
        return self._apps.get(app_id)

    def apps(self) -> list[HostedApp]:
        return sorted(self._apps.values(), key=lambda hosted: hosted.loaded_at)

    def remove(self, app_id: str) -> bool:
        hosted = self._apps.pop(app_id, None)
        if hosted is None:
            return False
        hosted.engine.sessions.clear()
        log_with_context(logger, logging.INFO, f"Removed '{hosted.name}'", id=app_id)
        return True

    def drain(self) -> None:
        """Drop every hosted app and its sessions."""
        for app_id in list(self._apps):
            self.remove(app_id)

    def resolve(self, request: Request) -> Engine:
        """Engine for an ``/apps/{app_id}/...`` request."""
        app_id = request.path_params.get("app_id", "")
        hosted = self._apps.get(app_id)
        if hosted is None:
            raise HTTPException(status_code=404, detail=f"No app '{app_id}'")
        return hosted.engine


def create_host_app(host: AppHost | None = None, *, config: WeaveConfig | None = None) -> FastAPI:
    """
    Create the host service application.

    Args:
        host: Host table to serve (a fresh one by default)
        config: Settings for a fresh host table

    Returns:
        FastAPI application; ``.state.host`` holds the AppHost
    """
    if host is None:
        host = AppHost(config)

    @asynccontextmanager
    async def lifespan(api: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Host started")
        yield
        count = len(host)
        host.drain()
        logger.info("Host stopped, drained %d app(s)", count)

    api = FastAPI(
        title="formweave host",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )
    api.state.host = host

    @api.get("/health", tags=["System"], summary="Health check")
    async def health() -> dict[str, Any]:
        return {"status": "healthy", "apps": len(host)}

    @api.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        return HTMLResponse(
            render_template("host.html", apps=host.apps(), version=__version__)
        )

    @api.get("/api/apps")
    async def list_apps() -> dict[str, Any]:
        return {"apps": [hosted.describe() for hosted in host.apps()]}

    @api.post("/load-app", response_model=None)
    async def load(body: LoadAppRequest) -> dict[str, Any] | JSONResponse:
        try:
            hosted = host.load(body.file_path, name=body.name)
        except LoadError as exc:
            logger.warning("Load failed: %s", exc)
            return JSONResponse(status_code=400, content={"error": str(exc)})
        return hosted.describe()

    @api.delete("/api/apps/{app_id}", response_model=None)
    async def remove(app_id: str) -> dict[str, Any] | JSONResponse:
        if not host.remove(app_id):
            return JSONResponse(status_code=404, content={"error": f"No app '{app_id}'"})
        return {"removed": app_id}

    api.include_router(create_app_router(host.resolve), prefix=f"{APPS_PREFIX}/{{app_id}}")
    return api


def run_host(
    *,
    host: str | None = None,
    port: int | None = None,
    config: WeaveConfig | None = None,
) -> None:
    """
    Run the host service until interrupted. Blocks.

    Records the bound address in the runtime file so clients can find it.

    Raises:
        PortExhaustion: when no port in the configured range is free
    """
    config = (config or WeaveConfig.from_env()).override(host=host, port=port)
    bound = find_available_port(config.port, config.host, config.port_range)
    write_runtime_file(config.runtime_file, config.host, bound)
    logger.info("Host listening on http://%s:%d", config.host, bound)
    try:
        uvicorn.run(
            create_host_app(AppHost(config)),
            host=config.host,
            port=bound,
            log_level="warning",
        )
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        clear_runtime_file(config.runtime_file)
