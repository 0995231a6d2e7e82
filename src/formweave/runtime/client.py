"""
Thin HTTP client for a running host service.

Finds the host through its runtime file (or an explicit URL) and wraps the
host's JSON API. Connection failures surface as ``ServiceUnavailable``.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any

import httpx

from formweave.core.errors import FormweaveError, LoadError, ServiceUnavailable
from formweave.runtime.config import WeaveConfig
from formweave.runtime.ports import read_runtime_file


class ServiceClient:
    """HTTP client for the formweave host."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    @classmethod
    def discover(cls, config: WeaveConfig | None = None, **kwargs: Any) -> ServiceClient:
        """Client for the host recorded in the runtime file.

        Raises:
            ServiceUnavailable: when no host has recorded itself
        """
        config = config or WeaveConfig.from_env()
        record = read_runtime_file(config.runtime_file)
        if record is None:
            raise ServiceUnavailable(
                "No running host found; start one with 'formweave serve'",
                {"runtime_file": str(config.runtime_file)},
            )
        return cls(record.url, **kwargs)

    def __enter__(self) -> ServiceClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self.client.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return self.client.request(method, path, **kwargs)
        except httpx.ConnectError as exc:
            raise ServiceUnavailable(
                f"Host not reachable at {self.base_url}. Is it running?",
                {"hint": "Start it with: formweave serve"},
            ) from exc
        except httpx.TimeoutException as exc:
            raise ServiceUnavailable(f"Host at {self.base_url} timed out") from exc

    def health_check(self) -> bool:
        """True when the host answers its health endpoint."""
        try:
            return self._request("GET", "/health").status_code == 200
        except ServiceUnavailable:
            return False

    def wait_for_ready(self, max_wait: float = 10.0) -> bool:
        """Poll the health endpoint until it answers or ``max_wait`` passes."""
        start = time.time()
        while time.time() - start < max_wait:
            if self.health_check():
                return True
            time.sleep(0.2)
        return False

    def list_apps(self) -> list[dict[str, Any]]:
        response = self._request("GET", "/api/apps")
        response.raise_for_status()
        apps: list[dict[str, Any]] = response.json()["apps"]
        return apps

    def load_app(self, file_path: Path | str, name: str | None = None) -> dict[str, Any]:
        """Ask the host to load a definition file.

        The path is resolved here, since the host may run in another directory.

        Raises:
            LoadError: when the host rejects the file
        """
        payload = {"file_path": str(Path(file_path).expanduser().resolve()), "name": name}
        response = self._request("POST", "/load-app", json=payload)
        if response.status_code == 400:
            raise LoadError(response.json().get("error", "Host rejected the file"))
        response.raise_for_status()
        data: dict[str, Any] = response.json()
        data["full_url"] = f"{self.base_url}{data['url']}"
        return data

    def remove_app(self, app_id: str) -> None:
        response = self._request("DELETE", f"/api/apps/{app_id}")
        if response.status_code == 404:
            raise FormweaveError(f"No app '{app_id}' on the host")
        response.raise_for_status()
