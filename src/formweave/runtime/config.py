"""
Runtime configuration from environment variables.

CLI options override these values; nothing else reads the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from formweave.runtime.sessions import DEV_SECRET_KEY


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class WeaveConfig:
    """Settings shared by the standalone server, one-shot runner and host."""

    host: str = "127.0.0.1"
    port: int = 4567
    port_range: int = 100
    secret_key: str = DEV_SECRET_KEY
    timeout: float = 300.0
    open_browser: bool = True
    log_level: str = "INFO"
    home: Path = Path("~/.formweave").expanduser()

    @classmethod
    def from_env(cls) -> WeaveConfig:
        """Load configuration from environment variables."""
        return cls(
            host=os.environ.get("FORMWEAVE_HOST", "127.0.0.1"),
            port=int(os.environ.get("FORMWEAVE_PORT", "4567")),
            port_range=int(os.environ.get("FORMWEAVE_PORT_RANGE", "100")),
            secret_key=os.environ.get("FORMWEAVE_SECRET_KEY", DEV_SECRET_KEY),
            timeout=float(os.environ.get("FORMWEAVE_TIMEOUT", "300")),
            open_browser=_env_bool("FORMWEAVE_OPEN_BROWSER", "1"),
            log_level=os.environ.get("FORMWEAVE_LOG_LEVEL", "INFO").upper(),
            home=Path(os.environ.get("FORMWEAVE_HOME", "~/.formweave")).expanduser(),
        )

    def override(self, **changes: Any) -> WeaveConfig:
        """Copy with the non-None ``changes`` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def runtime_file(self) -> Path:
        """Where a running host records its pid and port."""
        return self.home / "host.json"

    @property
    def log_dir(self) -> Path:
        return self.home / "logs"
