"""
One-shot mode: serve an app until a single submission, then stop.

Used by scripts and agents that need one set of answers from a person:

    result = App("Survey", survey).run_once(timeout=120)

The server runs in a background thread. The completion callback sets an
event, the calling thread wakes up, and the server is told to exit. A
timeout is the only other way out.
"""

from __future__ import annotations

import json
import sys
import threading
import time
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO

import uvicorn

from formweave.core.errors import PortExhaustion, TimeoutExceeded
from formweave.runtime.config import WeaveConfig
from formweave.runtime.logging import get_logger
from formweave.runtime.ports import find_available_port
from formweave.runtime.server import create_app, open_browser_later

if TYPE_CHECKING:
    from formweave.runtime.app import App

logger = get_logger("ONESHOT")

# Seconds to wait for uvicorn to bind or to finish shutting down
_STARTUP_TIMEOUT = 10.0
_SHUTDOWN_TIMEOUT = 5.0


class OutputMode(StrEnum):
    """Where the CLI writes a one-shot result."""

    STDOUT = "stdout"
    FILE = "file"


class OneShotRunner:
    """
    Runs one App until it is submitted once.

    Args:
        app: App to serve
        host: Bind host (config default when omitted)
        port: First port to try (config default when omitted)
        timeout: Seconds to wait for the submission
        open_browser: Open the page in a browser
        config: Base settings, overridden by the explicit arguments
    """

    def __init__(
        self,
        app: App,
        *,
        host: str | None = None,
        port: int | None = None,
        timeout: float | None = None,
        open_browser: bool | None = None,
        config: WeaveConfig | None = None,
    ) -> None:
        self.app = app
        self.config = (config or WeaveConfig.from_env()).override(
            host=host, port=port, timeout=timeout, open_browser=open_browser
        )
        self.url: str | None = None
        self.ready = threading.Event()
        self._done = threading.Event()
        self._result: dict[str, Any] | None = None
        self._server: uvicorn.Server | None = None
        self._stop_lock = threading.Lock()
        self._stopped = False

    def _on_complete(self, result: dict[str, Any]) -> None:
        self._result = result
        self._done.set()

    def run(self) -> dict[str, Any]:
        """Serve until submission. Blocks.

        Returns:
            Submitted values: top-level keys and scoped form buffers

        Raises:
            TimeoutExceeded: when nothing is submitted in time
            PortExhaustion: when no port is free or uvicorn cannot bind it
        """
        api = create_app(
            self.app, config=self.config, one_shot=True, on_complete=self._on_complete
        )
        port = find_available_port(self.config.port, self.config.host, self.config.port_range)
        self._server = uvicorn.Server(
            uvicorn.Config(api, host=self.config.host, port=port, log_level="warning")
        )
        thread = threading.Thread(target=self._server.run, name="formweave-oneshot", daemon=True)
        thread.start()

        self.url = f"http://{self.config.host}:{port}"
        self._wait_started(thread, port)
        logger.info("Waiting for submission at %s (timeout %gs)", self.url, self.config.timeout)
        if self.config.open_browser:
            open_browser_later(self.url, delay=0.2)

        try:
            submitted = self._done.wait(self.config.timeout)
        finally:
            self.stop(thread)

        if not submitted or self._result is None:
            logger.error("No submission within %gs", self.config.timeout)
            raise TimeoutExceeded(self.config.timeout)
        logger.info("Submission complete")
        return self._result

    def _wait_started(self, thread: threading.Thread, port: int) -> None:
        deadline = time.monotonic() + _STARTUP_TIMEOUT
        while time.monotonic() < deadline and thread.is_alive():
            if self._server is not None and self._server.started:
                self.ready.set()
                return
            time.sleep(0.02)
        if not thread.is_alive():
            logger.error("Server failed to start on port %d", port)
            raise PortExhaustion(port, port, self.config.host)
        logger.warning("Server did not report startup within %gs", _STARTUP_TIMEOUT)

    def stop(self, thread: threading.Thread | None = None) -> None:
        """Ask the server to exit. Safe to call more than once."""
        with self._stop_lock:
            if self._stopped:
                return
            self._stopped = True
        if self._server is not None:
            self._server.should_exit = True
        if thread is not None:
            thread.join(_SHUTDOWN_TIMEOUT)


def emit_result(
    result: dict[str, Any],
    *,
    output: OutputMode | str = OutputMode.STDOUT,
    output_file: Path | None = None,
    stream: TextIO | None = None,
) -> Path | None:
    """
    Write a one-shot result as JSON.

    Returns:
        The file written, or None when the result went to ``stream``
    """
    payload = json.dumps(result, indent=2, default=str)
    if OutputMode(output) is OutputMode.FILE:
        if output_file is None:
            raise ValueError("output_file is required when output is 'file'")
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(payload + "\n", encoding="utf-8")
        return output_file

    target = stream or sys.stdout
    target.write(payload + "\n")
    target.flush()
    return None
