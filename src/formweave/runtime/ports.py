"""
Port selection and the host runtime file.

Standalone servers start at the configured port and walk upwards through a
bounded range until a port binds. A running host records its pid and port in
a small JSON file so ``formweave load`` and ``formweave apps`` can find it.
"""

from __future__ import annotations

import json
import os
import socket
from pathlib import Path
from typing import NamedTuple

from formweave.core.errors import PortExhaustion

DEFAULT_PORT_RANGE = 100


class HostRecord(NamedTuple):
    """Where a running host listens."""

    pid: int
    host: str
    port: int

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"


def is_port_available(port: int, host: str = "127.0.0.1") -> bool:
    """
    Check if a port is available for binding.

    Args:
        port: Port number to check
        host: Host to check on

    Returns:
        True if port is available, False if in use
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        try:
            s.bind((host, port))
            return True
        except OSError:
            return False


def find_available_port(
    port: int,
    host: str = "127.0.0.1",
    port_range: int = DEFAULT_PORT_RANGE,
) -> int:
    """
    First bindable port in ``port .. port + port_range``.

    Raises:
        PortExhaustion: when every port in the range is taken
    """
    end = min(port + port_range, 65535)
    for candidate in range(port, end + 1):
        if is_port_available(candidate, host):
            return candidate
    raise PortExhaustion(port, end, host)


def write_runtime_file(path: Path, host: str, port: int) -> Path:
    """
    Record the current process as the running host.

    Args:
        path: Runtime file location
        host: Bound host
        port: Bound port

    Returns:
        Path to the runtime file
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {"pid": os.getpid(), "host": host, "port": port, "url": f"http://{host}:{port}"}
    path.write_text(json.dumps(data, indent=2))
    return path


def read_runtime_file(path: Path) -> HostRecord | None:
    """
    Read the runtime file of a running host.

    Returns:
        HostRecord if the file exists and parses, None otherwise
    """
    if not path.exists():
        return None

    try:
        data = json.loads(path.read_text())
        return HostRecord(pid=int(data["pid"]), host=data["host"], port=int(data["port"]))
    except (json.JSONDecodeError, KeyError, TypeError, ValueError):
        return None


def clear_runtime_file(path: Path) -> None:
    """Remove the runtime file when the host stops."""
    if path.exists():
        path.unlink()
