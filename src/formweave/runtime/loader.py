"""
Load App instances from definition files.

A definition file is an ordinary Python module that creates an ``App`` at
module level. Blocking calls such as ``app.run()`` belong under
``if __name__ == "__main__":`` so the file can also be loaded here.
"""

from __future__ import annotations

import hashlib
import importlib.util
import logging
import sys
from pathlib import Path

from formweave.core.errors import LoadError
from formweave.runtime.app import App

logger = logging.getLogger(__name__)


def _module_name(path: Path) -> str:
    digest = hashlib.sha1(str(path).encode("utf-8"), usedforsecurity=False).hexdigest()[:10]
    return f"formweave_apps.{path.stem}_{digest}"


def load_app(file_path: Path | str) -> App:
    """
    Import ``file_path`` and return the App it defines.

    A module attribute named ``app`` wins; otherwise the file must define
    exactly one App.

    Raises:
        LoadError: missing file, import failure, or no unambiguous App
    """
    path = Path(file_path).expanduser().resolve()
    if not path.is_file():
        raise LoadError("Definition file not found", {"path": str(path)})

    module_name = _module_name(path)
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise LoadError("Not a loadable Python file", {"path": str(path)})

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        del sys.modules[module_name]
        raise LoadError(
            f"Failed to import definition file: {type(exc).__name__}: {exc}",
            {"path": str(path)},
        ) from exc

    candidate = getattr(module, "app", None)
    if isinstance(candidate, App):
        logger.debug("Loaded %r from %s", candidate, path)
        return candidate

    apps = [value for value in vars(module).values() if isinstance(value, App)]
    if len(apps) == 1:
        logger.debug("Loaded %r from %s", apps[0], path)
        return apps[0]

    del sys.modules[module_name]
    if not apps:
        raise LoadError("Definition file does not create an App", {"path": str(path)})
    raise LoadError(
        "Definition file creates several Apps; name the one to serve 'app'",
        {"path": str(path), "count": len(apps)},
    )
