"""Tests for logging setup and formatters."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

from formweave.runtime.logging import (
    ROOT_LOGGER,
    ConsoleFormatter,
    JSONLFormatter,
    get_logger,
    log_with_context,
    setup_logging,
)


def _record(level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(
        "formweave.runtime.engine", level, __file__, 10, "hello %s", ("world",), None
    )


class TestFormatters:
    def test_console_info_line(self) -> None:
        line = ConsoleFormatter().format(_record())
        assert "[ENGINE]" in line
        assert line.endswith("hello world")

    def test_console_tags_warnings(self) -> None:
        line = ConsoleFormatter().format(_record(level=logging.WARNING))
        assert "WARNING" in line

    def test_jsonl_entry(self) -> None:
        record = _record(level=logging.WARNING)
        record.component = "HOST"
        record.context = {"id": "ab12"}
        entry = json.loads(JSONLFormatter().format(record))
        assert entry["component"] == "HOST"
        assert entry["message"] == "hello world"
        assert entry["context"] == {"id": "ab12"}
        assert entry["source"]["line"] == 10

    def test_jsonl_exception(self) -> None:
        try:
            raise ValueError("bad")
        except ValueError:
            exc_info = sys.exc_info()
        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), exc_info)
        entry = json.loads(JSONLFormatter().format(record))
        assert entry["exception"] == {"type": "ValueError", "message": "bad"}


class TestSetup:
    def test_console_only(self) -> None:
        assert setup_logging("DEBUG") is None
        root = logging.getLogger(ROOT_LOGGER)
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1

    def test_file_handler_writes_jsonl(self, tmp_path: Path) -> None:
        log_file = setup_logging(logging.INFO, tmp_path / "logs")
        assert log_file == tmp_path / "logs" / "formweave.log"

        log_with_context(get_logger("HOST"), logging.INFO, "Loaded", id="ab12")
        for handler in logging.getLogger(ROOT_LOGGER).handlers:
            handler.flush()

        entries = [json.loads(line) for line in log_file.read_text().splitlines()]
        loaded = [entry for entry in entries if entry["message"] == "Loaded"]
        assert loaded[0]["component"] == "HOST"
        assert loaded[0]["context"] == {"id": "ab12"}

    def test_unknown_level_falls_back(self) -> None:
        setup_logging("LOUD")
        assert logging.getLogger(ROOT_LOGGER).level == logging.INFO

    def test_get_logger_is_cached(self) -> None:
        assert get_logger("SERVER") is get_logger("SERVER")
        assert get_logger("SERVER").name == "formweave.server"
