"""Tests for logging setup, formatting and contextual fields."""

from __future__ import annotations

import io
import json
import logging
import logging.handlers
from pathlib import Path
from typing import Iterator

import pytest

from cnccoder.utils import logging_config

LOGGER_NAME = "cnccoder.tests.logging"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logging_config.pop_context()
    logging.captureWarnings(False)


@pytest.fixture()
def stream() -> io.StringIO:
    return io.StringIO()


# ---------------------------------------------------------------------------
# setup_logging
# ---------------------------------------------------------------------------


class TestSetupLogging:
    def test_human_format(self, stream: io.StringIO) -> None:
        logging_config.setup_logging(
            "INFO", stream=stream, logger_name=LOGGER_NAME, context={"program": "bracket"},
        )
        logging.getLogger(LOGGER_NAME).info("Wrote %s", "bracket.gcode")
        line = stream.getvalue().strip()
        assert "| INFO" in line
        assert "program=bracket" in line
        assert line.endswith("Wrote bracket.gcode")

    def test_json_format(self, stream: io.StringIO) -> None:
        logging_config.setup_logging(
            "DEBUG", stream=stream, json_format=True, logger_name=LOGGER_NAME,
        )
        logging_config.push_context(tool="6mm")
        logging.getLogger(LOGGER_NAME).debug("Appended cut")
        record = json.loads(stream.getvalue().strip())
        assert record["lvl"] == "DEBUG"
        assert record["msg"] == "Appended cut"
        assert record["tool"] == "6mm"
        assert record["name"] == LOGGER_NAME

    def test_level_filters(self, stream: io.StringIO) -> None:
        logging_config.setup_logging("WARNING", stream=stream, logger_name=LOGGER_NAME)
        logging.getLogger(LOGGER_NAME).info("hidden")
        assert stream.getvalue() == ""

    def test_idempotent(self, stream: io.StringIO) -> None:
        logging_config.setup_logging("INFO", stream=stream, logger_name=LOGGER_NAME)
        logging_config.setup_logging("INFO", stream=stream, logger_name=LOGGER_NAME)
        logging.getLogger(LOGGER_NAME).info("once")
        assert stream.getvalue().count("once") == 1
        assert len(logging.getLogger(LOGGER_NAME).handlers) == 1

    def test_file_handler(self, stream: io.StringIO, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "cnccoder.log"
        handlers = logging_config.setup_logging(
            "INFO", log_file, stream=stream, logger_name=LOGGER_NAME,
            rotate={"mode": "size", "max_bytes": 1_000, "backup_count": 1},
        )
        assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in handlers)
        logging.getLogger(LOGGER_NAME).info("to file")
        for h in handlers:
            h.flush()
        assert "to file" in log_file.read_text(encoding="utf-8")

    def test_unknown_rotation_mode(self, stream: io.StringIO, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="rotation mode"):
            logging_config.setup_logging(
                "INFO", tmp_path / "x.log", stream=stream, logger_name=LOGGER_NAME,
                rotate={"mode": "weekly"},
            )

    def test_unknown_level(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            logging_config.setup_logging("LOUD", logger_name=LOGGER_NAME)


# ---------------------------------------------------------------------------
# Runtime helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    def test_push_pop_context(self) -> None:
        logging_config.push_context(program="a", tool="t1")
        logging_config.push_context(tool="t2")
        assert logging_config.get_context() == {"program": "a", "tool": "t2"}
        logging_config.pop_context(keys=["tool"])
        assert logging_config.get_context() == {"program": "a"}
        logging_config.pop_context()
        assert logging_config.get_context() == {}

    def test_pop_does_not_mutate_snapshot(self) -> None:
        logging_config.push_context(program="a")
        snapshot = logging_config.get_context()
        logging_config.pop_context(keys=["program"])
        assert snapshot == {"program": "a"}

    def test_log_context_scopes_fields(self) -> None:
        logging_config.push_context(program="outer")
        with logging_config.log_context(program="inner", tool="t1"):
            assert logging_config.get_context() == {"program": "inner", "tool": "t1"}
        assert logging_config.get_context() == {"program": "outer"}

    def test_log_context_restores_on_error(self) -> None:
        with pytest.raises(RuntimeError):
            with logging_config.log_context(program="failing"):
                raise RuntimeError("boom")
        assert logging_config.get_context() == {}
