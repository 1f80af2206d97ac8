"""Tests for structured logging functionality."""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys

import pytest

from habitflow.config import BaseConfig
from habitflow.logging_config import (
    JSONFormatter,
    SessionBufferHandler,
    get_logger,
    session_log_path,
    setup_logging,
)


@pytest.fixture(autouse=True)
def reset_habitflow_logger():
    yield
    logger = logging.getLogger("habitflow")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _record(**overrides) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test.logger",
        level=overrides.pop("level", logging.INFO),
        pathname="test.py",
        lineno=42,
        msg=overrides.pop("msg", "Test message"),
        args=(),
        exc_info=overrides.pop("exc_info", None),
    )
    record.module = "test_module"
    record.funcName = "test_function"
    for key, value in overrides.items():
        setattr(record, key, value)
    return record


def test_json_formatter():
    """JSONFormatter emits the standard fields."""
    log_data = json.loads(JSONFormatter().format(_record()))

    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "test.logger"
    assert log_data["message"] == "Test message"
    assert log_data["module"] == "test_module"
    assert log_data["function"] == "test_function"
    assert log_data["line"] == 42
    assert "timestamp" in log_data
    assert "extra" not in log_data


def test_json_formatter_with_extra_fields():
    log_data = json.loads(JSONFormatter().format(_record(habit_id="abc", completed=True)))

    assert log_data["extra"] == {"habit_id": "abc", "completed": True}


def test_json_formatter_ignores_asctime_set_by_other_handlers():
    record = _record()
    logging.Formatter("%(asctime)s %(message)s").format(record)

    log_data = json.loads(JSONFormatter().format(record))

    assert "extra" not in log_data


def test_json_formatter_with_exception():
    try:
        raise ValueError("Test error")
    except ValueError:
        exc_info = sys.exc_info()

    log_data = json.loads(
        JSONFormatter().format(_record(level=logging.ERROR, msg="Error occurred", exc_info=exc_info))
    )

    assert log_data["exception"]["type"] == "ValueError"
    assert "Test error" in log_data["exception"]["message"]
    assert log_data["exception"]["traceback"] is not None


def test_setup_logging(tmp_path):
    """Logging setup creates a JSON log file under the data directory."""
    config = BaseConfig(data_dir=tmp_path)
    config.DEV_MODE = True

    logger = setup_logging(config)

    assert logger.name == "habitflow"
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 3  # console, rotating file, session buffer
    assert any(isinstance(h, SessionBufferHandler) for h in logger.handlers)

    log_file = config.DATA_DIR / "logs" / "habitflow.log"
    assert log_file.exists()

    get_logger("store").warning("Test warning message", extra={"habit_id": "x"})
    for handler in logger.handlers:
        handler.flush()

    lines = [line for line in log_file.read_text().splitlines() if line.strip()]
    entries = [json.loads(line) for line in lines]
    assert entries[0]["message"] == "Logging initialized"
    assert entries[-1]["logger"] == "habitflow.store"
    assert entries[-1]["extra"] == {"habit_id": "x"}

    assert session_log_path().parent == config.DATA_DIR / "logs"


def test_setup_logging_is_idempotent(tmp_path):
    config = BaseConfig(data_dir=tmp_path)

    setup_logging(config)
    logger = setup_logging(config)

    assert len(logger.handlers) == 3


def test_get_logger():
    """get_logger returns loggers namespaced under the package."""
    logger1 = get_logger("module1")
    logger2 = get_logger("module2")

    assert logger1.name == "habitflow.module1"
    assert logger2.name == "habitflow.module2"
    assert logger1 != logger2


def test_get_logger_accepts_module_names():
    assert get_logger("habitflow.services.log_store").name == "habitflow.services.log_store"
    assert get_logger("habitflow").name == "habitflow"


@pytest.mark.parametrize("dev_mode", [True, False])
def test_logging_levels_by_mode(tmp_path, dev_mode):
    """Console logging level adjusts based on dev mode."""
    config = BaseConfig(data_dir=tmp_path)
    config.DEV_MODE = dev_mode

    logger = setup_logging(config)

    console_handler = next(
        handler
        for handler in logger.handlers
        if isinstance(handler, logging.StreamHandler)
        and not isinstance(handler, logging.handlers.RotatingFileHandler)
    )

    expected_level = logging.INFO if dev_mode else logging.WARNING
    assert console_handler.level == expected_level
