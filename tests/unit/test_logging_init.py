from __future__ import annotations

import logging

from valoris.logging.init import (
    APP_LOGGER_NAME,
    SUMMARY_LEVEL,
    LabeledFormatter,
    get_logger,
    log_summary,
    reset_logging,
    setup_logging,
)


def _record(level: int, msg: str) -> logging.LogRecord:
    return logging.LogRecord("valoris", level, __file__, 1, msg, None, None)


def test_labeled_formatter_labels():
    fmt = LabeledFormatter()
    assert fmt.format(_record(logging.INFO, "hello")) == "INFO hello"
    assert fmt.format(_record(logging.WARNING, "careful")) == "WARN careful"
    assert fmt.format(_record(logging.ERROR, "bad")) == "ERROR bad"
    assert fmt.format(_record(SUMMARY_LEVEL, "files=1")) == "SUMMARY files=1"
    assert fmt.format(_record(logging.DEBUG, "x")) == "DEBUG x"


def test_setup_logging_is_idempotent():
    first = setup_logging()
    second = setup_logging()
    assert first is second
    assert first.name == APP_LOGGER_NAME
    assert len(first.handlers) == 1
    assert first.propagate is False


def test_get_logger_configures_on_first_use():
    logger = get_logger()
    assert logger.name == APP_LOGGER_NAME
    assert logger.handlers


def test_log_summary_writes_to_stdout(capsys):
    setup_logging()
    log_summary("files=2 completed=2")
    out = capsys.readouterr().out
    assert "SUMMARY files=2 completed=2" in out


def test_child_logger_reaches_app_handler(capsys):
    setup_logging()
    logging.getLogger("valoris.services.pipeline").warning("analysis fallback=True")
    out = capsys.readouterr().out
    assert "WARN analysis fallback=True" in out


def test_reset_logging_removes_handlers():
    logger = setup_logging()
    reset_logging()
    assert logger.handlers == []
    assert logger.propagate is True
