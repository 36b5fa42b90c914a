from __future__ import annotations

import logging
from io import StringIO

from alloc_cleaner.logging.init import (
    LOGGER_NAME,
    SUMMARY_LEVEL,
    LabeledFormatter,
    get_logger,
    log_summary,
    setup_logging,
)


def test_setup_logging_creates_logger_with_labeled_formatter():
    logger = setup_logging()
    assert logger.name == LOGGER_NAME
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, LabeledFormatter)
    assert logger.propagate is False


def test_setup_logging_is_idempotent_and_can_enable_debug():
    first = setup_logging()
    second = setup_logging(debug=True)
    assert first is second
    assert len(second.handlers) == 1
    assert second.level == logging.DEBUG
    assert get_logger() is first


def test_labeled_prefixes():
    formatter = LabeledFormatter()

    def _fmt(level: int, msg: str) -> str:
        record = logging.LogRecord("t", level, __file__, 1, msg, None, None)
        return formatter.format(record)

    assert _fmt(logging.INFO, "hello") == "INFO hello"
    assert _fmt(logging.WARNING, "careful") == "WARN careful"
    assert _fmt(logging.ERROR, "boom") == "ERROR boom"
    assert _fmt(SUMMARY_LEVEL, "files=1/1") == "SUMMARY files=1/1"


def test_log_summary_goes_to_stdout(capsys):
    setup_logging()
    log_summary("files=0/0")
    assert "SUMMARY files=0/0" in capsys.readouterr().out


def test_module_loggers_share_package_handler():
    logger = setup_logging()
    stream = StringIO()
    logger.handlers[0].setStream(stream)
    logging.getLogger(f"{LOGGER_NAME}.validation.clients").warning("child message")
    assert stream.getvalue() == "WARN child message\n"
