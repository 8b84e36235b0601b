"""Tests for logging configuration."""

import logging

from calorie_tracker.app_logging import LOGGER_NAME, ContextFormatter, configure_logging


def test_configure_logging_idempotent() -> None:
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()

    configure_logging()
    first_count = len(logger.handlers)

    configure_logging("debug")
    second_count = len(logger.handlers)

    assert first_count == 1
    assert second_count == 1
    assert logger.level == logging.DEBUG


def test_context_formatter_appends_extra_fields() -> None:
    formatter = ContextFormatter("%(levelname)s: %(message)s")
    record = logging.LogRecord(
        name="calorie_tracker.api",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="Upstream failure",
        args=(),
        exc_info=None,
    )
    record.kind = "timeout"
    record.path = "/api/analyze"

    assert formatter.format(record) == (
        "WARNING: Upstream failure [kind=timeout path=/api/analyze]"
    )


def test_context_formatter_without_extra_fields() -> None:
    formatter = ContextFormatter("%(message)s")
    record = logging.LogRecord(
        name="calorie_tracker",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Starting %s",
        args=("Calorie Tracker",),
        exc_info=None,
    )

    assert formatter.format(record) == "Starting Calorie Tracker"
