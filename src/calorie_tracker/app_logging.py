"""Logging configuration helpers."""

import logging

LOGGER_NAME = "calorie_tracker"

_CONTEXT_FIELDS = ("user_id", "search_id", "kind", "path", "method", "environment")


class ContextFormatter(logging.Formatter):
    """Formatter that appends known ``extra`` fields as key=value pairs."""

    def formatMessage(self, record: logging.LogRecord) -> str:  # noqa: N802
        message = super().formatMessage(record)
        context = " ".join(
            f"{name}={getattr(record, name)}"
            for name in _CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        )
        return f"{message} [{context}]" if context else message


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Configure the service logger once; later calls only adjust the level."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper())
    if logger.handlers:
        return logger
    handler = logging.StreamHandler()
    handler.setFormatter(
        ContextFormatter("%(asctime)s %(levelname)s: %(name)s: %(message)s")
    )
    logger.addHandler(handler)
    logger.propagate = False
    return logger
