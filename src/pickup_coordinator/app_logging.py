"""Logging configuration helpers."""

import logging

# Attributes passed through ``extra=`` that identify what a log line is about.
CONTEXT_FIELDS = ("record_id", "client_id", "pickup_status", "teacher_status")


class ContextFormatter(logging.Formatter):
    """Formatter that appends any known ``extra`` context as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = [
            f"{name}={getattr(record, name)}"
            for name in CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        ]
        if not context:
            return message
        head, newline, rest = message.partition("\n")
        return f"{head} [{' '.join(context)}]{newline}{rest}"


def configure_logging() -> None:
    """Configure application logging with a single stream handler."""
    logger = logging.getLogger("pickup_coordinator")
    logger.setLevel(logging.INFO)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("%(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
