"""Logging handler that feeds standard library log records into a recorder."""

from __future__ import annotations

import logging

from ..common.types import LogType
from .recorder import LogRecorder


def log_type_for(record: logging.LogRecord) -> LogType:
    """Map a log record to the kind of event it represents."""
    if record.exc_info and record.exc_info[0] is not None:
        return LogType.EXCEPTION
    if record.levelno >= logging.CRITICAL:
        return LogType.ASSERT
    if record.levelno >= logging.ERROR:
        return LogType.ERROR
    if record.levelno >= logging.WARNING:
        return LogType.WARNING
    return LogType.LOG


class RecorderHandler(logging.Handler):
    """Logging handler that captures every record into a LogRecorder.

    Safe to attach to the root logger: ``emit`` only queues the event, the
    recorder collapses and persists it on its next tick.
    """

    def __init__(self, recorder: LogRecorder, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.recorder = recorder
        self.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        """Queue a log record in the recorder."""
        try:
            self.recorder.capture(
                self._message(record), self._stack_trace(record), log_type_for(record)
            )
        except Exception:
            self.handleError(record)

    def _message(self, record: logging.LogRecord) -> str:
        # Format without the traceback; it goes into the stack trace field
        formatter = self.formatter
        record.message = record.getMessage()
        if formatter.usesTime():
            record.asctime = formatter.formatTime(record, formatter.datefmt)
        return formatter.formatMessage(record)

    def _stack_trace(self, record: logging.LogRecord) -> str:
        if record.exc_info and record.exc_info[0] is not None:
            return self.formatter.formatException(record.exc_info)
        if record.stack_info:
            return self.formatter.formatStack(record.stack_info)
        return ""
