"""Capture, collapse and persist log events from many threads.

Example usage:

    from log_recorder import LogRecorder, RecorderConfig, Severity

    config = RecorderConfig(capture_timestamps=True)
    with LogRecorder(config) as recorder:
        # From any thread
        recorder.capture("Connection lost", "", Severity.WARNING)

        # From the tick thread, once per frame/tick
        recorder.on_tick()

        print(recorder.export_all())
"""

from .buffers.index_list import IndexList
from .buffers.ring_buffer import RingBuffer
from .capture.handler import RecorderHandler
from .capture.recorder import LogRecorder
from .capture.ticker import run_tick_loop
from .capture.writer import DurableWriter
from .common.types import (
    CollapsedEntry,
    LogType,
    RawEvent,
    RecorderConfig,
    Severity,
    Timestamp,
)

__all__ = [
    "LogRecorder",
    "RecorderConfig",
    "RecorderHandler",
    "DurableWriter",
    "Severity",
    "LogType",
    "Timestamp",
    "RawEvent",
    "CollapsedEntry",
    "RingBuffer",
    "IndexList",
    "run_tick_loop",
]
