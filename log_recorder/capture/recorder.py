"""Thread-safe log capture with per-tick collapsing and file persistence."""

from __future__ import annotations

import itertools
import logging
import threading
import time
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import numpy as np

from ..buffers.index_list import IndexList
from ..buffers.ring_buffer import RingBuffer
from ..common.constants import (
    FILE_STAMP_FORMAT,
    INCREMENTAL_LOG_PREFIX,
    SNAPSHOT_LOG_PREFIX,
)
from ..common.types import (
    CollapsedEntry,
    LogType,
    RawEvent,
    RecorderConfig,
    Severity,
    Timestamp,
    resolve_severity,
)
from .writer import DurableWriter

logger = logging.getLogger(__name__)


class LogRecorder:
    """Collects events from any thread and collapses them on the tick thread.

    ``capture`` may be called concurrently from any number of threads. Everything
    else (``on_tick``, ``drain``, ``export_all``, ``save_snapshot``) belongs to a
    single tick thread.
    """

    def __init__(
        self,
        config: RecorderConfig | None = None,
        wall_clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config or RecorderConfig()
        self._wall_clock = wall_clock
        timestamps = self.config.capture_timestamps

        # Ingress, shared with producer threads
        self._lock = threading.Lock()
        self._queued: RingBuffer[RawEvent] = RingBuffer(self.config.queue_capacity)
        self._queued_timestamps: RingBuffer[Timestamp] | None = (
            RingBuffer(self._queued.capacity) if timestamps else None
        )

        # Tick-thread state
        self._collapsed: list[CollapsedEntry] = []
        self._collapsed_map: dict[CollapsedEntry, int] = {}
        self._collapsed_timestamps: list[Timestamp] | None = [] if timestamps else None
        self._occurrences = IndexList(np.int64)
        self._occurrence_timestamps: IndexList | None = (
            IndexList(object) if timestamps else None
        )
        self._pool: list[CollapsedEntry] = []
        self._has_new_entries = False
        self._written_count = 0

        # Last clock values observed on the tick thread
        self._last_elapsed_seconds = 0.0
        self._last_tick_count = 0
        self._started_at = time.monotonic()

        self._writer: DurableWriter | None = None
        self._started = False
        self._shutting_down = False
        self.file_path: Path | None = None

    # Lifecycle

    def start(self) -> None:
        """Open the incremental log file (if enabled) and begin accepting ticks."""
        if self._started:
            return
        self._started = True
        self._started_at = time.monotonic()

        if self.config.persist_incrementally:
            stamp = self._wall_clock().strftime(FILE_STAMP_FORMAT)
            name = f"{INCREMENTAL_LOG_PREFIX}{stamp}.txt"
            self.file_path = self.config.log_dir / name
            self._writer = DurableWriter(self.file_path)
            logger.info("LogRecorder: %s", self.file_path)

    def shutdown(self) -> None:
        """Stop capturing and ticking. In-flight writes are allowed to finish."""
        if self._shutting_down:
            return
        self._shutting_down = True
        if self._writer is not None:
            self._writer.close()

    @property
    def is_shutting_down(self) -> bool:
        return self._shutting_down

    def __enter__(self) -> LogRecorder:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        # Persist whatever was captured since the last tick
        try:
            self.on_tick()
        finally:
            self.shutdown()

    # Producer side

    def capture(
        self, message: str, stack_trace: str, severity: Severity | LogType
    ) -> None:
        """Queue an event for the next tick. Safe to call from any thread.

        Raises:
            ValueError: If severity is not a single Severity or a LogType.
        """
        if self._shutting_down:
            return

        resolved = resolve_severity(severity)
        if not resolved & self.config.severity_filter:
            return

        event = RawEvent(message, stack_trace, resolved)
        timestamp: Timestamp | None = None
        if self._queued_timestamps is not None:
            timestamp = Timestamp(
                self._wall_clock(), self._last_elapsed_seconds, self._last_tick_count
            )

        with self._lock:
            self._queued.add(event)
            if self._queued_timestamps is not None:
                self._queued_timestamps.add(timestamp)

    @property
    def queued_count(self) -> int:
        with self._lock:
            return len(self._queued)

    # Tick side

    def on_tick(
        self, elapsed_seconds: float | None = None, tick_count: int | None = None
    ) -> None:
        """Collapse everything queued since the last tick and persist new lines.

        Raises:
            OSError: If appending to the incremental log file fails.
        """
        if self._shutting_down:
            return

        if elapsed_seconds is None:
            elapsed_seconds = time.monotonic() - self._started_at
        if tick_count is None:
            tick_count = self._last_tick_count + 1
        self._last_elapsed_seconds = elapsed_seconds
        self._last_tick_count = tick_count

        self.drain()

        if self._writer is not None and self._has_new_entries:
            self._write_new_occurrences(self._writer)
        self._has_new_entries = False

    def drain(self) -> int:
        """Process exactly the events queued at call time. Returns how many."""
        with self._lock:
            count = len(self._queued)

        for _ in range(count):
            # Lock per pop so producers are never held off for a whole drain
            with self._lock:
                event = self._queued.remove_first()
                timestamp = (
                    self._queued_timestamps.remove_first()
                    if self._queued_timestamps is not None
                    else None
                )
            self._process_event(event, timestamp)

        return count

    def _process_event(self, event: RawEvent, timestamp: Timestamp | None) -> None:
        entry = self._pool.pop() if self._pool else CollapsedEntry()
        entry.initialize(event.message, event.stack_trace, event.severity)

        index = self._collapsed_map.get(entry)
        if index is None:
            index = len(self._collapsed)
            self._collapsed.append(entry)
            self._collapsed_map[entry] = index
            if self._collapsed_timestamps is not None:
                self._collapsed_timestamps.append(timestamp)
        else:
            # Duplicate: keep the original, remember when it was last seen
            self._pool.append(entry)
            if self._collapsed_timestamps is not None:
                self._collapsed_timestamps[index] = timestamp

        self._occurrences.add(index)
        if self._occurrence_timestamps is not None:
            self._occurrence_timestamps.add(timestamp)

        self._has_new_entries = True

    def _write_new_occurrences(self, writer: DurableWriter) -> None:
        total = len(self._occurrences)
        lines = [self.format_occurrence(i) for i in range(self._written_count, total)]
        self._written_count = total
        try:
            writer.enqueue_lines(lines)
        except OSError:
            logger.exception("Failed to append %d lines to %s", len(lines), writer.path)
            raise

    def format_occurrence(self, position: int) -> str:
        """Render the occurrence at ``position`` as one incremental-log line."""
        entry = self._collapsed[self._occurrences[position]]
        line = str(entry)

        if self._occurrence_timestamps is not None:
            timestamp: Timestamp = self._occurrence_timestamps[position]
            time_string = (
                timestamp.to_full_string()
                if self.config.full_timestamp_format
                else str(timestamp)
            )
            line = f"[{time_string}]: {line}"

        return line

    # Inspection

    @property
    def collapsed_entries(self) -> list[CollapsedEntry]:
        """Distinct entries in order of first appearance."""
        return list(self._collapsed)

    @property
    def collapsed_timestamps(self) -> list[Timestamp] | None:
        """Most recent sighting of each distinct entry, if timestamps are on."""
        if self._collapsed_timestamps is None:
            return None
        return list(self._collapsed_timestamps)

    @property
    def occurrence_indices(self) -> list[int]:
        return self._occurrences.to_list()

    @property
    def occurrence_timestamps(self) -> list[Timestamp] | None:
        if self._occurrence_timestamps is None:
            return None
        return self._occurrence_timestamps.to_list()

    @property
    def distinct_count(self) -> int:
        return len(self._collapsed)

    @property
    def total_received(self) -> int:
        return len(self._occurrences)

    # Snapshot export

    def export_all(self) -> str:
        """Full log text in arrival order, including anything still queued."""
        self.drain()

        count = len(self._occurrences)
        timestamps = self._occurrence_timestamps
        parts: list[str] = [""] * count

        for i in range(count):
            entry = self._collapsed[self._occurrences[i]]
            prefix = f"{timestamps[i]}: " if timestamps is not None else ""
            parts[i] = f"{prefix}{entry.message}\n{entry.stack_trace}\n\n"

        return "".join(parts)

    def save_snapshot(self, directory: Path | str | None = None) -> Path:
        """Write ``export_all()`` to a new timestamped file and return its path.

        Raises:
            OSError: If the snapshot file cannot be written.
        """
        target_dir = Path(directory) if directory is not None else self.config.log_dir
        stamp = self._wall_clock().strftime(FILE_STAMP_FORMAT)
        text = self.export_all()
        target_dir.mkdir(parents=True, exist_ok=True)

        # Never overwrite an earlier snapshot taken within the same second
        for attempt in itertools.count():
            suffix = f"_{attempt}" if attempt else ""
            path = target_dir / f"{SNAPSHOT_LOG_PREFIX}{stamp}{suffix}.txt"
            try:
                with open(path, "x", encoding="utf-8") as f:
                    f.write(text)
            except FileExistsError:
                continue
            break

        logger.info("Logs saved to: %s", path)
        return path
