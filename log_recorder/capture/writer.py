"""Serialized, coalescing append-only file writer."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

logger = logging.getLogger(__name__)


class DurableWriter:
    """Appends text lines to a file one batch at a time.

    Lines enqueued while a flush is running are picked up by that flush's
    loop and written together in the next single append. Appends run on a
    dedicated worker thread but the flushing caller waits for each one, so
    there is never more than one write in flight.
    """

    def __init__(self, path: Path | str, encoding: str = "utf-8") -> None:
        self.path = Path(path)
        self.encoding = encoding
        self._pending: list[str] = []
        self._busy = False
        self._closed = False
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="log-recorder-writer"
        )
        self.flush_count = 0
        self.bytes_written = 0

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def enqueue_line(self, text: str) -> None:
        """Queue one line and flush unless a flush is already running.

        Raises:
            RuntimeError: If the writer has been closed.
            OSError: If the append fails. The failed batch is dropped.
        """
        self.enqueue_lines((text,))

    def enqueue_lines(self, lines: Iterable[str]) -> None:
        """Queue several lines so they go out in a single append."""
        if self._closed:
            raise RuntimeError(f"Writer for {self.path} is closed")
        self._pending.extend(lines)

        if self._busy:
            return

        self._busy = True
        try:
            while self._pending:
                blob = "\n".join(self._pending) + "\n"
                self._pending.clear()
                self._executor.submit(self._append, blob).result()
        finally:
            self._busy = False

    def _append(self, blob: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding=self.encoding) as f:
            f.write(blob)
        self.flush_count += 1
        self.bytes_written += len(blob.encode(self.encoding))

    def close(self) -> None:
        """Wait for any in-flight append and refuse further lines."""
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=True)
        if self._pending:
            logger.warning(
                "Discarding %d unwritten lines for %s", len(self._pending), self.path
            )
            self._pending.clear()
