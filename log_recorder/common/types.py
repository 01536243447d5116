"""Data model shared by the capture pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum, IntFlag
from pathlib import Path

from .constants import (
    DEFAULT_LOG_DIR,
    DEFAULT_PERSIST_INCREMENTALLY,
    DEFAULT_QUEUE_CAPACITY,
    MAX_QUEUE_CAPACITY,
    MIN_QUEUE_CAPACITY,
)


class Severity(IntFlag):
    """Event severity. Combinations of flags act as a receive filter."""

    INFO = 1 << 0
    WARNING = 1 << 1
    ERROR = 1 << 2
    EXCEPTION = 1 << 3
    ALL = INFO | WARNING | ERROR | EXCEPTION

    @property
    def label(self) -> str:
        """Display label, e.g. ``Info``."""
        return _SEVERITY_LABELS[self]

    @classmethod
    def parse_filter(cls, text: str) -> Severity:
        """Build a filter from a comma separated list such as ``error,exception``.

        Raises:
            ValueError: If a name is not a known severity.
        """
        mask = cls(0)
        for part in text.split(","):
            name = part.strip().upper()
            if not name:
                continue
            try:
                mask |= cls[name]
            except KeyError:
                raise ValueError(f"Unknown severity '{part.strip()}'") from None
        return mask


_SEVERITY_LABELS = {
    Severity.INFO: "Info",
    Severity.WARNING: "Warning",
    Severity.ERROR: "Error",
    Severity.EXCEPTION: "Exception",
}


class LogType(Enum):
    """Kind of event as reported by the originating log source."""

    LOG = "log"
    WARNING = "warning"
    ERROR = "error"
    ASSERT = "assert"
    EXCEPTION = "exception"

    @property
    def severity(self) -> Severity:
        return _LOG_TYPE_SEVERITY[self]


_LOG_TYPE_SEVERITY = {
    LogType.LOG: Severity.INFO,
    LogType.WARNING: Severity.WARNING,
    LogType.ERROR: Severity.ERROR,
    LogType.ASSERT: Severity.EXCEPTION,
    LogType.EXCEPTION: Severity.EXCEPTION,
}


def resolve_severity(severity: Severity | LogType) -> Severity:
    """Normalize a capture severity to exactly one Severity flag.

    Raises:
        ValueError: For masks, empty flags or anything that is not a severity.
    """
    if isinstance(severity, LogType):
        return severity.severity
    if isinstance(severity, Severity) and severity in _SEVERITY_LABELS:
        return severity
    raise ValueError(f"Unsupported severity: {severity!r}")


@dataclass(frozen=True)
class Timestamp:
    """Arrival time of an event, as seen from the tick thread."""

    wall_clock: datetime
    elapsed_seconds: float
    tick_count: int

    def time_string(self) -> str:
        return f"{self.wall_clock:%H:%M:%S}"

    def elapsed_string(self) -> str:
        # Midpoints round away from zero: 0.25 -> 0.3
        rounded = Decimal(str(self.elapsed_seconds)).quantize(
            Decimal("0.1"), rounding=ROUND_HALF_UP
        )
        return f"{rounded}s"

    def tick_string(self) -> str:
        return f"#{self.tick_count}"

    def __str__(self) -> str:
        return self.time_string()

    def to_full_string(self) -> str:
        # 12:23:34 1.2s at #123
        return f"{self.time_string()} {self.elapsed_string()} at {self.tick_string()}"


@dataclass(frozen=True)
class RawEvent:
    """An event as queued by a producer, before collapsing."""

    message: str
    stack_trace: str
    severity: Severity


class CollapsedEntry:
    """Canonical record for a distinct (message, stack trace, severity) triple.

    Instances are pooled and re-initialized, so they stay mutable; an entry
    must not be re-initialized while it is a key of the dedup map.
    """

    __slots__ = ("message", "stack_trace", "severity", "_display")

    def __init__(
        self,
        message: str = "",
        stack_trace: str = "",
        severity: Severity = Severity.INFO,
    ) -> None:
        self.initialize(message, stack_trace, severity)

    def initialize(self, message: str, stack_trace: str, severity: Severity) -> None:
        self.message = message
        self.stack_trace = stack_trace
        self.severity = severity
        self._display: str | None = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CollapsedEntry):
            return NotImplemented
        return (
            self.message == other.message
            and self.stack_trace == other.stack_trace
            and self.severity == other.severity
        )

    def __hash__(self) -> int:
        return hash((self.message, self.stack_trace, self.severity))

    def __str__(self) -> str:
        if self._display is None:
            self._display = f"({self.severity.label}){self.message}\n{self.stack_trace}"
        return self._display

    def __repr__(self) -> str:
        return (
            f"CollapsedEntry({self.message!r}, {self.stack_trace!r}, "
            f"{self.severity.label})"
        )


def _clamp_capacity(capacity: int) -> int:
    return max(MIN_QUEUE_CAPACITY, min(capacity, MAX_QUEUE_CAPACITY))


@dataclass
class RecorderConfig:
    """Configuration for a LogRecorder, fixed once the recorder starts."""

    severity_filter: Severity = Severity.ALL
    capture_timestamps: bool = False
    full_timestamp_format: bool = False  # "HH:MM:SS 1.2s at #123" instead of "HH:MM:SS"
    persist_incrementally: bool = DEFAULT_PERSIST_INCREMENTALLY
    log_dir: Path = field(default_factory=lambda: DEFAULT_LOG_DIR)
    queue_capacity: int = DEFAULT_QUEUE_CAPACITY

    def __post_init__(self) -> None:
        self.log_dir = Path(self.log_dir)
        self.queue_capacity = _clamp_capacity(self.queue_capacity)
