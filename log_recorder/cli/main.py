"""Command-line entry point: record lines from stdin."""

import argparse
import asyncio
import logging
import re
import sys
import threading
from collections.abc import Iterable
from pathlib import Path

from ..capture.handler import RecorderHandler
from ..capture.recorder import LogRecorder
from ..capture.ticker import run_tick_loop
from ..common.constants import (
    DEFAULT_LOG_DIR,
    DEFAULT_PERSIST_INCREMENTALLY,
    TICK_INTERVAL,
)
from ..common.types import LogType, RecorderConfig, Severity

logger = logging.getLogger(__name__)

# "ERROR: text" or "[WARN] text"
_PREFIX_RE = re.compile(
    r"^\s*(?:\[(?P<bracketed>\w+)\]|(?P<colon>\w+):)\s?(?P<rest>.*)$"
)

_PREFIX_TYPES = {
    "DEBUG": LogType.LOG,
    "INFO": LogType.LOG,
    "LOG": LogType.LOG,
    "WARN": LogType.WARNING,
    "WARNING": LogType.WARNING,
    "ERROR": LogType.ERROR,
    "ASSERT": LogType.ASSERT,
    "CRITICAL": LogType.ASSERT,
    "FATAL": LogType.ASSERT,
    "EXCEPTION": LogType.EXCEPTION,
}


def parse_line(line: str, default: LogType = LogType.LOG) -> tuple[str, LogType]:
    """Split an optional level prefix off a line of text.

    Lines without a recognized prefix keep their full text and get ``default``.
    """
    match = _PREFIX_RE.match(line)
    if match:
        name = (match.group("bracketed") or match.group("colon")).upper()
        log_type = _PREFIX_TYPES.get(name)
        if log_type is not None:
            return match.group("rest"), log_type
    return line, default


def setup_logging(log_file: str | None, recorder: LogRecorder) -> None:
    """Route this process's own logging into the recorder, and optionally a file."""
    root = logging.getLogger()
    root.setLevel(logging.INFO)

    root.addHandler(RecorderHandler(recorder))

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        root.addHandler(file_handler)


async def record_stream(
    recorder: LogRecorder,
    lines: Iterable[str],
    default: LogType = LogType.LOG,
    interval: float = TICK_INTERVAL,
) -> int:
    """Capture ``lines`` from a producer thread while ticking on this loop.

    Returns:
        Number of lines handed to the recorder.
    """
    loop = asyncio.get_running_loop()
    stop = asyncio.Event()
    captured = 0

    def produce() -> None:
        nonlocal captured
        try:
            for line in lines:
                line = line.rstrip("\r\n")
                if not line.strip():
                    continue
                message, log_type = parse_line(line, default)
                recorder.capture(message, "", log_type)
                captured += 1
        finally:
            loop.call_soon_threadsafe(stop.set)

    recorder.start()
    producer = threading.Thread(target=produce, name="log-recorder-stdin", daemon=True)
    producer.start()

    await run_tick_loop(recorder, stop, interval)
    # A shut down recorder ends the loop early; the reader may still be blocked
    if stop.is_set():
        producer.join()
    return captured


def build_config(args: argparse.Namespace) -> RecorderConfig:
    return RecorderConfig(
        severity_filter=Severity.parse_filter(args.filter),
        capture_timestamps=args.timestamps or args.full_timestamps,
        full_timestamp_format=args.full_timestamps,
        persist_incrementally=args.persist,
        log_dir=Path(args.log_dir),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Record, collapse and persist log lines read from stdin"
    )
    parser.add_argument(
        "--log-dir",
        default=str(DEFAULT_LOG_DIR),
        help=f"Directory for log files (default: {DEFAULT_LOG_DIR})",
    )
    parser.add_argument(
        "--filter",
        default="all",
        help="Comma separated severities to keep: info,warning,error,exception,all",
    )
    parser.add_argument(
        "--severity",
        choices=[t.value for t in LogType],
        default=LogType.LOG.value,
        help="Severity for lines without a level prefix (default: log)",
    )
    parser.add_argument(
        "--timestamps", action="store_true", help="Prefix lines with arrival time"
    )
    parser.add_argument(
        "--full-timestamps",
        action="store_true",
        help="Use the long timestamp form (implies --timestamps)",
    )
    parser.add_argument(
        "--no-persist",
        dest="persist",
        action="store_false",
        default=DEFAULT_PERSIST_INCREMENTALLY,
        help="Do not append lines to the incremental log file",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=TICK_INTERVAL,
        help=f"Seconds between ticks (default: {TICK_INTERVAL})",
    )
    parser.add_argument(
        "--snapshot",
        action="store_true",
        help="Write a full snapshot file when input ends",
    )
    parser.add_argument("--log", help="Also write this tool's own log to a file")
    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    try:
        config = build_config(args)
    except ValueError as e:
        parser.error(str(e))

    recorder = LogRecorder(config)
    setup_logging(args.log, recorder)

    try:
        count = asyncio.run(
            record_stream(recorder, sys.stdin, LogType(args.severity), args.interval)
        )
        logger.info("Recorded %d lines", count)
        if args.snapshot:
            path = recorder.save_snapshot()
            print(f"Snapshot written to {path}")
    except KeyboardInterrupt:
        pass
    finally:
        try:
            recorder.on_tick()
        finally:
            recorder.shutdown()


if __name__ == "__main__":
    main()
