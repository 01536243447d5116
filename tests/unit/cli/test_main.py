"""Tests for the stdin recording command."""

from __future__ import annotations

import asyncio
import io
import threading
from pathlib import Path

import pytest

from log_recorder.capture.recorder import LogRecorder
from log_recorder.cli.main import build_config, build_parser, parse_line, record_stream
from log_recorder.common.types import LogType, Severity


class TestParseLine:
    """Tests for level prefix parsing."""

    @pytest.mark.parametrize(
        ("line", "expected"),
        [
            ("ERROR: disk full", ("disk full", LogType.ERROR)),
            ("[WARN] slow frame", ("slow frame", LogType.WARNING)),
            ("info: started", ("started", LogType.LOG)),
            ("CRITICAL: assert failed", ("assert failed", LogType.ASSERT)),
            ("[exception] boom", ("boom", LogType.EXCEPTION)),
        ],
    )
    def test_prefixes(self, line: str, expected: tuple[str, LogType]) -> None:
        assert parse_line(line) == expected

    def test_no_prefix_uses_default(self) -> None:
        assert parse_line("just text", LogType.WARNING) == ("just text", LogType.WARNING)

    def test_unknown_prefix_kept(self) -> None:
        assert parse_line("Note: nothing special") == ("Note: nothing special", LogType.LOG)

    def test_word_without_separator_kept(self) -> None:
        assert parse_line("Error handling done") == ("Error handling done", LogType.LOG)


class TestBuildConfig:
    """Tests for argument parsing into RecorderConfig."""

    def test_defaults(self, tmp_path: Path) -> None:
        args = build_parser().parse_args(["--log-dir", str(tmp_path)])
        config = build_config(args)
        assert config.severity_filter == Severity.ALL
        assert config.capture_timestamps is False
        assert config.log_dir == tmp_path

    def test_flags(self, tmp_path: Path) -> None:
        args = build_parser().parse_args(
            [
                "--log-dir",
                str(tmp_path),
                "--filter",
                "error,exception",
                "--full-timestamps",
                "--no-persist",
            ]
        )
        config = build_config(args)
        assert config.severity_filter == Severity.ERROR | Severity.EXCEPTION
        assert config.capture_timestamps is True
        assert config.full_timestamp_format is True
        assert config.persist_incrementally is False

    def test_bad_filter(self, tmp_path: Path) -> None:
        args = build_parser().parse_args(["--filter", "loud"])
        with pytest.raises(ValueError):
            build_config(args)


class TestRecordStream:
    """Tests for recording a stream of lines."""

    def test_records_and_persists(self, tmp_path: Path) -> None:
        args = build_parser().parse_args(["--log-dir", str(tmp_path)])
        config = build_config(args)
        config.persist_incrementally = True
        recorder = LogRecorder(config)
        stream = io.StringIO("hello\n\nERROR: broken\nhello\n")

        count = asyncio.run(record_stream(recorder, stream, interval=0.01))
        recorder.shutdown()

        assert count == 3
        assert recorder.occurrence_indices == [0, 1, 0]
        assert recorder.collapsed_entries[1].severity == Severity.ERROR
        text = recorder.file_path.read_text(encoding="utf-8")
        assert text == "(Info)hello\n\n(Error)broken\n\n(Info)hello\n\n"

    def test_returns_when_recorder_already_shut_down(self, tmp_path: Path) -> None:
        args = build_parser().parse_args(["--log-dir", str(tmp_path), "--no-persist"])
        recorder = LogRecorder(build_config(args))
        release = threading.Event()

        def blocked_lines():
            # Behaves like stdin with nothing typed yet
            release.wait(timeout=10)
            yield "late"

        recorder.shutdown()
        try:
            count = asyncio.run(record_stream(recorder, blocked_lines(), interval=0.01))
        finally:
            release.set()

        assert count == 0
        assert recorder.total_received == 0
