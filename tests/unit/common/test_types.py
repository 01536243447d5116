"""Tests for severities, timestamps and collapsed entries."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from log_recorder.common.types import (
    CollapsedEntry,
    LogType,
    RecorderConfig,
    Severity,
    Timestamp,
    resolve_severity,
)


class TestSeverity:
    """Tests for Severity flags and filter parsing."""

    def test_all_contains_each(self) -> None:
        for severity in (Severity.INFO, Severity.WARNING, Severity.ERROR, Severity.EXCEPTION):
            assert severity & Severity.ALL

    def test_labels(self) -> None:
        assert Severity.INFO.label == "Info"
        assert Severity.EXCEPTION.label == "Exception"

    def test_parse_filter(self) -> None:
        assert Severity.parse_filter("error,exception") == Severity.ERROR | Severity.EXCEPTION

    def test_parse_filter_case_and_spaces(self) -> None:
        assert Severity.parse_filter(" Info , WARNING ") == Severity.INFO | Severity.WARNING

    def test_parse_filter_all(self) -> None:
        assert Severity.parse_filter("all") == Severity.ALL

    def test_parse_filter_unknown(self) -> None:
        with pytest.raises(ValueError, match="verbose"):
            Severity.parse_filter("error,verbose")


class TestResolveSeverity:
    """Tests for normalizing capture severities."""

    def test_log_types(self) -> None:
        assert resolve_severity(LogType.LOG) == Severity.INFO
        assert resolve_severity(LogType.WARNING) == Severity.WARNING
        assert resolve_severity(LogType.ERROR) == Severity.ERROR
        assert resolve_severity(LogType.EXCEPTION) == Severity.EXCEPTION

    def test_assert_is_exception(self) -> None:
        assert resolve_severity(LogType.ASSERT) == Severity.EXCEPTION

    def test_single_flag_passes_through(self) -> None:
        assert resolve_severity(Severity.WARNING) is Severity.WARNING

    @pytest.mark.parametrize(
        "value", [Severity.ALL, Severity.INFO | Severity.ERROR, Severity(0), 1, "info", None]
    )
    def test_unsupported(self, value: object) -> None:
        with pytest.raises(ValueError, match="Unsupported severity"):
            resolve_severity(value)  # type: ignore[arg-type]


class TestTimestamp:
    """Tests for timestamp rendering."""

    @pytest.fixture
    def timestamp(self) -> Timestamp:
        return Timestamp(datetime(2024, 3, 5, 12, 23, 34), 1.24, 123)

    def test_short_form(self, timestamp: Timestamp) -> None:
        assert str(timestamp) == "12:23:34"

    def test_full_form(self, timestamp: Timestamp) -> None:
        assert timestamp.to_full_string() == "12:23:34 1.2s at #123"

    def test_parts(self, timestamp: Timestamp) -> None:
        assert timestamp.elapsed_string() == "1.2s"
        assert timestamp.tick_string() == "#123"

    @pytest.mark.parametrize(
        ("elapsed", "expected"),
        [(0.25, "0.3s"), (3.25, "3.3s"), (0.0, "0.0s"), (12.04, "12.0s"), (2.0, "2.0s")],
    )
    def test_elapsed_midpoint_rounds_up(self, elapsed: float, expected: str) -> None:
        timestamp = Timestamp(datetime(2024, 3, 5, 12, 23, 34), elapsed, 1)
        assert timestamp.elapsed_string() == expected


class TestCollapsedEntry:
    """Tests for structural equality and display of entries."""

    def test_structural_equality(self) -> None:
        a = CollapsedEntry("msg", "trace", Severity.ERROR)
        b = CollapsedEntry("msg", "trace", Severity.ERROR)
        assert a == b
        assert hash(a) == hash(b)

    def test_any_field_differs(self) -> None:
        base = CollapsedEntry("msg", "trace", Severity.ERROR)
        assert base != CollapsedEntry("other", "trace", Severity.ERROR)
        assert base != CollapsedEntry("msg", "other", Severity.ERROR)
        assert base != CollapsedEntry("msg", "trace", Severity.WARNING)

    def test_display(self) -> None:
        entry = CollapsedEntry("Boom", "at main()", Severity.EXCEPTION)
        assert str(entry) == "(Exception)Boom\nat main()"

    def test_reinitialize_resets_display(self) -> None:
        entry = CollapsedEntry("A", "", Severity.INFO)
        assert str(entry) == "(Info)A\n"
        entry.initialize("B", "", Severity.WARNING)
        assert str(entry) == "(Warning)B\n"

    def test_usable_as_dict_key(self) -> None:
        lookup = {CollapsedEntry("A", "", Severity.INFO): 0}
        assert lookup[CollapsedEntry("A", "", Severity.INFO)] == 0


class TestRecorderConfig:
    """Tests for configuration defaults and normalization."""

    def test_defaults(self) -> None:
        config = RecorderConfig()
        assert config.severity_filter == Severity.ALL
        assert config.capture_timestamps is False
        assert config.full_timestamp_format is False

    def test_queue_capacity_clamped(self) -> None:
        assert RecorderConfig(queue_capacity=1).queue_capacity == 16
        assert RecorderConfig(queue_capacity=100_000).queue_capacity == 4096

    def test_log_dir_coerced_to_path(self, tmp_path: Path) -> None:
        config = RecorderConfig(log_dir=str(tmp_path))
        assert config.log_dir == tmp_path
