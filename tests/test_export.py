"""Tests for CSV/text export content."""

from __future__ import annotations

import csv
import io
from datetime import timedelta
from pathlib import Path

import pytest

from conftest import T0, make_sample
from drowsiguard.core.export import CSV_HEADERS, NothingToExport, csv_content, text_content, write_export
from drowsiguard.core.session_engine import SessionExport
from drowsiguard.core.stats import compute_stats


def _export() -> SessionExport:
    samples = (
        make_sample(blink=10, drowsy=20, alert=False, at=T0),
        make_sample(blink=20, drowsy=80, alert=True, at=T0 + timedelta(seconds=2)),
    )
    return SessionExport(
        start_time=T0,
        samples=samples,
        alert_count=1,
        stats=compute_stats(samples, T0, T0 + timedelta(seconds=65)),
    )


class TestEmptyExport:
    @pytest.mark.parametrize("build", [csv_content, text_content])
    def test_empty_session_rejected(self, build) -> None:
        empty = SessionExport(start_time=T0, samples=(), alert_count=0, stats=None)
        with pytest.raises(NothingToExport):
            build(empty)

    def test_no_session_rejected(self) -> None:
        with pytest.raises(NothingToExport, match="No session data"):
            csv_content(None)


class TestCsvContent:
    def test_rows(self) -> None:
        rows = list(csv.reader(io.StringIO(csv_content(_export()))))
        assert rows[0] == CSV_HEADERS
        assert len(rows) == 3
        assert rows[1][0] == "2025-03-01T09:00:00+00:00"
        assert rows[1][1:3] == ["10.00", "20.00"]
        assert rows[1][6] == "No"
        assert rows[2][6] == "Yes"
        assert rows[2][7] == "90.0"

    @pytest.mark.parametrize("flag", [None, False])
    def test_alert_column_uses_evaluated_state(self, flag) -> None:
        """Samples without a producer flag show what the engine decided."""
        sample = make_sample(drowsy=85, alert=flag)
        export = SessionExport(start_time=T0, samples=(sample,), alert_count=1, stats=None, alerts=(True,))
        rows = list(csv.reader(io.StringIO(csv_content(export))))
        assert rows[1][6] == "Yes"
        assert "\tYes" in text_content(export)

    def test_falls_back_to_producer_flag(self) -> None:
        sample = make_sample(alert=None)
        export = SessionExport(start_time=T0, samples=(sample,), alert_count=0, stats=None)
        rows = list(csv.reader(io.StringIO(csv_content(export))))
        assert rows[1][6] == "No"


class TestTextContent:
    def test_summary_block(self) -> None:
        text = text_content(_export())
        assert text.startswith("DROWSINESS DETECTION SESSION SUMMARY")
        assert "Session Duration: 00:01:05" in text
        assert "Total Data Points: 2" in text
        assert "Total Alerts: 1" in text
        assert "Average Blink Rate: 15.00 BPM" in text
        assert "Average Drowsiness Level: 50.00%" in text
        assert "Peak Drowsiness Level: 80.00%" in text


class TestWriteExport:
    def test_writes_dated_file(self, tmp_path: Path) -> None:
        path = write_export(_export(), "csv", str(tmp_path))
        assert path.name == "drowsiness_data_2025-03-01.csv"
        assert path.read_text(encoding="utf-8").startswith("Timestamp,")

    def test_text_file_name(self, tmp_path: Path) -> None:
        path = write_export(_export(), "txt", str(tmp_path))
        assert path.name == "drowsiness_summary_2025-03-01.txt"

    def test_unknown_format(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            write_export(_export(), "pdf", str(tmp_path))
