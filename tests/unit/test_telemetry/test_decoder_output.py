"""
Unit tests for decoder output parsing and the TelemetrySource interface.
"""

from pathlib import Path

import pytest

from conftest import FixtureTelemetrySource, sadf_text
from saraudit.models.telemetry import ReportType, Window
from saraudit.telemetry.base import build_table, iter_decoder_rows

WINDOW = Window("08:00:00", "19:00:00")


@pytest.mark.unit
class TestIterDecoderRows:
    """Test cases for splitting delimited output."""

    def test_header_marker_stripped(self):
        rows = list(iter_decoder_rows(["# hostname;interval;timestamp;CPU;%user", "h;600;t;-1;5.0"]))

        assert rows == [["hostname", "interval", "timestamp", "CPU", "%user"], ["h", "600", "t", "-1", "5.0"]]

    def test_noise_is_dropped(self):
        lines = [
            "Linux 6.1 (host)",
            "h;600;t;-1;1.0",
            "# hostname;interval;timestamp;CPU;%user",
            "",
            "h;600;2024-01-15 08:10:00 UTC;-1;2.0",
            "h;600;2024-01-15 08:20:00 UTC;LINUX-RESTART\t(4 CPU)",
            "# hostname;interval;timestamp;CPU;%user",
            "h;600;2024-01-15 08:30:00 UTC;-1;3.0\r\n",
        ]

        rows = list(iter_decoder_rows(lines))

        assert len(rows) == 3
        assert rows[1][-1] == "2.0"
        assert rows[2][-1] == "3.0"

    def test_no_header(self):
        assert list(iter_decoder_rows(["h;600;t;-1;1.0"])) == []


@pytest.mark.unit
class TestBuildTable:
    """Test cases for building window-filtered tables."""

    def test_table_rows_in_window(self):
        text = sadf_text(["CPU", "%user"], [("07:50:00", -1, 1.0), ("08:00:00", -1, 2.0), ("19:00:00", -1, 3.0)])

        table = build_table(text.splitlines(), ReportType.CPU, WINDOW)

        assert table.header[:3] == ["hostname", "interval", "timestamp"]
        assert len(table.rows) == 1
        assert table.rows[0][-1] == "2.0"

    def test_header_only_is_empty_table(self):
        table = build_table(["# hostname;interval;timestamp;CPU;%user"], ReportType.CPU, WINDOW)

        assert table is not None
        assert table.is_empty

    def test_no_header_is_none(self):
        assert build_table(["sadf: invalid option"], ReportType.CPU, WINDOW) is None


@pytest.mark.unit
class TestTelemetrySource:
    """Test cases for decode() on top of read_report()."""

    def test_decode_present_report(self):
        text = sadf_text(["CPU", "%user"], [("09:00:00", -1, 4.0)])
        source = FixtureTelemetrySource({("sa15", ReportType.CPU): text})

        table = source.decode(Path("/var/log/sa/sa15"), ReportType.CPU, WINDOW)

        assert table.report_type == ReportType.CPU
        assert len(table.rows) == 1

    def test_decode_absent_report(self):
        source = FixtureTelemetrySource({})

        assert source.decode(Path("sa15"), ReportType.DISK, WINDOW) is None
        assert source.requests == [("sa15", ReportType.DISK)]

    def test_default_availability(self):
        assert FixtureTelemetrySource({}).is_available()
