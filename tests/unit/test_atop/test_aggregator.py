"""
Unit tests for the atop top-process aggregator.
"""

import pytest

from saraudit.atop.aggregator import AtopAggregator, parse_top_line, parse_value

CPU_OUTPUT = """\
host  6.1.0  #1 SMP  x86_64  2024/01/15

-------------------------- analysis date: 2024/01/15 --------------------------

10:00:00    pid command  cpu_% |   pid command  cpu_% |   pid command  cpu_%_
10:10:00   1234 java      80%  |   222 postgres  15%  |    10 kworker    1%
10:20:00   1234 java      40%  |   333 python3   30%  |   222 postgres   5%
11:00:00   222 postgres   90%  |  1234 java      20%
"""


@pytest.mark.unit
class TestParsing:
    """Test cases for top-process line parsing."""

    def test_parse_value(self):
        assert parse_value("80%") == 80.0
        assert parse_value("1.5G") == 1.5
        assert parse_value("-") == 0.0
        assert parse_value("1.2.3") == 0.0

    def test_parse_line(self):
        records = parse_top_line("cpu", "10:10:00   1234 java      80%  |   222 postgres  15%")

        assert records == [("cpu", "10", "java", 80.0), ("cpu", "10", "postgres", 15.0)]

    def test_command_with_spaces(self):
        records = parse_top_line("mem", "09:00:00   77 Web Content  12%")

        assert records == [("mem", "09", "Web Content", 12.0)]

    def test_non_data_lines(self):
        assert parse_top_line("cpu", "host  6.1.0  #1 SMP") == []
        assert parse_top_line("cpu", "") == []

    def test_column_header_line_skipped(self):
        assert parse_top_line("cpu", "10:00:00    pid command  cpu_% |   pid command  cpu_%") == []

    def test_short_entries_skipped(self):
        assert parse_top_line("cpu", "10:00:00   12 80%") == []


@pytest.mark.unit
class TestAtopAggregator:
    """Test cases for hourly and daily sums."""

    @pytest.fixture
    def aggregator(self):
        aggregator = AtopAggregator(top_n=2, thresholds={"cpu": 100.0})
        aggregator.add_output("cpu", CPU_OUTPUT)
        return aggregator

    def test_add_output_counts_records(self):
        assert AtopAggregator().add_output("cpu", CPU_OUTPUT) == 8

    def test_hourly_sums(self, aggregator):
        hourly = aggregator.hourly_sums()
        hour10 = hourly.filter(hourly["hour"] == "10")

        assert hour10["command"].to_list()[:2] == ["java", "python3"]
        assert hour10["sum"].to_list()[:2] == [120.0, 30.0]

    def test_daily_sums(self, aggregator):
        daily = aggregator.daily_sums()

        assert daily["command"].to_list() == ["java", "postgres", "python3", "kworker"]
        assert daily["sum"].to_list() == [140.0, 110.0, 30.0, 1.0]

    def test_metric_report(self, aggregator):
        report = aggregator.metric_report("cpu")

        assert report.has_data
        assert report.hourly_top["10"] == [("java", 120.0), ("python3", 30.0)]
        assert report.hourly_top["11"] == [("postgres", 90.0), ("java", 20.0)]
        assert report.daily_top == [("java", 140.0), ("postgres", 110.0)]
        assert report.top1_p95 == 120.0
        assert report.top1_p99 == 120.0
        assert report.spikes == [("10", "java", 120.0)]

    def test_metric_without_records(self, aggregator):
        report = aggregator.metric_report("net")

        assert not report.has_data
        assert report.top1_p95 is None
        assert report.spikes == []

    def test_tie_broken_by_command(self):
        aggregator = AtopAggregator(top_n=5)
        aggregator.add_records([("dsk", "10", "b", 5.0), ("dsk", "10", "a", 5.0)])

        assert aggregator.metric_report("dsk").daily_top == [("a", 5.0), ("b", 5.0)]

    def test_export_frames(self, aggregator):
        hourly = aggregator.hourly_frames()
        daily = aggregator.daily_frames()

        assert set(hourly) == {("cpu", "10"), ("cpu", "11")}
        assert hourly[("cpu", "10")].columns == ["rank", "cmd", "sum"]
        assert hourly[("cpu", "10")]["rank"].to_list() == [1, 2]
        assert daily["cpu"]["cmd"].to_list() == ["java", "postgres"]

    def test_empty_aggregator(self):
        aggregator = AtopAggregator()

        assert aggregator.frame().height == 0
        assert aggregator.daily_frames() == {}
