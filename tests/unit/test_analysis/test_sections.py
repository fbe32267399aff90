"""
Unit tests for per-subsystem section analysis of one file.
"""

from pathlib import Path

import pytest

from conftest import FixtureTelemetrySource, cpu_text, disk_text, make_config, net_dev_text, sadf_text
from saraudit.analysis.ranking import Ranker
from saraudit.analysis.sections import FileSectionAnalyzer, no_data_reason
from saraudit.models.results import CpuSummary, MemorySummary, NetworkSummary
from saraudit.models.telemetry import ReportType, Subsystem

PATH = Path("/var/log/sa/sa15")


def _analyzer(reports, vcpu_count=4, **config_kwargs):
    config = make_config(**config_kwargs)
    source = FixtureTelemetrySource({("sa15", rt): text for rt, text in reports.items()})
    ranker = Ranker(config.report.top_n)
    return FileSectionAnalyzer(PATH, source, config, ranker, vcpu_count), ranker, source


@pytest.mark.unit
class TestNoDataReason:
    """Test cases for missing-section markers."""

    def test_single_report(self):
        assert no_data_reason(ReportType.NET_DEVICE) == "no data sar -n DEV in window"

    def test_several_reports(self):
        text = no_data_reason(ReportType.SOCKET, ReportType.TCP, ReportType.IP)

        assert text == "no data sar -n SOCK/-n TCP/-n IP in window"


@pytest.mark.unit
class TestCpuSection:
    """Test cases for the CPU section."""

    def test_averages_percentiles_and_candidates(self):
        text = cpu_text([
            ("10:00:00", 40.0, 20.0, 0.0, 0.0),
            ("10:10:00", 50.0, 30.0, 0.0, 0.0),
            ("10:20:00", 60.0, 35.0, 0.0, 0.0),
        ])
        analyzer, ranker, _ = _analyzer({ReportType.CPU: text})

        result = analyzer.cpu()

        assert result.available
        assert isinstance(result.summary, CpuSummary)
        assert result.summary.busy_avg == pytest.approx(78.333, abs=1e-3)
        assert result.summary.busy_p95 == 95.0
        assert result.summary.runq_avg is None
        assert result.candidate_count == 2
        assert [c.description for c in ranker.top(Subsystem.CPU)] == [
            "busy=80.0% iow=0.0%",
            "busy=95.0% iow=0.0%",
        ]

    def test_only_aggregate_rows_are_used(self):
        columns = ["CPU", "%user", "%system", "%iowait", "%steal", "%idle"]
        text = sadf_text(columns, [
            ("10:00:00", -1, 10.0, 5.0, 0.0, 0.0, 85.0),
            ("10:00:00", 0, 99.0, 1.0, 0.0, 0.0, 0.0),
        ])
        analyzer, _, _ = _analyzer({ReportType.CPU: text})

        result = analyzer.cpu()

        assert result.summary.sample_count == 1
        assert result.candidate_count == 0

    def test_iowait_warning(self):
        text = cpu_text([("10:00:00", 5.0, 5.0, 2.0, 0.0), ("10:10:00", 5.0, 5.0, 12.0, 0.0)])
        analyzer, _, _ = _analyzer({ReportType.CPU: text})

        result = analyzer.cpu()

        assert "iowait p99=12.0% (>5%)" in result.warnings

    def test_run_queue_candidate(self):
        runq = sadf_text(
            ["runq-sz", "plist-sz", "ldavg-1", "ldavg-5", "ldavg-15", "blocked"],
            [("10:00:00", 6, 300, 5.0, 4.0, 3.0, 0), ("10:10:00", 8, 300, 6.0, 5.0, 4.0, 0)],
        )
        analyzer, ranker, _ = _analyzer(
            {ReportType.CPU: cpu_text([("10:00:00", 1.0, 1.0, 0.0, 0.0)]), ReportType.RUN_QUEUE: runq},
            vcpu_count=4,
        )

        result = analyzer.cpu()

        assert result.summary.runq_avg == 7.0
        assert result.summary.load1_avg == 5.5
        assert "runq-sz avg=7.00 (> 4.00)" in result.warnings
        (candidate,) = ranker.top(Subsystem.CPU)
        assert candidate.score == 2
        assert candidate.timestamp.startswith("2024-01-15 10:10:00")

    def test_missing_report(self):
        analyzer, _, _ = _analyzer({})

        result = analyzer.cpu()

        assert not result.available
        assert result.missing_reason == "no data sar -u in window"

    def test_header_only_report(self):
        analyzer, _, _ = _analyzer({ReportType.CPU: "# hostname;interval;timestamp;CPU;%user\n"})

        assert analyzer.cpu().missing_reason == "no data sar -u in window"

    def test_rows_outside_window(self):
        text = cpu_text([("07:00:00", 90.0, 9.0, 0.0, 0.0)])
        analyzer, ranker, _ = _analyzer({ReportType.CPU: text})

        assert not analyzer.cpu().available
        assert ranker.total_offered == 0

    def test_report_decoded_once(self):
        analyzer, _, source = _analyzer({ReportType.CPU: cpu_text([("10:00:00", 1.0, 1.0, 0.0, 0.0)])})

        analyzer.cpu()
        analyzer.cpu()

        assert source.requests.count(("sa15", ReportType.CPU)) == 1


@pytest.mark.unit
class TestMemorySection:
    """Test cases for the memory section."""

    def test_memory_with_swap_and_paging(self):
        memory = sadf_text(["kbmemfree", "kbavail", "%memused"], [
            ("10:00:00", 1000, 500000, 90.0),
            ("10:10:00", 1000, 4000000, 50.0),
        ])
        swap = sadf_text(["kbswpfree", "kbswpused", "%swpused"], [("10:00:00", 10, 10, 12.0)])
        paging = sadf_text(["pgpgin/s", "pgscan/s", "pgsteal/s"], [("10:00:00", 1.0, 3.0, 2.0)])
        analyzer, ranker, _ = _analyzer({
            ReportType.MEMORY: memory,
            ReportType.SWAP: swap,
            ReportType.PAGING: paging,
        })

        result = analyzer.memory()

        assert isinstance(result.summary, MemorySummary)
        assert result.summary.memused_avg == 70.0
        assert result.summary.kbavail_p1 == 500000.0
        assert result.summary.swpused_avg == 12.0
        assert result.summary.page_cache_pressure is True
        assert result.warnings == ["page cache pressure: pgscan/s>0 and pgsteal/s>0 in window"]
        assert [c.score for c in ranker.top(Subsystem.MEMORY)] == [5]

    def test_optional_reports_absent(self):
        memory = sadf_text(["kbavail", "%memused"], [("10:00:00", 4000000, 10.0)])
        analyzer, _, _ = _analyzer({ReportType.MEMORY: memory})

        result = analyzer.memory()

        assert result.summary.swpused_avg is None
        assert result.summary.page_cache_pressure is None
        assert result.warnings == []


@pytest.mark.unit
class TestDiskSection:
    """Test cases for the disk section."""

    def test_latency_warning_and_spike(self):
        text = disk_text([
            ("10:00:00", "sda", 10.0, 20.0, 0.5),
            ("10:10:00", "sda", 15.0, 20.0, 0.5),
            ("10:20:00", "sda", 60.0, 20.0, 0.5),
            ("10:00:00", "sdb", 1.0, 5.0, 0.1),
        ])
        analyzer, ranker, _ = _analyzer({ReportType.DISK: text})

        result = analyzer.disk()

        assert [d.device for d in result.summary] == ["sda", "sdb"]
        assert result.summary[0].await_avg == pytest.approx(28.333, abs=1e-3)
        assert result.warnings == ["sda avg await=28.3ms (>20ms)"]
        (candidate,) = ranker.top(Subsystem.DISK)
        assert candidate.score == 3
        assert candidate.description.startswith("DEV=sda await=60.0ms")

    def test_util_warning(self):
        text = disk_text([("10:00:00", "nvme0n1", 1.0, 75.0, 0.5)])
        analyzer, _, _ = _analyzer({ReportType.DISK: text})

        assert analyzer.disk().warnings == ["nvme0n1 avg %util=75.0 (>70%)"]


@pytest.mark.unit
class TestNetworkSection:
    """Test cases for interface utilization handling."""

    def test_unknown_speed_warns_and_never_scores(self):
        text = net_dev_text([
            ("10:00:00", "eth0", 100.0, 25.0, 0.0),
            ("10:10:00", "eth0", 100.0, 25.0, 0.0),
        ])
        analyzer, ranker, _ = _analyzer({ReportType.NET_DEVICE: text})

        result = analyzer.network()

        (iface,) = result.summary.interfaces
        assert iface.ifutil_source == "unknown"
        assert iface.ifutil_avg is None
        assert iface.load_p95 == 125.0
        assert result.warnings[0].startswith(
            "unknown link speed for interface eth0: %ifutil is 0, set IF_SPEED_Mbps_eth0=<Mbps>"
        )
        assert ranker.top(Subsystem.NET_DEVICE) == []

    def test_configured_speed_estimates_utilization(self):
        text = net_dev_text([("10:00:00", "eth0", 1000.0, 280.0, 0.0)])
        analyzer, ranker, _ = _analyzer({ReportType.NET_DEVICE: text}, link_speeds={"eth0": 10})

        result = analyzer.network()

        (iface,) = result.summary.interfaces
        assert iface.ifutil_source == "estimated"
        assert iface.ifutil_avg == pytest.approx(104.8576)
        assert result.warnings == []
        assert [c.score for c in ranker.top(Subsystem.NET_DEVICE)] == [2]

    def test_measured_utilization_without_speed_is_not_ranked(self):
        text = net_dev_text([("10:00:00", "eth0", 5000.0, 5000.0, 90.0), ("10:10:00", "eth0", 5.0, 5.0, 0.5)])
        analyzer, ranker, _ = _analyzer({ReportType.NET_DEVICE: text})

        result = analyzer.network()

        (iface,) = result.summary.interfaces
        assert iface.ifutil_source == "measured"
        assert iface.ifutil_avg == 45.25
        assert result.warnings == []
        assert ranker.top(Subsystem.NET_DEVICE) == []

    def test_zero_samples_estimated_when_speed_configured(self):
        text = net_dev_text([("10:00:00", "eth0", 1000.0, 280.0, 0.0), ("10:10:00", "eth0", 5.0, 5.0, 80.0)])
        analyzer, ranker, _ = _analyzer({ReportType.NET_DEVICE: text}, link_speeds={"eth0": 10})

        result = analyzer.network()

        (iface,) = result.summary.interfaces
        assert iface.ifutil_source == "measured"
        assert iface.ifutil_avg == pytest.approx((104.8576 + 80.0) / 2)
        top = ranker.top(Subsystem.NET_DEVICE)
        assert [c.score for c in top] == [2, 2]
        assert top[0].description == "IF=eth0 load=1280.0kB/s ifutil=104.9%"
        assert top[1].description == "IF=eth0 load=10.0kB/s ifutil=80.0%"

    def test_loopback_excluded(self):
        text = net_dev_text([("10:00:00", "lo", 5.0, 5.0, 0.0), ("10:00:00", "eth0", 5.0, 5.0, 1.0)])
        analyzer, _, _ = _analyzer({ReportType.NET_DEVICE: text})

        result = analyzer.network()

        assert [i.iface for i in result.summary.interfaces] == ["eth0"]

    def test_error_interfaces(self):
        dev = net_dev_text([("10:00:00", "eth0", 5.0, 5.0, 1.0)])
        edev = sadf_text(["IFACE", "rxerr/s", "txerr/s", "coll/s", "rxdrop/s", "txdrop/s"], [
            ("10:00:00", "eth0", 0.5, 0.0, 0.0, 0.0, 0.0),
            ("10:10:00", "eth0", 0.0, 0.0, 0.0, 2.0, 0.0),
            ("10:00:00", "eth1", 0.0, 0.0, 0.0, 0.0, 0.0),
        ])
        analyzer, ranker, _ = _analyzer({ReportType.NET_DEVICE: dev, ReportType.NET_ERROR: edev})

        result = analyzer.network()

        assert isinstance(result.summary, NetworkSummary)
        assert result.summary.errors_available
        assert result.summary.error_interfaces == {"eth0": 2}
        assert [c.score for c in ranker.top(Subsystem.NET_ERROR)] == [3, 2]

    def test_missing_device_report(self):
        analyzer, _, _ = _analyzer({})

        assert analyzer.network().missing_reason == "no data sar -n DEV in window"


@pytest.mark.unit
class TestNetworkStackSection:
    """Test cases for sockets, TCP and IP."""

    def test_partial_reports(self):
        sock = sadf_text(["totsck", "tcpsck", "udpsck", "rawsck", "ip-frag", "tcp-tw"], [
            ("10:00:00", 200, 20, 5, 0, 0, 0),
            ("10:10:00", 210, 22, 5, 0, 0, 4),
        ])
        analyzer, ranker, _ = _analyzer({ReportType.SOCKET: sock})

        result = analyzer.network_stack()

        assert result.available
        assert result.summary.totsck_avg == 205.0
        assert result.summary.tcp_tw_max == 4.0
        assert result.summary.retrans_avg is None
        assert result.candidate_count == 1
        assert len(ranker.top(Subsystem.SOCKET)) == 1

    def test_all_absent(self):
        analyzer, _, _ = _analyzer({})

        result = analyzer.network_stack()

        assert result.missing_reason == "no data sar -n SOCK/-n TCP/-n IP in window"

    def test_analyze_returns_all_sections(self):
        analyzer, _, _ = _analyzer({})

        keys = [section.key for section in analyzer.analyze()]

        assert keys == ["cpu", "memory", "disk", "network", "stack"]
