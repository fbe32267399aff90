"""
Per-subsystem section analysis of one activity file.

A FileSectionAnalyzer decodes each report type of one file at most once,
extracts samples, computes the section summaries and window warnings, and
offers every scored sample to the shared Ranker. Missing report types never
raise: the section is returned with available=False and a "(no data ...)"
reason instead.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from ..models.config import AuditConfig
from ..models.results import (
    CpuSummary,
    DiskDeviceSummary,
    InterfaceSummary,
    MemorySummary,
    NetworkStackSummary,
    NetworkSummary,
    SectionResult,
)
from ..models.telemetry import ReportType, Sample, TelemetryTable
from ..telemetry.base import TelemetrySource
from ..telemetry.extractor import (
    MetricExtractor,
    aggregate_cpu_samples,
    estimate_ifutil,
    group_by_resource,
    has_native_ifutil,
)
from ..telemetry.sadf_source import sar_arguments
from .ranking import Ranker
from .scoring import AnomalyScorer
from .statistics import MetricSeries

logger = logging.getLogger(__name__)


def no_data_reason(*report_types: ReportType) -> str:
    """Text of the missing-section marker, e.g. "no data sar -n DEV in window"."""
    args = "/".join(" ".join(sar_arguments(rt)) for rt in report_types)
    return f"no data sar {args} in window"


def _series(name: str, samples: List[Sample], field: Optional[str] = None) -> MetricSeries:
    series = MetricSeries(name)
    for sample in samples:
        series.append(sample.get(field or name))
    return series


class FileSectionAnalyzer:
    """
    Analyzes the sections of one activity file.

    Attributes:
        path: The activity file
        source: Telemetry source used for decoding
        config: Run configuration
        ranker: Shared ranker fed with this file's candidates
        vcpu_count: Logical CPU count for the run-queue check
    """

    def __init__(
        self,
        path: Path,
        source: TelemetrySource,
        config: AuditConfig,
        ranker: Ranker,
        vcpu_count: int,
    ):
        self.path = path
        self.source = source
        self.config = config
        self.ranker = ranker
        self.vcpu_count = vcpu_count
        self.extractor = MetricExtractor(include_loopback=config.report.include_loopback)
        self.scorer = AnomalyScorer(config.thresholds)
        self._tables: Dict[ReportType, Optional[TelemetryTable]] = {}

    def table(self, report_type: ReportType) -> Optional[TelemetryTable]:
        """Decode a report type once; later calls reuse the result."""
        if report_type not in self._tables:
            self._tables[report_type] = self.source.decode(
                self.path, report_type, self.config.window
            )
        return self._tables[report_type]

    def has_data(self, report_type: ReportType) -> bool:
        table = self.table(report_type)
        return table is not None and not table.is_empty

    def samples(self, report_type: ReportType) -> List[Sample]:
        return self.extractor.extract(self.table(report_type))

    def _offer(self, candidate) -> int:
        return 1 if self.ranker.offer(candidate) else 0

    def analyze(self) -> List[SectionResult]:
        return [
            self.cpu(),
            self.memory(),
            self.disk(),
            self.network(),
            self.network_stack(),
        ]

    def cpu(self) -> SectionResult:
        result = SectionResult(key="cpu", title="CPU", available=False)
        if not self.has_data(ReportType.CPU):
            result.missing_reason = no_data_reason(ReportType.CPU)
            return result

        thresholds = self.config.thresholds
        samples = aggregate_cpu_samples(self.samples(ReportType.CPU))
        busy = MetricSeries("busy")
        for sample in samples:
            user, system = sample.get("%user"), sample.get("%system")
            if user is not None or system is not None:
                busy.append((user or 0.0) + (system or 0.0))
            result.candidate_count += self._offer(self.scorer.score_cpu(sample))
        iowait = _series("%iowait", samples)

        summary = CpuSummary(
            sample_count=len(samples),
            busy_avg=busy.mean(),
            iowait_avg=iowait.mean(),
            steal_avg=_series("%steal", samples).mean(),
            idle_avg=_series("%idle", samples).mean(),
            busy_p95=busy.percentile(0.95),
            busy_p99=busy.percentile(0.99),
            iowait_p95=iowait.percentile(0.95),
            iowait_p99=iowait.percentile(0.99),
            vcpu_count=self.vcpu_count,
            runq_threshold=self.vcpu_count * thresholds.runq_factor,
        )

        if summary.iowait_p99 is not None and summary.iowait_p99 > thresholds.cpu_iowait_warn:
            result.warnings.append(
                f"iowait p99={summary.iowait_p99:.1f}% (>{thresholds.cpu_iowait_warn:g}%)"
            )

        runq_samples = self.samples(ReportType.RUN_QUEUE)
        if runq_samples:
            summary.runq_avg = _series("runq-sz", runq_samples).mean()
            summary.load1_avg = _series("ldavg-1", runq_samples).mean()
            summary.load5_avg = _series("ldavg-5", runq_samples).mean()
            summary.load15_avg = _series("ldavg-15", runq_samples).mean()
            candidate = self.scorer.score_run_queue(
                summary.runq_avg, self.vcpu_count, runq_samples[-1].timestamp
            )
            if candidate is not None:
                result.warnings.append(
                    f"runq-sz avg={summary.runq_avg:.2f} (> {summary.runq_threshold:.2f})"
                )
                result.candidate_count += self._offer(candidate)

        cswch_samples = self.samples(ReportType.CONTEXT_SWITCH)
        if cswch_samples:
            summary.cswch_avg = _series("cswch/s", cswch_samples).mean()

        result.available = True
        result.summary = summary
        return result

    def memory(self) -> SectionResult:
        result = SectionResult(key="memory", title="Memory/Swap", available=False)
        if not self.has_data(ReportType.MEMORY):
            result.missing_reason = no_data_reason(ReportType.MEMORY)
            return result

        samples = self.samples(ReportType.MEMORY)
        memused = _series("%memused", samples)
        kbavail = _series("kbavail", samples)
        for sample in samples:
            result.candidate_count += self._offer(self.scorer.score_memory(sample))

        summary = MemorySummary(
            sample_count=len(samples),
            memused_avg=memused.mean(),
            kbavail_avg=kbavail.mean(),
            memused_p95=memused.percentile(0.95),
            memused_p99=memused.percentile(0.99),
            kbavail_p5=kbavail.percentile(0.05),
            kbavail_p1=kbavail.percentile(0.01),
        )

        if self.has_data(ReportType.SWAP):
            summary.swpused_avg = _series("%swpused", self.samples(ReportType.SWAP)).mean()

        if self.has_data(ReportType.PAGING):
            summary.page_cache_pressure = any(
                (s.get("pgscan/s") or 0.0) > 0 and (s.get("pgsteal/s") or 0.0) > 0
                for s in self.samples(ReportType.PAGING)
            )
            if summary.page_cache_pressure:
                result.warnings.append("page cache pressure: pgscan/s>0 and pgsteal/s>0 in window")

        result.available = True
        result.summary = summary
        return result

    def disk(self) -> SectionResult:
        result = SectionResult(key="disk", title="Disks", available=False)
        if not self.has_data(ReportType.DISK):
            result.missing_reason = no_data_reason(ReportType.DISK)
            return result

        thresholds = self.config.thresholds
        devices: List[DiskDeviceSummary] = []
        for device, samples in group_by_resource(self.samples(ReportType.DISK)).items():
            for sample in samples:
                result.candidate_count += self._offer(self.scorer.score_disk(sample))
            devices.append(
                DiskDeviceSummary(
                    device=device,
                    sample_count=len(samples),
                    await_avg=_series("await", samples).mean(),
                    util_avg=_series("%util", samples).mean(),
                    aqu_avg=_series("aqu-sz", samples).mean(),
                )
            )

        devices.sort(key=lambda d: (-(d.await_avg or 0.0), d.device))
        for dev in devices:
            if dev.await_avg is not None and dev.await_avg > thresholds.disk_await_warn:
                result.warnings.append(
                    f"{dev.device} avg await={dev.await_avg:.1f}ms (>{thresholds.disk_await_warn:g}ms)"
                )
            if dev.util_avg is not None and dev.util_avg > thresholds.disk_util_warn:
                result.warnings.append(
                    f"{dev.device} avg %util={dev.util_avg:.1f} (>{thresholds.disk_util_warn:g}%)"
                )

        result.available = True
        result.summary = devices
        return result

    def network(self) -> SectionResult:
        result = SectionResult(key="network", title="Network", available=False)
        if not self.has_data(ReportType.NET_DEVICE):
            result.missing_reason = no_data_reason(ReportType.NET_DEVICE)
            return result

        summary = NetworkSummary()
        for iface, samples in group_by_resource(self.samples(ReportType.NET_DEVICE)).items():
            interface, count = self._analyze_interface(iface, samples, result.warnings)
            summary.interfaces.append(interface)
            result.candidate_count += count

        if self.has_data(ReportType.NET_ERROR):
            summary.errors_available = True
            for sample in self.samples(ReportType.NET_ERROR):
                if self._offer(self.scorer.score_net_error(sample)):
                    result.candidate_count += 1
                    iface = sample.resource_key
                    summary.error_interfaces[iface] = summary.error_interfaces.get(iface, 0) + 1

        result.available = True
        result.summary = summary
        return result

    def _analyze_interface(self, iface: str, samples: List[Sample], warnings: List[str]):
        speed = self.config.link_speed(iface)
        native = has_native_ifutil(samples)
        # Only a configured speed makes a sample rankable
        speed_known = bool(speed)

        utilization: List[Optional[float]] = []
        for sample in samples:
            measured = sample.get("%ifutil") or 0.0
            if measured > 0:
                utilization.append(measured)
            elif speed:
                utilization.append(
                    estimate_ifutil(sample.get("rxkB/s") or 0.0, sample.get("txkB/s") or 0.0, speed)
                )
            elif native:
                utilization.append(measured)
            else:
                utilization.append(None)

        if native:
            source = "measured"
        elif speed:
            source = "estimated"
        else:
            source = "unknown"
            warnings.append(
                f"unknown link speed for interface {iface}: %ifutil is 0, "
                f"set IF_SPEED_Mbps_{iface}=<Mbps> or IF_SPEED_Mbps=\"{iface}=<Mbps>,...\""
            )

        count = 0
        for sample, ifutil in zip(samples, utilization):
            count += self._offer(self.scorer.score_net_load(sample, ifutil, speed_known))

        load = MetricSeries("load")
        for sample in samples:
            load.append((sample.get("rxkB/s") or 0.0) + (sample.get("txkB/s") or 0.0))
        ifutil_series = MetricSeries("%ifutil", (u for u in utilization if u is not None))

        interface = InterfaceSummary(
            iface=iface,
            sample_count=len(samples),
            rx_avg=_series("rxkB/s", samples).mean(),
            tx_avg=_series("txkB/s", samples).mean(),
            ifutil_avg=ifutil_series.mean(),
            ifutil_source=source,
            link_speed_mbps=speed,
            load_p95=load.percentile(0.95),
            load_p99=load.percentile(0.99),
        )
        return interface, count

    def network_stack(self) -> SectionResult:
        result = SectionResult(key="stack", title="Sockets/TCP/IP", available=False)
        report_types = (ReportType.SOCKET, ReportType.TCP, ReportType.IP)
        if not any(self.has_data(rt) for rt in report_types):
            result.missing_reason = no_data_reason(*report_types)
            return result

        summary = NetworkStackSummary()
        if self.has_data(ReportType.SOCKET):
            samples = self.samples(ReportType.SOCKET)
            tw = _series("tcp-tw", samples)
            summary.totsck_avg = _series("totsck", samples).mean()
            summary.tcp_tw_avg = tw.mean()
            summary.tcp_tw_max = tw.max()
            for sample in samples:
                result.candidate_count += self._offer(self.scorer.score_socket(sample))

        if self.has_data(ReportType.TCP):
            samples = self.samples(ReportType.TCP)
            summary.retrans_avg = _series("retrans/s", samples).mean()
            summary.inerr_avg = _series("inerr", samples).mean()
            for sample in samples:
                result.candidate_count += self._offer(self.scorer.score_tcp(sample))

        if self.has_data(ReportType.IP):
            samples = self.samples(ReportType.IP)
            summary.irec_avg = _series("irec/s", samples).mean()
            summary.irej_avg = _series("irej/s", samples).mean()
            for sample in samples:
                result.candidate_count += self._offer(self.scorer.score_ip(sample))

        result.available = True
        result.summary = summary
        return result
