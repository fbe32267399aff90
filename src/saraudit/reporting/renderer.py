"""
Plain-text rendering of audit results.

The layout is meant for a terminal or a pager: a window header, one block per
analyzed file with its sections, the per-subsystem TOP-K blocks, the merged
TOP-K block, informational inventory and a closing "Done.".
"""

from typing import Dict, List, Optional

from ..models.results import (
    AuditResults,
    CpuSummary,
    FileAnalysis,
    MemorySummary,
    NetworkStackSummary,
    NetworkSummary,
    SectionResult,
)
from ..models.telemetry import Candidate, Subsystem

RULE = "-" * 80
DISK_TOP_DEVICES = 5
EMPTY_MARKER = "(empty)"

TOP_BLOCK_TITLES: Dict[Subsystem, str] = {
    Subsystem.CPU: "CPU",
    Subsystem.MEMORY: "Memory/Swap",
    Subsystem.DISK: "Disk moments",
    Subsystem.NET_DEVICE: "Network load",
    Subsystem.NET_ERROR: "Network errors/drops",
    Subsystem.SOCKET: "SOCK",
    Subsystem.TCP: "TCP",
    Subsystem.IP: "IP",
}


def fmt(value: Optional[float], spec: str = ".1f", suffix: str = "") -> str:
    """Format an optional statistic; None renders as "n/a"."""
    if value is None:
        return "n/a"
    return f"{format(value, spec)}{suffix}"


class ReportRenderer:
    """
    Builds the text report from AuditResults.

    Attributes:
        debug: Also list the analyzed files before the per-file blocks.
    """

    def __init__(self, debug: bool = False):
        self.debug = debug

    def render(self, results: AuditResults) -> str:
        lines: List[str] = []
        lines.append(f"Analysis window: {results.window.label}")
        lines.append(RULE)
        lines.append("")

        for notice in results.notices:
            lines.append(notice)
        if not results.files_found:
            lines.append("")
            self._render_inventory(results, lines)
            lines.append("Done.")
            return "\n".join(lines) + "\n"

        if self.debug:
            lines.append("Files analyzed (newest first):")
            lines.extend(f" - {analysis.path}" for analysis in results.files)
            lines.append("")

        for analysis in results.files:
            self._render_file(analysis, lines)

        for subsystem in Subsystem:
            self._render_top_block(
                f"{TOP_BLOCK_TITLES[subsystem]} (TOP-{results.top_n})",
                results.top_lists.get(subsystem, []),
                lines,
            )
        self._render_top_block(
            f"All subsystems (TOP-{results.top_n})",
            results.global_top,
            lines,
            show_subsystem=True,
        )

        self._render_inventory(results, lines)
        lines.append("Done.")
        return "\n".join(lines) + "\n"

    def _render_file(self, analysis: FileAnalysis, lines: List[str]) -> None:
        lines.append(f"=== File: {analysis.path} ===")
        for section in analysis.sections:
            self._render_section(section, lines)
        lines.append(RULE)
        lines.append("")

    def _render_section(self, section: SectionResult, lines: List[str]) -> None:
        lines.append(f"-- {section.title}")
        if not section.available:
            lines.append(f"  ({section.missing_reason})")
            lines.append("")
            return

        summary = section.summary
        if isinstance(summary, CpuSummary):
            self._render_cpu(summary, lines)
        elif isinstance(summary, MemorySummary):
            self._render_memory(summary, lines)
        elif isinstance(summary, list):
            self._render_disks(summary, lines)
        elif isinstance(summary, NetworkSummary):
            self._render_network(summary, lines)
        elif isinstance(summary, NetworkStackSummary):
            self._render_stack(summary, lines)

        for warning in section.warnings:
            lines.append(f"  [!] {warning}")
        lines.append("")

    def _render_cpu(self, s: CpuSummary, lines: List[str]) -> None:
        lines.append(
            f"  avg busy(usr+sys)={fmt(s.busy_avg, suffix='%')}  iowait={fmt(s.iowait_avg, suffix='%')}  "
            f"steal={fmt(s.steal_avg, suffix='%')}  idle={fmt(s.idle_avg, suffix='%')}"
        )
        lines.append(
            f"  avg runq-sz={fmt(s.runq_avg, '.2f')}  load(1/5/15)={fmt(s.load1_avg, '.2f')}/"
            f"{fmt(s.load5_avg, '.2f')}/{fmt(s.load15_avg, '.2f')}  cswch/s={fmt(s.cswch_avg, '.0f')}"
            f"  (vCPU={s.vcpu_count})"
        )
        lines.append(
            f"  p95/p99 busy={fmt(s.busy_p95)}/{fmt(s.busy_p99)}%  "
            f"p95/p99 iowait={fmt(s.iowait_p95)}/{fmt(s.iowait_p99)}%"
        )

    def _render_memory(self, s: MemorySummary, lines: List[str]) -> None:
        lines.append(f"  avg %memused={fmt(s.memused_avg, suffix='%')}  kbavail={fmt(s.kbavail_avg, '.0f')}")
        lines.append(
            f"  p95/p99 %memused={fmt(s.memused_p95)}/{fmt(s.memused_p99)}%  "
            f"(kbavail p5/p1={fmt(s.kbavail_p5, '.0f')}/{fmt(s.kbavail_p1, '.0f')})"
        )
        if s.swpused_avg is not None:
            lines.append(f"  avg %swpused={fmt(s.swpused_avg, suffix='%')}")

    def _render_disks(self, devices, lines: List[str]) -> None:
        lines.append(f"  Average latency/utilization (top {DISK_TOP_DEVICES} by await):")
        for dev in devices[:DISK_TOP_DEVICES]:
            lines.append(
                f"  {dev.device:<20} avg await={fmt(dev.await_avg, suffix='ms')}  "
                f"%util={fmt(dev.util_avg)}  aqu={fmt(dev.aqu_avg, '.2f')}"
            )

    def _render_network(self, s: NetworkSummary, lines: List[str]) -> None:
        lines.append("  Interface averages:")
        if not s.interfaces:
            lines.append("   (no interfaces in window)")
        for iface in s.interfaces:
            if iface.ifutil_source == "unknown":
                util = "n/a (unknown link speed)"
            elif iface.ifutil_source == "estimated":
                util = f"~{fmt(iface.ifutil_avg)} (estimated, {iface.link_speed_mbps} Mbps)"
            else:
                util = fmt(iface.ifutil_avg)
            lines.append(
                f"   - {iface.iface:<12} rx={fmt(iface.rx_avg, suffix='kB/s')}  "
                f"tx={fmt(iface.tx_avg, suffix='kB/s')}  %ifutil={util}"
            )
            lines.append(
                f"     p95/p99 load(rx+tx)={fmt(iface.load_p95)}/{fmt(iface.load_p99)} kB/s"
            )
        if not s.errors_available:
            lines.append("  (no data sar -n EDEV in window)")
        elif s.error_interfaces:
            listed = ", ".join(f"{name} ({count})" for name, count in s.error_interfaces.items())
            lines.append(f"  Errors/drops seen on: {listed}")

    def _render_stack(self, s: NetworkStackSummary, lines: List[str]) -> None:
        lines.append(
            f"  avg totsck={fmt(s.totsck_avg, '.0f')}  tcp-tw={fmt(s.tcp_tw_avg, '.0f')} "
            f"(max {fmt(s.tcp_tw_max, '.0f')})"
        )
        lines.append(f"  avg retrans/s={fmt(s.retrans_avg, '.2f')}  inerr={fmt(s.inerr_avg, '.2f')}")
        lines.append(f"  avg irec/s={fmt(s.irec_avg)}  irej/s={fmt(s.irej_avg, '.2f')}")

    def _render_top_block(
        self,
        title: str,
        candidates: List[Candidate],
        lines: List[str],
        show_subsystem: bool = False,
    ) -> None:
        lines.append(title)
        if not candidates:
            lines.append(f"  {EMPTY_MARKER}")
        for candidate in candidates:
            if show_subsystem and candidate.subsystem is not None:
                lines.append(
                    f"  {candidate.timestamp}  [{candidate.subsystem.value}] {candidate.description}"
                )
            else:
                lines.append(f"  {candidate.timestamp}  {candidate.description}")
        lines.append("")

    def _render_inventory(self, results: AuditResults, lines: List[str]) -> None:
        for block in results.inventory:
            lines.append(f"{block.title}:")
            lines.append(block.text)
            lines.append("")


def render_report(results: AuditResults, debug: bool = False) -> str:
    return ReportRenderer(debug=debug).render(results)
