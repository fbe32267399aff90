"""
Analysis result models.

Section analyzers fill these structures; the report renderer is the only
consumer. Averages and percentiles are Optional: None means the series was
empty and is rendered as "n/a" instead of a fabricated zero.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from .telemetry import Candidate, Subsystem, Window


@dataclass
class CpuSummary:
    """Whole-system CPU averages over the aggregate ("all") rows."""

    sample_count: int
    busy_avg: Optional[float]
    iowait_avg: Optional[float]
    steal_avg: Optional[float]
    idle_avg: Optional[float]
    busy_p95: Optional[float]
    busy_p99: Optional[float]
    iowait_p95: Optional[float]
    iowait_p99: Optional[float]
    # From the run-queue and context-switch reports (None when absent).
    runq_avg: Optional[float] = None
    load1_avg: Optional[float] = None
    load5_avg: Optional[float] = None
    load15_avg: Optional[float] = None
    cswch_avg: Optional[float] = None
    vcpu_count: int = 1
    runq_threshold: float = 1.0


@dataclass
class MemorySummary:
    sample_count: int
    memused_avg: Optional[float]
    kbavail_avg: Optional[float]
    memused_p95: Optional[float]
    memused_p99: Optional[float]
    # Low percentiles: the worst availability moments.
    kbavail_p5: Optional[float]
    kbavail_p1: Optional[float]
    swpused_avg: Optional[float] = None
    # None when the paging report was not available.
    page_cache_pressure: Optional[bool] = None


@dataclass
class DiskDeviceSummary:
    device: str
    sample_count: int
    await_avg: Optional[float]
    util_avg: Optional[float]
    aqu_avg: Optional[float]


@dataclass
class InterfaceSummary:
    """
    Per-interface throughput and utilization.

    `ifutil_source` is "measured" when the kernel counter was non-zero,
    "estimated" when computed from a configured link speed and "unknown"
    otherwise (ifutil_avg is then None).
    """

    iface: str
    sample_count: int
    rx_avg: Optional[float]
    tx_avg: Optional[float]
    ifutil_avg: Optional[float]
    ifutil_source: str
    link_speed_mbps: Optional[int]
    load_p95: Optional[float]
    load_p99: Optional[float]


@dataclass
class NetworkSummary:
    interfaces: List[InterfaceSummary] = field(default_factory=list)
    # Interfaces with at least one error/drop sample, with sample counts.
    error_interfaces: Dict[str, int] = field(default_factory=dict)
    errors_available: bool = False


@dataclass
class NetworkStackSummary:
    """Averages of the socket, TCP and IP reports; None when the report is absent."""

    totsck_avg: Optional[float] = None
    tcp_tw_avg: Optional[float] = None
    tcp_tw_max: Optional[float] = None
    retrans_avg: Optional[float] = None
    inerr_avg: Optional[float] = None
    irec_avg: Optional[float] = None
    irej_avg: Optional[float] = None


SectionSummary = Union[
    CpuSummary, MemorySummary, List[DiskDeviceSummary], NetworkSummary, NetworkStackSummary
]


@dataclass
class SectionResult:
    """
    Outcome of one subsystem section for one file.

    When `available` is False, `missing_reason` holds the text of the
    "(no data ...)" marker and `summary` is None.
    """

    key: str
    title: str
    available: bool
    summary: Optional[SectionSummary] = None
    warnings: List[str] = field(default_factory=list)
    missing_reason: str = ""
    candidate_count: int = 0


@dataclass
class FileAnalysis:
    path: Path
    sections: List[SectionResult] = field(default_factory=list)

    @property
    def candidate_count(self) -> int:
        return sum(section.candidate_count for section in self.sections)


@dataclass
class InventoryBlock:
    """Informational, unscored reference output (block devices, volumes)."""

    title: str
    text: str


@dataclass
class AuditResults:
    """
    Everything one run produced, in render order.
    """

    window: Window
    top_n: int
    files: List[FileAnalysis] = field(default_factory=list)
    top_lists: Dict[Subsystem, List[Candidate]] = field(default_factory=dict)
    global_top: List[Candidate] = field(default_factory=list)
    inventory: List[InventoryBlock] = field(default_factory=list)
    # Run-level notices such as "no files found" or "decoder unavailable".
    notices: List[str] = field(default_factory=list)
    files_found: bool = True
    total_candidates: int = 0
