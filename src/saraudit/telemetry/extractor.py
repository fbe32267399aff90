"""
Header-driven metric extraction.

Every field is resolved by name against the header captured for the specific
(file, report type) table, because different sysstat versions emit different
column orders and optional columns. Columns outside the declared set of a
report type are ignored.
"""

import logging
import math
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from ..models.telemetry import ReportType, Sample, TelemetryTable
from .window import timestamp_column

logger = logging.getLogger(__name__)

# Columns each report type knows how to interpret.
DECLARED_COLUMNS: Dict[ReportType, Tuple[str, ...]] = {
    ReportType.CPU: ("%user", "%system", "%iowait", "%steal", "%idle"),
    ReportType.RUN_QUEUE: ("runq-sz", "ldavg-1", "ldavg-5", "ldavg-15"),
    ReportType.CONTEXT_SWITCH: ("cswch/s",),
    ReportType.MEMORY: ("%memused", "kbavail"),
    ReportType.SWAP: ("%swpused",),
    ReportType.PAGING: ("pgscan/s", "pgsteal/s"),
    ReportType.DISK: ("await", "%util", "aqu-sz"),
    ReportType.NET_DEVICE: ("rxkB/s", "txkB/s", "%ifutil"),
    ReportType.NET_ERROR: ("rxerr/s", "txerr/s", "rxdrop/s", "txdrop/s"),
    ReportType.SOCKET: ("totsck", "tcpsck", "udpsck", "tcp-tw"),
    ReportType.TCP: ("active/s", "passive/s", "retrans/s", "estab", "inerr"),
    ReportType.IP: ("irec/s", "idel/s", "irej/s"),
}

# Column naming the per-row resource; whole-system reports have none.
RESOURCE_COLUMNS: Dict[ReportType, str] = {
    ReportType.CPU: "CPU",
    ReportType.DISK: "DEV",
    ReportType.NET_DEVICE: "IFACE",
    ReportType.NET_ERROR: "IFACE",
}

AGGREGATE_CPU_IDS = ("-1", "all")
LOOPBACK_INTERFACE = "lo"
INTERFACE_REPORTS = (ReportType.NET_DEVICE, ReportType.NET_ERROR)


def parse_number(cell: str) -> float:
    """
    Parse a numeric cell; empty or malformed values become 0.0.

    Decimal commas (locale-formatted output) are accepted.
    """
    text = cell.strip()
    if not text:
        return 0.0
    try:
        value = float(text.replace(",", "."))
    except ValueError:
        logger.debug(f"Malformed numeric cell {cell!r}, using 0")
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return value


def is_reportable_interface(name: str, include_loopback: bool = False) -> bool:
    """Filter out loopback (unless requested) and decoder artifacts."""
    if not name:
        return False
    if name == LOOPBACK_INTERFACE and not include_loopback:
        return False
    if any(ch.isspace() for ch in name):
        return False
    return name != "IFACE" and not name.startswith("LINUX-RESTART")


class MetricExtractor:
    """
    Turns TelemetryTable rows into Samples with name-resolved fields.

    Attributes:
        include_loopback: Keep rows of the loopback interface.
    """

    def __init__(self, include_loopback: bool = False):
        self.include_loopback = include_loopback

    def extract(self, table: Optional[TelemetryTable]) -> List[Sample]:
        if table is None:
            return []
        return list(self.iter_samples(table))

    def iter_samples(self, table: TelemetryTable) -> Iterator[Sample]:
        report_type = table.report_type
        columns = table.column_index()
        wanted = [(name, columns[name]) for name in DECLARED_COLUMNS[report_type] if name in columns]
        ts_idx = columns.get("timestamp", timestamp_column(table.header))
        resource_col = RESOURCE_COLUMNS.get(report_type)
        resource_idx = columns.get(resource_col) if resource_col else None

        if resource_col and resource_idx is None:
            logger.debug(f"{report_type.value}: header has no {resource_col} column")

        for row in table.rows:
            resource = ""
            if resource_idx is not None:
                resource = row[resource_idx].strip() if resource_idx < len(row) else ""
                if report_type in INTERFACE_REPORTS and not is_reportable_interface(
                    resource, self.include_loopback
                ):
                    continue

            # Trailing columns missing from a short row stay absent.
            fields = {name: parse_number(row[idx]) for name, idx in wanted if idx < len(row)}
            yield Sample(
                timestamp=row[ts_idx].strip() if ts_idx < len(row) else "",
                subsystem=report_type.subsystem,
                resource_key=resource,
                fields=fields,
            )


def aggregate_cpu_samples(samples: Iterable[Sample]) -> List[Sample]:
    """Keep only the all-CPU rows used for whole-system statistics."""
    return [s for s in samples if s.resource_key in AGGREGATE_CPU_IDS]


def group_by_resource(samples: Iterable[Sample]) -> Dict[str, List[Sample]]:
    """Group samples per resource key, in order of first appearance."""
    groups: Dict[str, List[Sample]] = {}
    for sample in samples:
        groups.setdefault(sample.resource_key, []).append(sample)
    return groups


def estimate_ifutil(rx_kbps: float, tx_kbps: float, speed_mbps: float) -> float:
    """Utilization percentage of a link of speed_mbps carrying rx+tx kB/s."""
    return 100.0 * (rx_kbps + tx_kbps) * 1024 * 8 / (speed_mbps * 1_000_000)


def has_native_ifutil(samples: Iterable[Sample]) -> bool:
    """Whether the kernel reported a non-zero %ifutil for any sample."""
    return any((s.get("%ifutil") or 0.0) > 0 for s in samples)
