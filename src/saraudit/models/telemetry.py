"""
Telemetry data models.

This module defines the values that travel through the analysis pipeline:
report types requested from the decoder, decoded tables, samples extracted
from them, the analysis window and the scored candidates fed to the rankers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class Subsystem(str, Enum):
    """Subsystems that own a ranked list of candidates."""

    CPU = "CPU"
    MEMORY = "Memory"
    DISK = "Disk"
    NET_DEVICE = "NetDevice"
    NET_ERROR = "NetError"
    SOCKET = "Socket"
    TCP = "TCP"
    IP = "IP"


class ReportType(str, Enum):
    """
    One logical table the decoder can produce for an activity file.

    The auxiliary types (run queue, context switches, swap, paging) only feed
    averages and window warnings of their parent subsystem.
    """

    CPU = "cpu"
    RUN_QUEUE = "runq"
    CONTEXT_SWITCH = "cswch"
    MEMORY = "memory"
    SWAP = "swap"
    PAGING = "paging"
    DISK = "disk"
    NET_DEVICE = "net_dev"
    NET_ERROR = "net_edev"
    SOCKET = "sock"
    TCP = "tcp"
    IP = "ip"

    @property
    def subsystem(self) -> Subsystem:
        return _REPORT_SUBSYSTEMS[self]


_REPORT_SUBSYSTEMS: Dict[ReportType, Subsystem] = {
    ReportType.CPU: Subsystem.CPU,
    ReportType.RUN_QUEUE: Subsystem.CPU,
    ReportType.CONTEXT_SWITCH: Subsystem.CPU,
    ReportType.MEMORY: Subsystem.MEMORY,
    ReportType.SWAP: Subsystem.MEMORY,
    ReportType.PAGING: Subsystem.MEMORY,
    ReportType.DISK: Subsystem.DISK,
    ReportType.NET_DEVICE: Subsystem.NET_DEVICE,
    ReportType.NET_ERROR: Subsystem.NET_ERROR,
    ReportType.SOCKET: Subsystem.SOCKET,
    ReportType.TCP: Subsystem.TCP,
    ReportType.IP: Subsystem.IP,
}


@dataclass(frozen=True)
class Window:
    """
    Inclusive-exclusive [start, end) range of wall-clock times.

    Both bounds are zero-padded "HH:MM:SS" strings, so lexical comparison is
    chronological. start == end selects the whole day.
    """

    start: str
    end: str

    @property
    def is_full_day(self) -> bool:
        return self.start == self.end

    def contains(self, time_of_day: str) -> bool:
        if self.is_full_day:
            return True
        return self.start <= time_of_day < self.end

    @property
    def label(self) -> str:
        return f"{self.start}-{self.end}"


@dataclass
class TelemetryTable:
    """
    Header and window-filtered data rows of one (file, report type) stream.

    Attributes:
        report_type: The report type this table was decoded for.
        header: Column names as declared by the decoder for this file.
        rows: Raw cell values, one list per data row, in decoder order.
    """

    report_type: ReportType
    header: List[str]
    rows: List[List[str]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def column_index(self) -> Dict[str, int]:
        """Map each column name to its position; the first occurrence wins."""
        index: Dict[str, int] = {}
        for i, name in enumerate(self.header):
            index.setdefault(name, i)
        return index


@dataclass(frozen=True)
class Sample:
    """
    One decoded telemetry row.

    `fields` only holds columns present in the header of the table the row
    came from. A missing key means "not available", which is different from
    a present 0.0.
    """

    timestamp: str
    subsystem: Subsystem
    resource_key: str
    fields: Dict[str, float]

    def get(self, name: str) -> Optional[float]:
        return self.fields.get(name)


@dataclass(frozen=True)
class Candidate:
    """A scored observation eligible for ranking."""

    score: int
    timestamp: str
    description: str
    subsystem: Optional[Subsystem] = None

    @property
    def rank_key(self) -> Tuple[int, str]:
        # score descending, then earlier timestamps first
        return (-self.score, self.timestamp)

    def to_line(self) -> str:
        return f"{self.score};{self.timestamp};{self.description}"
