"""
Configuration data models.

This module contains the immutable configuration handed to an audit run:
the analysis window, telemetry source settings, scoring thresholds, link
speeds, output locations and the atop aggregator settings. Defaults are
declared once as module constants.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

from .telemetry import Window

# --- Window / limits ---
DEFAULT_START = "08:00:00"
DEFAULT_END = "19:00:00"
DEFAULT_MAX_FILES = 4
DEFAULT_TOPN = 20
DEFAULT_DECODER_TIMEOUT = 60.0
DEFAULT_SA_DIRS = (Path("/var/log/sa"), Path("/var/log/sysstat"))

# --- CPU ---
DEFAULT_CPU_BUSY_PCT = 75.0
DEFAULT_CPU_IOWAIT_WARN = 5.0
DEFAULT_CPU_STEAL_WARN = 1.0
DEFAULT_RUNQ_FACTOR = 1.0

# --- Memory ---
DEFAULT_MEM_USED_WARN = 80.0
DEFAULT_MEM_AVAIL_MIN_KB = 1_048_576.0

# --- Disk ---
DEFAULT_DISK_AWAIT_WARN = 20.0
DEFAULT_DISK_AWAIT_SPIKE = 50.0
DEFAULT_DISK_UTIL_WARN = 70.0
DEFAULT_DISK_UTIL_SPIKE = 90.0
DEFAULT_DISK_AQU_SPIKE = 5.0

# --- Network ---
DEFAULT_IFUTIL_WARN = 70.0
DEFAULT_NET_ERR_MIN = 0.0
DEFAULT_IP_IREC_BUSY = 1000.0

# --- Output ---
DEFAULT_AUDIT_DIR = Path("~/audit")
DEFAULT_SUMMARY_NAME = "sar_summary.log"
DEFAULT_SUMMARY_LINES = 400
DEFAULT_ARCHIVE_NAME = "sar.tgz"

# --- atop ---
DEFAULT_ATOP_LOGPATH = Path("/var/log/atop")
DEFAULT_ATOP_TOPN = 20
DEFAULT_ATOP_THRESHOLDS = {"cpu": 80.0, "mem": 80.0, "dsk": 80.0, "net": 100000.0}


@dataclass(frozen=True)
class Thresholds:
    """
    Scoring and warning thresholds, loaded from `[thresholds]` or the
    environment variable of the same name in upper case.
    """

    # busy = %user + %system above this scores +2
    cpu_busy_pct: float = DEFAULT_CPU_BUSY_PCT
    # %iowait above this scores +2; p99 above this is a window warning
    cpu_iowait_warn: float = DEFAULT_CPU_IOWAIT_WARN
    # %steal above this scores +3
    cpu_steal_warn: float = DEFAULT_CPU_STEAL_WARN
    # mean runq-sz above vCPU * factor adds a run-queue candidate
    runq_factor: float = DEFAULT_RUNQ_FACTOR
    # %memused above this scores +2
    mem_used_warn: float = DEFAULT_MEM_USED_WARN
    # kbavail below this scores +3
    mem_avail_min_kb: float = DEFAULT_MEM_AVAIL_MIN_KB
    # per-device window averages
    disk_await_warn: float = DEFAULT_DISK_AWAIT_WARN
    disk_util_warn: float = DEFAULT_DISK_UTIL_WARN
    # per-sample spikes (inclusive)
    disk_await_spike: float = DEFAULT_DISK_AWAIT_SPIKE
    disk_util_spike: float = DEFAULT_DISK_UTIL_SPIKE
    disk_aqu_spike: float = DEFAULT_DISK_AQU_SPIKE
    # %ifutil at or above this scores +2 when the link speed is known
    ifutil_warn: float = DEFAULT_IFUTIL_WARN
    # error/drop rates above this are scored
    net_err_min: float = DEFAULT_NET_ERR_MIN
    # irec/s above this (with idel/s > 0) scores +1
    ip_irec_busy: float = DEFAULT_IP_IREC_BUSY


@dataclass(frozen=True)
class SourceConfig:
    """Where activity files are looked up and how they are decoded."""

    # Directories scanned for sa[NN] files, in order.
    sa_dirs: Tuple[Path, ...] = DEFAULT_SA_DIRS
    # How many of the newest files to analyze.
    max_files: int = DEFAULT_MAX_FILES
    # Seconds allowed for one decoder invocation.
    decoder_timeout: float = DEFAULT_DECODER_TIMEOUT


@dataclass(frozen=True)
class ReportConfig:
    """Report shape and verbosity."""

    top_n: int = DEFAULT_TOPN
    include_loopback: bool = False
    include_inventory: bool = True
    debug: bool = False


@dataclass(frozen=True)
class OutputConfig:
    """Durable artifacts written at the end of a run."""

    audit_dir: Path = DEFAULT_AUDIT_DIR
    summary_name: str = DEFAULT_SUMMARY_NAME
    summary_lines: int = DEFAULT_SUMMARY_LINES
    archive_name: str = DEFAULT_ARCHIVE_NAME
    write_summary: bool = True
    create_archive: bool = True

    @property
    def summary_path(self) -> Path:
        return self.audit_dir / self.summary_name

    @property
    def archive_path(self) -> Path:
        return self.audit_dir / self.archive_name


@dataclass(frozen=True)
class AtopConfig:
    """Settings of the atop per-process aggregator."""

    log_path: Path = DEFAULT_ATOP_LOGPATH
    top_n: int = DEFAULT_ATOP_TOPN
    # spike thresholds for the hourly top-1 sum, keyed by metric (cpu/mem/dsk/net)
    thresholds: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_ATOP_THRESHOLDS))


@dataclass(frozen=True)
class AuditConfig:
    """
    The root configuration object passed into an audit run.
    """

    window: Window = field(default_factory=lambda: Window(DEFAULT_START, DEFAULT_END))
    source: SourceConfig = field(default_factory=SourceConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    thresholds: Thresholds = field(default_factory=Thresholds)
    # Link speed in Mbps per interface name.
    link_speeds: Dict[str, int] = field(default_factory=dict)
    output: OutputConfig = field(default_factory=OutputConfig)
    atop: AtopConfig = field(default_factory=AtopConfig)
    # Overrides the detected logical CPU count for the run-queue check.
    vcpu_count: Optional[int] = None

    def link_speed(self, iface: str) -> Optional[int]:
        return self.link_speeds.get(iface)
