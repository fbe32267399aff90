"""
Pytest configuration and shared fixtures for the saraudit test suite.

This module provides common fixtures, fixture telemetry sources and helpers
that build decoder output in the `sadf -d` layout.
"""

import sys
import tempfile
import shutil
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest
import toml

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from saraudit.config import manager  # noqa: E402
from saraudit.models.config import AuditConfig, OutputConfig, ReportConfig  # noqa: E402
from saraudit.models.telemetry import ReportType, Window  # noqa: E402
from saraudit.telemetry.base import TelemetrySource  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "e2e: mark test as an end-to-end test")


# ============================================================================
# Decoder output helpers
# ============================================================================

HOST = "testhost"
INTERVAL = "600"
DAY = "2024-01-15"


def sadf_text(columns: Sequence[str], rows: Sequence[Sequence[object]], day: str = DAY) -> str:
    """
    Build `sadf -d` output.

    Each row is (HH:MM:SS, value, ...) where values follow `columns`.
    """
    header = "# hostname;interval;timestamp;" + ";".join(columns)
    lines = [header]
    for row in rows:
        time_of_day, *values = row
        cells = [HOST, INTERVAL, f"{day} {time_of_day} UTC", *[str(v) for v in values]]
        lines.append(";".join(cells))
    return "\n".join(lines) + "\n"


def cpu_text(rows: Sequence[Tuple[str, float, float, float, float]]) -> str:
    """CPU report from (time, %user, %system, %iowait, %steal) tuples."""
    columns = ["CPU", "%user", "%nice", "%system", "%iowait", "%steal", "%idle"]
    body = []
    for time_of_day, user, system, iowait, steal in rows:
        idle = max(0.0, 100.0 - user - system - iowait - steal)
        body.append((time_of_day, -1, user, 0.0, system, iowait, steal, round(idle, 2)))
    return sadf_text(columns, body)


def disk_text(rows: Sequence[Tuple[str, str, float, float, float]]) -> str:
    """Disk report from (time, device, await, %util, aqu-sz) tuples."""
    columns = ["DEV", "tps", "rkB/s", "wkB/s", "areq-sz", "aqu-sz", "await", "%util"]
    body = [
        (time_of_day, dev, 10.0, 0.0, 0.0, 4.0, aqu, await_ms, util)
        for time_of_day, dev, await_ms, util, aqu in rows
    ]
    return sadf_text(columns, body)


def net_dev_text(rows: Sequence[Tuple[str, str, float, float, float]]) -> str:
    """Network device report from (time, iface, rxkB/s, txkB/s, %ifutil) tuples."""
    columns = ["IFACE", "rxpck/s", "txpck/s", "rxkB/s", "txkB/s", "rxcmp/s", "txcmp/s", "rxmcst/s", "%ifutil"]
    body = [
        (time_of_day, iface, 1.0, 1.0, rx, tx, 0.0, 0.0, 0.0, ifutil)
        for time_of_day, iface, rx, tx, ifutil in rows
    ]
    return sadf_text(columns, body)


class FixtureTelemetrySource(TelemetrySource):
    """
    Telemetry source serving canned decoder text.

    Reports are keyed by (file name, report type); anything else is absent.
    """

    name = "fixture"

    def __init__(self, reports: Dict[Tuple[str, ReportType], str], available: bool = True):
        self.reports = reports
        self.available = available
        self.requests: List[Tuple[str, ReportType]] = []

    def is_available(self) -> bool:
        return self.available

    def read_report(self, path: Path, report_type: ReportType) -> Optional[str]:
        self.requests.append((Path(path).name, report_type))
        return self.reports.get((Path(path).name, report_type))


def make_config(
    start: str = "08:00:00",
    end: str = "19:00:00",
    top_n: int = 20,
    audit_dir: Optional[Path] = None,
    **kwargs,
) -> AuditConfig:
    """AuditConfig for tests: no inventory, no host-dependent output paths."""
    output = OutputConfig(audit_dir=audit_dir) if audit_dir is not None else OutputConfig()
    return AuditConfig(
        window=Window(start, end),
        report=ReportConfig(top_n=top_n, include_inventory=False),
        output=output,
        **kwargs,
    )


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_config_data():
    """Sample configuration data in the TOML layout."""
    return {
        "window": {"start": "09:00", "end": "17:30"},
        "source": {"sa_dirs": ["/var/log/sa"], "max_files": 2, "decoder_timeout": 30},
        "report": {"top_n": 10, "include_loopback": False, "include_inventory": False},
        "thresholds": {"cpu_busy_pct": 80.0, "disk_await_warn": 25.0},
        "network": {"link_speeds": {"eth0": 1000}},
        "output": {"audit_dir": "/tmp/saraudit-test", "summary_lines": 50},
        "atop": {"log_path": "/var/log/atop", "top_n": 5, "thresholds": {"cpu": 90.0}},
    }


@pytest.fixture
def config_file(temp_dir, sample_config_data):
    """Write the sample configuration to a TOML file."""
    path = temp_dir / "config.toml"
    with open(path, "w") as f:
        toml.dump(sample_config_data, f)
    return path


@pytest.fixture
def audit_config(temp_dir):
    """Configuration with artifacts under the temporary directory."""
    return make_config(audit_dir=temp_dir / "audit")


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Reset the global configuration state after each test."""
    yield
    manager.reset_config_path()
