"""
Data models for the audit pipeline.

Configuration Models:
- Analysis window, source, report, threshold and output settings

Telemetry Models:
- Report types, decoded tables, samples and scored candidates

Result Models:
- Per-subsystem summaries, per-file analyses and the run results

All models are dataclasses with type hints.
"""

from .config import (
    AtopConfig,
    AuditConfig,
    OutputConfig,
    ReportConfig,
    SourceConfig,
    Thresholds,
)
from .results import (
    AuditResults,
    CpuSummary,
    DiskDeviceSummary,
    FileAnalysis,
    InterfaceSummary,
    InventoryBlock,
    MemorySummary,
    NetworkStackSummary,
    NetworkSummary,
    SectionResult,
)
from .telemetry import (
    Candidate,
    ReportType,
    Sample,
    Subsystem,
    TelemetryTable,
    Window,
)

__all__ = [
    # Configuration
    "AtopConfig",
    "AuditConfig",
    "OutputConfig",
    "ReportConfig",
    "SourceConfig",
    "Thresholds",
    # Telemetry
    "Candidate",
    "ReportType",
    "Sample",
    "Subsystem",
    "TelemetryTable",
    "Window",
    # Results
    "AuditResults",
    "CpuSummary",
    "DiskDeviceSummary",
    "FileAnalysis",
    "InterfaceSummary",
    "InventoryBlock",
    "MemorySummary",
    "NetworkStackSummary",
    "NetworkSummary",
    "SectionResult",
]
