"""
Telemetry input: activity file discovery, decoding, window filtering and
header-driven extraction of samples.
"""

from .base import TelemetrySource, build_table, iter_decoder_rows
from .discovery import find_activity_files
from .extractor import (
    DECLARED_COLUMNS,
    MetricExtractor,
    aggregate_cpu_samples,
    estimate_ifutil,
    group_by_resource,
    has_native_ifutil,
    parse_number,
)
from .sadf_source import SAR_ARGS, SadfTelemetrySource
from .window import filter_window, timestamp_time_of_day

__all__ = [
    "TelemetrySource",
    "build_table",
    "iter_decoder_rows",
    "find_activity_files",
    "DECLARED_COLUMNS",
    "MetricExtractor",
    "aggregate_cpu_samples",
    "estimate_ifutil",
    "group_by_resource",
    "has_native_ifutil",
    "parse_number",
    "SAR_ARGS",
    "SadfTelemetrySource",
    "filter_window",
    "timestamp_time_of_day",
]
