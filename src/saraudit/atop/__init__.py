"""
atop per-process aggregator: hourly and daily top-N commands per metric.
"""

from .aggregator import AtopAggregator, MetricReport, parse_top_line
from .report import AtopAudit, AtopResults, render_atop_report
from .source import METRICS, AtopsarSource, find_atop_logs

__all__ = [
    "AtopAggregator",
    "MetricReport",
    "parse_top_line",
    "AtopAudit",
    "AtopResults",
    "render_atop_report",
    "METRICS",
    "AtopsarSource",
    "find_atop_logs",
]
