"""
Statistics, anomaly scoring, top-K ranking and the per-run analysis pipeline.
"""

from .pipeline import NO_FILES_NOTICE, AuditRun
from .ranking import Ranker, TopList, merge_top_lists
from .scoring import AnomalyScorer
from .sections import FileSectionAnalyzer, no_data_reason
from .statistics import MetricSeries, mean, percentile

__all__ = [
    "NO_FILES_NOTICE",
    "AuditRun",
    "Ranker",
    "TopList",
    "merge_top_lists",
    "AnomalyScorer",
    "FileSectionAnalyzer",
    "no_data_reason",
    "MetricSeries",
    "mean",
    "percentile",
]
