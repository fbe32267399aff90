"""
Per-process aggregation of atopsar top-process reports.

Each top-process line ("HH:MM:SS pid cmd value | pid cmd value | ...") is
split into (metric, hour, command, value) records. Sums per hour and per day
are computed with polars, ranked by sum descending and command name.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

import polars as pl

from ..analysis.statistics import percentile

logger = logging.getLogger(__name__)

_TIME_PREFIX = re.compile(r"^\d{2}:\d{2}:\d{2}")
_RECORD_SEPARATOR = re.compile(r"\s+\|\s+")
_NON_NUMERIC = re.compile(r"[^0-9.]")

RECORD_SCHEMA = {
    "metric": pl.Utf8,
    "hour": pl.Utf8,
    "command": pl.Utf8,
    "value": pl.Float64,
}

Record = Tuple[str, str, str, float]


def parse_value(text: str) -> float:
    cleaned = _NON_NUMERIC.sub("", text)
    try:
        return float(cleaned) if cleaned else 0.0
    except ValueError:
        return 0.0


def parse_top_line(metric: str, line: str) -> List[Record]:
    """
    Parse one top-process line into records.

    Lines without a leading HH:MM:SS are ignored. Entries with fewer than
    three tokens (pid, command, value) or a non-numeric pid, as in the column
    header line, are skipped; commands may contain spaces.
    """
    if not _TIME_PREFIX.match(line):
        return []
    hour = line[:2]
    records: List[Record] = []
    for entry in _RECORD_SEPARATOR.split(line[9:]):
        tokens = entry.split()
        if len(tokens) < 3 or not tokens[0].isdigit():
            continue
        command = " ".join(tokens[1:-1])
        records.append((metric, hour, command, parse_value(tokens[-1])))
    return records


@dataclass
class MetricReport:
    """Aggregated view of one metric over all parsed logs."""

    metric: str
    threshold: float
    hourly_top: Dict[str, List[Tuple[str, float]]] = field(default_factory=dict)
    daily_top: List[Tuple[str, float]] = field(default_factory=list)
    top1_p95: Optional[float] = None
    top1_p99: Optional[float] = None
    # (hour, command, sum) where the hourly top-1 sum exceeds the threshold
    spikes: List[Tuple[str, str, float]] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return bool(self.daily_top)


class AtopAggregator:
    """
    Collects records from any number of logs and ranks them per metric.
    """

    def __init__(self, top_n: int = 20, thresholds: Optional[Dict[str, float]] = None):
        self.top_n = top_n
        self.thresholds = dict(thresholds or {})
        self._records: List[Record] = []

    def add_output(self, metric: str, text: str) -> int:
        """Parse atopsar output of one metric; returns the record count."""
        before = len(self._records)
        for line in text.splitlines():
            self._records.extend(parse_top_line(metric, line))
        added = len(self._records) - before
        logger.debug(f"atop {metric}: {added} records")
        return added

    def add_records(self, records: Iterable[Record]) -> None:
        self._records.extend(records)

    def frame(self) -> pl.DataFrame:
        return pl.DataFrame(self._records, schema=RECORD_SCHEMA, orient="row")

    def hourly_sums(self) -> pl.DataFrame:
        """Ranked (metric, hour, command, sum), best first within each hour."""
        return (
            self.frame()
            .group_by(["metric", "hour", "command"])
            .agg(pl.col("value").sum().alias("sum"))
            .sort(["metric", "hour", "sum", "command"], descending=[False, False, True, False])
        )

    def daily_sums(self) -> pl.DataFrame:
        """Ranked (metric, command, sum) over the whole period."""
        return (
            self.frame()
            .group_by(["metric", "command"])
            .agg(pl.col("value").sum().alias("sum"))
            .sort(["metric", "sum", "command"], descending=[False, True, False])
        )

    def metric_report(self, metric: str) -> MetricReport:
        report = MetricReport(metric=metric, threshold=self.thresholds.get(metric, 0.0))

        hourly = self.hourly_sums().filter(pl.col("metric") == metric)
        for (hour,), group in hourly.group_by(["hour"], maintain_order=True):
            rows = group.head(self.top_n)
            report.hourly_top[hour] = list(zip(rows["command"].to_list(), rows["sum"].to_list()))

        daily = self.daily_sums().filter(pl.col("metric") == metric).head(self.top_n)
        report.daily_top = list(zip(daily["command"].to_list(), daily["sum"].to_list()))

        top1 = [(hour, entries[0][0], entries[0][1]) for hour, entries in report.hourly_top.items()]
        sums = [value for _, _, value in top1]
        if sums:
            report.top1_p95 = percentile(sums, 0.95)
            report.top1_p99 = percentile(sums, 0.99)
        report.spikes = [entry for entry in top1 if entry[2] > report.threshold]
        return report

    def hourly_frames(self) -> Dict[Tuple[str, str], pl.DataFrame]:
        """Top-N rank/command/sum frame per (metric, hour), for CSV export."""
        frames = {}
        for (metric, hour), group in self.hourly_sums().group_by(["metric", "hour"], maintain_order=True):
            frames[(metric, hour)] = _ranked(group.head(self.top_n))
        return frames

    def daily_frames(self) -> Dict[str, pl.DataFrame]:
        frames = {}
        for (metric,), group in self.daily_sums().group_by(["metric"], maintain_order=True):
            frames[metric] = _ranked(group.head(self.top_n))
        return frames


def _ranked(group: pl.DataFrame) -> pl.DataFrame:
    return group.select(
        pl.int_range(1, pl.len() + 1).alias("rank"),
        pl.col("command").alias("cmd"),
        pl.col("sum").round(2),
    )
