"""
atop audit run and text report.
"""

import logging
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from ..models.config import AuditConfig
from ..reporting.artifacts import create_archive
from ..validation import SourceUnavailableError
from .aggregator import AtopAggregator, MetricReport
from .source import METRICS, AtopsarSource, day_label, find_atop_logs

logger = logging.getLogger(__name__)

ATOP_SUMMARY_NAME = "atop_summary.log"
ATOP_ARCHIVE_NAME = "atop.tgz"
DAILY_PREVIEW_ROWS = 10


@dataclass
class AtopResults:
    window_label: str
    logs: List[Path] = field(default_factory=list)
    metrics: Dict[str, MetricReport] = field(default_factory=dict)
    notices: List[str] = field(default_factory=list)


class AtopAudit:
    """
    Decodes every atop log for every metric and aggregates the records.
    """

    def __init__(self, config: AuditConfig, source: Optional[AtopsarSource] = None):
        self.config = config
        self.source = source or AtopsarSource(timeout=config.source.decoder_timeout)
        self.aggregator = AtopAggregator(config.atop.top_n, config.atop.thresholds)

    def run(self, logs: Optional[List[Path]] = None) -> AtopResults:
        window = self.config.window
        results = AtopResults(window_label="full day" if window.is_full_day else window.label)

        if not self.source.is_available():
            error = SourceUnavailableError("atopsar is not available; install atop", decoder="atopsar")
            logger.warning(str(error))
            results.notices.append(str(error))
            return results

        results.logs = find_atop_logs(self.config.atop.log_path) if logs is None else list(logs)
        if not results.logs:
            results.notices.append(f"No atop logs found in {self.config.atop.log_path}.")
            return results

        for path in results.logs:
            logger.info(f"Processing day {day_label(path)} ({path})")
            for metric in METRICS:
                output = self.source.read_metric(path, metric, window)
                if output is not None:
                    self.aggregator.add_output(metric, output)

        for metric in METRICS:
            results.metrics[metric] = self.aggregator.metric_report(metric)
            if not results.metrics[metric].has_data:
                results.notices.append(f"no data for metric {metric}")
        return results

    def write_artifacts(self, results: AtopResults, report_text: str) -> Optional[Path]:
        """Write the summary copy and archive the hourly/daily CSV tables."""
        output = self.config.output
        if output.write_summary:
            summary = output.audit_dir.expanduser() / ATOP_SUMMARY_NAME
            summary.parent.mkdir(parents=True, exist_ok=True)
            summary.write_text(report_text, encoding="utf-8")
            logger.info(f"Wrote short summary to {summary}")

        if not output.create_archive:
            return None
        with tempfile.TemporaryDirectory(prefix="atop-audit-") as workdir:
            work = Path(workdir)
            for (metric, hour), frame in self.aggregator.hourly_frames().items():
                frame.write_csv(work / f"HOURLY_{metric}_hour{hour}.csv")
            for metric, frame in self.aggregator.daily_frames().items():
                frame.write_csv(work / f"DAILY_{metric}.csv")
            (work / "REPORT.txt").write_text(report_text, encoding="utf-8")
            return create_archive(work, output.audit_dir / ATOP_ARCHIVE_NAME)


def _top_lines(entries, limit: Optional[int] = None) -> List[str]:
    lines = ["rank,cmd,sum"]
    for rank, (command, total) in enumerate(entries[:limit] if limit else entries, start=1):
        lines.append(f"{rank:2d},{command},{total:.2f}")
    return lines


def render_atop_report(results: AtopResults, top_n: int) -> str:
    lines = [
        "ATOP AUDIT REPORT",
        f"Window: {results.window_label}",
        f"Generated: {datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')}",
        "",
    ]
    lines.extend(results.notices)
    if results.notices:
        lines.append("")
    if not results.metrics:
        lines.append("Done.")
        return "\n".join(lines) + "\n"

    lines.append(f"===== TOP-{top_n} BY HOUR =====")
    for metric, report in results.metrics.items():
        if not report.hourly_top:
            lines.append(f"### Metric: {metric}")
            lines.append("(no data)")
            lines.append("")
            continue
        for hour, entries in report.hourly_top.items():
            lines.append(f"### Metric: {metric}, hour {hour}")
            lines.extend(_top_lines(entries))
            lines.append("")

    lines.append(f"===== TOP-{top_n} BY DAY =====")
    for metric, report in results.metrics.items():
        lines.append(f"### Metric: {metric}")
        lines.extend(_top_lines(report.daily_top) if report.daily_top else ["(no data)"])
        lines.append("")

    lines.append("===== DETAILED SUMMARY =====")
    for metric, report in results.metrics.items():
        lines.append(f"== Metric: {metric} ==")
        if not report.has_data:
            lines.append("(no data)")
            lines.append("")
            continue
        lines.append("Top entries by total (daily aggregation):")
        lines.extend(_top_lines(report.daily_top, DAILY_PREVIEW_ROWS)[1:])
        lines.append(
            f"Top-1 hourly sum percentiles: 95% = {report.top1_p95:.2f}, 99% = {report.top1_p99:.2f}"
        )
        if report.spikes:
            lines.append(f"Hours with top-1 > {report.threshold:g}:")
            lines.extend(f"  hour {hour}: {command} {total:.2f}" for hour, command, total in report.spikes)
        else:
            lines.append(f"No hourly spikes > {report.threshold:g} found for {metric}.")
        lines.append("")

    lines.append("Done.")
    return "\n".join(lines) + "\n"
