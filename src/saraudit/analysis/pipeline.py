"""
One batch audit run over the newest activity files.

Files are processed one after another: every section of a file is extracted,
scored and ranked before the next file starts. Candidates from all files
flow into one Ranker, which is read once at the end.
"""

import logging
from pathlib import Path
from typing import List, Optional

from ..models.config import AuditConfig
from ..models.results import AuditResults, FileAnalysis
from ..system.commands import get_vcpu_count
from ..system.inventory import collect_inventory
from ..telemetry.base import TelemetrySource
from ..telemetry.discovery import find_activity_files
from ..telemetry.sadf_source import SadfTelemetrySource
from ..validation import SourceUnavailableError
from .ranking import Ranker
from .sections import FileSectionAnalyzer

logger = logging.getLogger(__name__)

NO_FILES_NOTICE = "No sa[NN] files found."


class AuditRun:
    """
    Owns the state of a single analysis run.

    Args:
        config: Immutable run configuration
        source: Telemetry source; defaults to the sadf decoder
        vcpu_count: Logical CPU count; defaults to the configured override,
                    then to the detected count
        files: Explicit activity files; skips directory discovery
    """

    def __init__(
        self,
        config: AuditConfig,
        source: Optional[TelemetrySource] = None,
        vcpu_count: Optional[int] = None,
        files: Optional[List[Path]] = None,
    ):
        self.config = config
        self.source = source or SadfTelemetrySource(timeout=config.source.decoder_timeout)
        self.vcpu_count = vcpu_count or config.vcpu_count or get_vcpu_count()
        self.files = files
        self.ranker = Ranker(config.report.top_n)

    def discover(self) -> List[Path]:
        if self.files is not None:
            return list(self.files)[: self.config.source.max_files]
        return find_activity_files(self.config.source.sa_dirs, self.config.source.max_files)

    def check_source(self) -> None:
        """
        Raises:
            SourceUnavailableError: If the decoder cannot be used on this host
        """
        if not self.source.is_available():
            raise SourceUnavailableError(
                f"{self.source.name} is not available; install sysstat to decode activity files",
                decoder=self.source.name,
            )

    def run(self) -> AuditResults:
        """
        Analyze all selected files and collect the ranked results.

        Source and per-file failures are reported as notices or section
        markers; nothing is raised.
        """
        results = AuditResults(window=self.config.window, top_n=self.config.report.top_n)

        try:
            self.check_source()
        except SourceUnavailableError as e:
            logger.warning(str(e))
            results.notices.append(str(e))
            results.files_found = False
            self._finish(results)
            return results

        files = self.discover()
        if not files:
            results.files_found = False
            results.notices.append(NO_FILES_NOTICE)
            self._finish(results)
            return results

        for path in files:
            logger.info(f"Analyzing {path} in window {self.config.window.label}")
            analyzer = FileSectionAnalyzer(
                path, self.source, self.config, self.ranker, self.vcpu_count
            )
            analysis = FileAnalysis(path=path, sections=analyzer.analyze())
            logger.debug(f"{path}: {analysis.candidate_count} candidates")
            results.files.append(analysis)

        self._finish(results)
        return results

    def _finish(self, results: AuditResults) -> None:
        results.top_lists = self.ranker.top_lists()
        results.global_top = self.ranker.global_top()
        results.total_candidates = self.ranker.total_offered
        if self.config.report.include_inventory:
            results.inventory = collect_inventory()
