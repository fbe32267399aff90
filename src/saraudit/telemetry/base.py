"""
Telemetry source interface and decoder output parsing.

A TelemetrySource is the only boundary that touches external processes.
Everything downstream works on TelemetryTable values, so the analysis can be
tested with fixture streams instead of real activity files.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from ..models.telemetry import ReportType, TelemetryTable, Window
from .window import filter_window

logger = logging.getLogger(__name__)

DELIMITER = ";"
RESTART_MARKER = "LINUX-RESTART"


def iter_decoder_rows(lines: Iterable[str], delimiter: str = DELIMITER) -> Iterator[List[str]]:
    """
    Split header-first delimited decoder output into rows of cells.

    The first line starting with '#' is the header ("# hostname;interval;
    timestamp;..."), yielded with the marker stripped. Lines before it, repeated
    headers, blank lines and restart markers are dropped.
    """
    header_seen = False
    for line in lines:
        line = line.rstrip("\r\n")
        if not line.strip():
            continue
        if line.startswith("#"):
            if not header_seen:
                header_seen = True
                yield [cell.strip() for cell in line.lstrip("#").strip().split(delimiter)]
            continue
        if not header_seen or RESTART_MARKER in line:
            continue
        yield [cell.strip() for cell in line.split(delimiter)]


def build_table(
    lines: Iterable[str], report_type: ReportType, window: Window
) -> Optional[TelemetryTable]:
    """
    Parse decoder output into a window-filtered table.

    Returns:
        The table (possibly with zero data rows), or None when the output
        carries no header at all.
    """
    rows = list(filter_window(iter_decoder_rows(lines), window))
    if not rows:
        return None
    return TelemetryTable(report_type=report_type, header=rows[0], rows=rows[1:])


class TelemetrySource(ABC):
    """
    Abstract reader of one report type from one activity file.

    Subclasses only provide the raw decoder text; parsing and window
    filtering are shared.
    """

    name = "telemetry source"

    def decode(self, path: Path, report_type: ReportType, window: Window) -> Optional[TelemetryTable]:
        """
        Decode one report type of a file, restricted to a window.

        Returns:
            A TelemetryTable, or None when the report is absent for this file
            (decoder failure, unsupported counters, timeout).
        """
        text = self.read_report(path, report_type)
        if text is None:
            return None
        table = build_table(text.splitlines(), report_type, window)
        if table is None:
            logger.debug(f"{self.name}: no header in {report_type.value} output for {path}")
        return table

    def is_available(self) -> bool:
        """Whether the underlying decoder can be used at all on this host."""
        return True

    @abstractmethod
    def read_report(self, path: Path, report_type: ReportType) -> Optional[str]:
        """
        Return the raw delimited decoder output, or None if unavailable.
        """
        pass
