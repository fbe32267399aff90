"""
atop raw log discovery and `atopsar` top-process decoding.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

from ..models.config import DEFAULT_DECODER_TIMEOUT
from ..models.telemetry import Window
from ..system.commands import check_atopsar_installed, run_command

logger = logging.getLogger(__name__)

# atopsar flag of the top-process report for each metric.
METRIC_FLAGS: Dict[str, str] = {
    "cpu": "-O",
    "mem": "-G",
    "dsk": "-D",
    "net": "-N",
}
METRICS = tuple(METRIC_FLAGS)
ATOP_LOG_PATTERN = "atop_*"


def find_atop_logs(log_path: Path) -> List[Path]:
    """
    Return readable atop raw logs.

    A file path is used as-is; a directory is scanned for atop_* files.
    """
    log_path = Path(log_path)
    if log_path.is_file():
        if os.access(log_path, os.R_OK):
            return [log_path]
        logger.warning(f"Supplied atop log {log_path} is not readable, skipping")
        return []
    if not log_path.is_dir():
        logger.warning(f"atop log directory {log_path} not found")
        return []
    return sorted(
        p for p in log_path.glob(ATOP_LOG_PATTERN) if p.is_file() and os.access(p, os.R_OK)
    )


def day_label(path: Path) -> str:
    """"atop_20240115" -> "20240115"; other names are kept whole."""
    name = Path(path).name
    return name[len("atop_"):] if name.startswith("atop_") else name


class AtopsarSource:
    """
    Runs `atopsar <flag> -S -r <file> [-b HH:MM -e HH:MM]` per metric.
    """

    name = "atopsar"

    def __init__(self, timeout: float = DEFAULT_DECODER_TIMEOUT):
        self.timeout = timeout

    def is_available(self) -> bool:
        return check_atopsar_installed()

    def build_command(self, path: Path, metric: str, window: Window) -> List[str]:
        command = ["atopsar", METRIC_FLAGS[metric], "-S", "-r", str(path)]
        if not window.is_full_day:
            command += ["-b", window.start[:5], "-e", window.end[:5]]
        return command

    def read_metric(self, path: Path, metric: str, window: Window) -> Optional[str]:
        """Raw top-process output for one metric, or None on failure."""
        code, stdout, stderr = run_command(self.build_command(path, metric, window), timeout=self.timeout)
        if code != 0:
            logger.info(f"atopsar {metric} failed for {path} (rc={code}): {stderr.strip()[:200]}")
            return None
        return stdout
