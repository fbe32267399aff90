"""
Telemetry source backed by the sysstat `sadf` decoder.

`sadf -d` exports a binary sa[NN] file as semicolon-separated text with a
"# hostname;interval;timestamp;..." header line. One invocation is made per
(file, report type); any failure only marks that report as absent.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..models.config import DEFAULT_DECODER_TIMEOUT
from ..models.telemetry import ReportType
from ..system.commands import check_sadf_installed, run_command
from .base import TelemetrySource

logger = logging.getLogger(__name__)

SADF_OPTIONS: Tuple[str, ...] = ("-d",)

# sar arguments selecting each report type.
SAR_ARGS: Dict[ReportType, Tuple[str, ...]] = {
    ReportType.CPU: ("-u",),
    ReportType.RUN_QUEUE: ("-q",),
    ReportType.CONTEXT_SWITCH: ("-w",),
    ReportType.MEMORY: ("-r",),
    ReportType.SWAP: ("-S",),
    ReportType.PAGING: ("-B",),
    ReportType.DISK: ("-d",),
    ReportType.NET_DEVICE: ("-n", "DEV"),
    ReportType.NET_ERROR: ("-n", "EDEV"),
    ReportType.SOCKET: ("-n", "SOCK"),
    ReportType.TCP: ("-n", "TCP"),
    ReportType.IP: ("-n", "IP"),
}


def sar_arguments(report_type: ReportType) -> Tuple[str, ...]:
    return SAR_ARGS[report_type]


class SadfTelemetrySource(TelemetrySource):
    """
    Reads activity files through `sadf -d <file> -- <sar args>`.

    Attributes:
        timeout: Seconds allowed per decoder invocation; a timeout is
                 treated as absent data.
        binary: Decoder executable name or path.
    """

    name = "sadf"

    def __init__(self, timeout: float = DEFAULT_DECODER_TIMEOUT, binary: str = "sadf"):
        self.timeout = timeout
        self.binary = binary

    def is_available(self) -> bool:
        return check_sadf_installed() if self.binary == "sadf" else Path(self.binary).exists()

    def build_command(self, path: Path, report_type: ReportType) -> List[str]:
        return [self.binary, *SADF_OPTIONS, str(path), "--", *sar_arguments(report_type)]

    def read_report(self, path: Path, report_type: ReportType) -> Optional[str]:
        command = self.build_command(path, report_type)
        code, stdout, stderr = run_command(command, timeout=self.timeout)
        if code != 0:
            logger.info(
                f"sadf could not produce {report_type.value} for {path} (rc={code}): "
                f"{stderr.strip()[:200]}"
            )
            return None
        return stdout
