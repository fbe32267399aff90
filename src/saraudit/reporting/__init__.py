"""
Report rendering and run artifacts.
"""

from .artifacts import (
    create_archive,
    dump_candidates,
    export_artifacts,
    write_summary,
)
from .renderer import ReportRenderer, render_report

__all__ = [
    "create_archive",
    "dump_candidates",
    "export_artifacts",
    "write_summary",
    "ReportRenderer",
    "render_report",
]
