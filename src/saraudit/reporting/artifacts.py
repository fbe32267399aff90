"""
Durable run artifacts: the compact summary file and the archive of ranked
candidate dumps.

The dumps are written with polars into a process-private temporary work
directory, packed into a tar.gz whose member count is verified against the
source files, and the work directory is removed when the run ends.
"""

import logging
import os
import tarfile
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import polars as pl

from ..analysis.ranking import merge_top_lists
from ..models.results import AuditResults
from ..models.telemetry import Candidate, Subsystem

logger = logging.getLogger(__name__)

# File stems of the per-subsystem dumps inside the archive.
DUMP_NAMES: Dict[Subsystem, str] = {
    Subsystem.CPU: "top_cpu",
    Subsystem.MEMORY: "top_mem",
    Subsystem.DISK: "top_disk",
    Subsystem.NET_DEVICE: "top_netload",
    Subsystem.NET_ERROR: "top_neterr",
    Subsystem.SOCKET: "top_sock",
    Subsystem.TCP: "top_tcp",
    Subsystem.IP: "top_ip",
}
GLOBAL_DUMP_NAME = "top_all"

# Web server logs never belong in an audit archive.
ARCHIVE_EXCLUDES = ("access", "error")

CANDIDATE_SCHEMA = {
    "score": pl.Int64,
    "timestamp": pl.Utf8,
    "subsystem": pl.Utf8,
    "description": pl.Utf8,
}


def write_summary(path: Path, candidates: Sequence[Candidate], max_lines: int) -> Path:
    """
    Write the first max_lines ranked candidates as "score;timestamp;description".

    An empty ranking still produces a file with a dated comment line, so
    downstream consumers can tell "nothing found" from "not run".
    """
    path = Path(path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [candidate.to_line() for candidate in candidates[:max_lines]]
    if not lines:
        lines = [f"# sar summary: {datetime.now(timezone.utc).isoformat(timespec='seconds')}"]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    logger.info(f"Wrote short summary to {path}")
    return path


def candidates_frame(candidates: Iterable[Candidate]) -> pl.DataFrame:
    """Tabulate candidates in rank order."""
    rows = [
        {
            "score": c.score,
            "timestamp": c.timestamp,
            "subsystem": c.subsystem.value if c.subsystem else "",
            "description": c.description,
        }
        for c in candidates
    ]
    return pl.DataFrame(rows, schema=CANDIDATE_SCHEMA)


def dump_candidates(results: AuditResults, workdir: Path) -> List[Path]:
    """
    Write one semicolon-separated CSV per subsystem list plus the merged list.

    Returns:
        The written files
    """
    workdir = Path(workdir)
    written = []
    targets = [(DUMP_NAMES[s], results.top_lists.get(s, [])) for s in Subsystem]
    targets.append((GLOBAL_DUMP_NAME, results.global_top))
    for stem, candidates in targets:
        path = workdir / f"{stem}.csv"
        candidates_frame(candidates).write_csv(path, separator=";")
        written.append(path)
    logger.debug(f"Dumped {len(written)} candidate files to {workdir}")
    return written


def _is_excluded(name: str) -> bool:
    lowered = name.lower()
    return any(pattern in lowered for pattern in ARCHIVE_EXCLUDES)


def create_archive(workdir: Path, archive_path: Path) -> Optional[Path]:
    """
    Pack workdir into a tar.gz and verify the archived file count.

    The archive is built next to its destination and moved into place only
    after verification. Files whose names contain "access" or "error" are
    left out.

    Returns:
        The archive path, or None when there was nothing to archive or the
        verification failed
    """
    workdir = Path(workdir)
    archive_path = Path(archive_path).expanduser()
    if not workdir.is_dir():
        logger.warning(f"Work directory {workdir} does not exist, skipping archive")
        return None

    sources = sorted(
        p for p in workdir.rglob("*") if p.is_file() and not _is_excluded(p.name)
    )
    if not sources:
        logger.info(f"No files under {workdir}; skipping archive creation")
        return None

    archive_path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f"{archive_path.name}.tmp.", dir=archive_path.parent)
    os.close(fd)
    tmp_path = Path(tmp_name)
    try:
        with tarfile.open(tmp_path, "w:gz") as tar:
            for source in sources:
                tar.add(source, arcname=str(Path(".") / source.relative_to(workdir)))
        with tarfile.open(tmp_path, "r:gz") as tar:
            archived = sum(1 for member in tar.getmembers() if member.isfile())
    except (OSError, tarfile.TarError) as e:
        logger.error(f"Failed to create archive from {workdir}: {e}")
        tmp_path.unlink(missing_ok=True)
        return None

    if archived != len(sources):
        logger.error(
            f"Archive verification failed: {archived} archived vs {len(sources)} source files"
        )
        tmp_path.unlink(missing_ok=True)
        return None

    os.replace(tmp_path, archive_path)
    logger.info(f"Archive {archive_path} ({archive_path.stat().st_size} bytes, files={archived})")
    return archive_path


def export_artifacts(
    results: AuditResults,
    summary_path: Optional[Path],
    archive_path: Optional[Path],
    summary_lines: int,
) -> Dict[str, Optional[Path]]:
    """
    Write the summary and the candidate archive of one run.

    Either target may be None to skip it. The temporary work directory is
    removed whether or not archiving succeeds.
    """
    produced: Dict[str, Optional[Path]] = {"summary": None, "archive": None}

    if summary_path is not None:
        # Merged ranking of every retained candidate, not only the global top-K.
        ranking = merge_top_lists(results.top_lists.values(), summary_lines)
        produced["summary"] = write_summary(summary_path, ranking, summary_lines)

    if archive_path is not None:
        with tempfile.TemporaryDirectory(prefix="sar-audit-") as workdir:
            dump_candidates(results, Path(workdir))
            produced["archive"] = create_archive(Path(workdir), archive_path)

    return produced
