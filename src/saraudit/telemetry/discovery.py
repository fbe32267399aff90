"""
Activity file discovery.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, List, Tuple

logger = logging.getLogger(__name__)

SA_FILE_PATTERN = "sa[0-9]*"


def find_activity_files(
    directories: Iterable[Path], max_files: int, pattern: str = SA_FILE_PATTERN
) -> List[Path]:
    """
    Return up to max_files most recently modified activity files.

    Missing directories and unreadable entries are skipped silently; an
    empty result is a valid outcome, not an error.

    Args:
        directories: Directories to scan (not recursive)
        max_files: Maximum number of files returned
        pattern: Glob pattern of activity file names

    Returns:
        Paths ordered by modification time, newest first
    """
    found: List[Tuple[float, str, Path]] = []
    seen = set()
    for directory in directories:
        directory = Path(directory)
        if not directory.is_dir():
            logger.debug(f"Activity directory not present: {directory}")
            continue
        for path in directory.glob(pattern):
            try:
                if not path.is_file() or not os.access(path, os.R_OK):
                    continue
                resolved = path.resolve()
                if resolved in seen:
                    continue
                mtime = path.stat().st_mtime
            except OSError as e:
                logger.debug(f"Skipping unreadable entry {path}: {e}")
                continue
            seen.add(resolved)
            found.append((mtime, path.name, path))

    found.sort(key=lambda item: (-item[0], item[1]))
    files = [path for _, _, path in found[:max_files]]
    logger.info(f"Found {len(found)} activity files, analyzing {len(files)}")
    return files
