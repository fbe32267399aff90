"""
Time-of-day window filtering of decoded rows.

The decoder emits ISO timestamps with zero-padded HH:MM:SS, so the
time-of-day substring compares correctly as text. The date part is ignored:
a file that spans midnight is windowed independently on each day.
"""

from typing import Iterable, Iterator, List, Optional, Sequence

from ..models.telemetry import Window

TIMESTAMP_COLUMN = "timestamp"


def timestamp_time_of_day(timestamp: str) -> Optional[str]:
    """
    Extract "HH:MM:SS" from "YYYY-MM-DD HH:MM:SS[ TZ]" or a bare "HH:MM:SS".

    Returns None when the value is not a timestamp (restart markers, junk).
    """
    ts = timestamp.strip()
    if len(ts) >= 19 and ts[10] in " T" and ts[13] == ":" and ts[16] == ":":
        return ts[11:19]
    if len(ts) == 8 and ts[2] == ":" and ts[5] == ":":
        return ts
    return None


def timestamp_column(header: Sequence[str]) -> int:
    """Position of the timestamp column, or 0 when the header has none."""
    try:
        return list(header).index(TIMESTAMP_COLUMN)
    except ValueError:
        return 0


def filter_window(rows: Iterable[List[str]], window: Window) -> Iterator[List[str]]:
    """
    Pass the header row through, then only rows inside [start, end).

    Args:
        rows: Header row followed by data rows
        window: Time-of-day window

    Yields:
        The header unconditionally, then matching data rows in input order
    """
    rows = iter(rows)
    header = next(rows, None)
    if header is None:
        return
    yield header

    ts_idx = timestamp_column(header)
    for row in rows:
        if ts_idx >= len(row):
            continue
        time_of_day = timestamp_time_of_day(row[ts_idx])
        if time_of_day is not None and window.contains(time_of_day):
            yield row
