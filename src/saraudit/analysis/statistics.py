"""
Means and nearest-rank percentiles over metric series.

Nearest-rank is used instead of interpolation so that every percentile is an
observed sample value. Empty series yield None ("no data") instead of
dividing by zero.
"""

import math
from typing import Iterable, List, Optional, Sequence


def mean(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


def percentile(values: Iterable[float], p: float) -> Optional[float]:
    """
    Nearest-rank percentile.

    Args:
        values: Observed values, in any order
        p: Fraction in (0, 1]

    Returns:
        The value at 1-based rank ceil(p * n) of the ascending sort, or
        None for an empty series

    Raises:
        ValueError: If p is outside (0, 1]
    """
    if not 0 < p <= 1:
        raise ValueError(f"percentile fraction must be in (0, 1], got {p}")
    ordered = sorted(values)
    n = len(ordered)
    if n == 0:
        return None
    # Rounding guards against float noise such as 0.07 * 100 = 7.000000000000001.
    rank = math.ceil(round(p * n, 9))
    rank = min(max(rank, 1), n)
    return ordered[rank - 1]


class MetricSeries:
    """
    Values of one (subsystem, resource, field) triple for one file section.
    """

    def __init__(self, name: str = "", values: Optional[Iterable[float]] = None):
        self.name = name
        self.values: List[float] = list(values) if values is not None else []

    def append(self, value: Optional[float]) -> None:
        # Absent fields are not fabricated as zeros.
        if value is not None:
            self.values.append(value)

    def __len__(self) -> int:
        return len(self.values)

    def __bool__(self) -> bool:
        return bool(self.values)

    def mean(self) -> Optional[float]:
        return mean(self.values)

    def percentile(self, p: float) -> Optional[float]:
        return percentile(self.values, p)

    def max(self) -> Optional[float]:
        return max(self.values) if self.values else None

    def __repr__(self) -> str:
        return f"MetricSeries({self.name!r}, n={len(self.values)})"
