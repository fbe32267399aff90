"""
Bounded top-K ranking of candidates.

Order is score descending, then timestamp ascending so that earlier anomalies
surface first among equal severity. Full ties keep insertion order.
"""

import bisect
from typing import Dict, Iterable, List, Optional

from ..models.telemetry import Candidate, Subsystem


class TopList:
    """
    Sorted list holding at most `capacity` candidates.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"TopList capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._items: List[Candidate] = []
        self.offered = 0

    def offer(self, candidate: Candidate) -> bool:
        """
        Insert a candidate, dropping the worst-ranked one beyond capacity.

        Returns:
            True if the candidate is in the list after insertion
        """
        self.offered += 1
        # insort_right keeps earlier arrivals ahead on identical keys
        position = bisect.bisect_right(
            [item.rank_key for item in self._items], candidate.rank_key
        )
        if position >= self.capacity:
            return False
        self._items.insert(position, candidate)
        del self._items[self.capacity:]
        return True

    def extend(self, candidates: Iterable[Candidate]) -> None:
        for candidate in candidates:
            self.offer(candidate)

    def items(self) -> List[Candidate]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items))


def merge_top_lists(lists: Iterable[Iterable[Candidate]], capacity: int) -> List[Candidate]:
    """
    Merge already-scored candidates from several lists and re-rank them.

    This is a pure merge-and-resort: scores are never recomputed.
    """
    merged = TopList(capacity)
    for candidates in lists:
        merged.extend(candidates)
    return merged.items()


class Ranker:
    """
    Feeds every candidate into its subsystem list and the global list.
    """

    def __init__(self, capacity: int):
        self.capacity = capacity
        self.subsystem_lists: Dict[Subsystem, TopList] = {
            subsystem: TopList(capacity) for subsystem in Subsystem
        }
        self.global_list = TopList(capacity)

    def offer(self, candidate: Optional[Candidate]) -> bool:
        """Offer a candidate; None (score 0) is ignored."""
        if candidate is None:
            return False
        if candidate.subsystem is None:
            raise ValueError(f"Candidate without subsystem: {candidate.description}")
        self.subsystem_lists[candidate.subsystem].offer(candidate)
        self.global_list.offer(candidate)
        return True

    @property
    def total_offered(self) -> int:
        return self.global_list.offered

    def top(self, subsystem: Subsystem) -> List[Candidate]:
        return self.subsystem_lists[subsystem].items()

    def top_lists(self) -> Dict[Subsystem, List[Candidate]]:
        return {subsystem: top.items() for subsystem, top in self.subsystem_lists.items()}

    def global_top(self) -> List[Candidate]:
        return self.global_list.items()
