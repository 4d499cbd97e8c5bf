"""
Keyed cache of match scores, invalidated explicitly when a volunteer or
event record changes.
"""
from __future__ import annotations
from typing import Callable, Dict, Optional, Tuple

from engines.matching_engine import MatchScore

Key = Tuple[str, str]  # (volunteer_id, event_id)


class ScoreCache:
    def __init__(self):
        self._scores: Dict[Key, MatchScore] = {}
        self.hits = 0
        self.misses = 0

    def get(self, volunteer_id: str, event_id: str) -> Optional[MatchScore]:
        return self._scores.get((volunteer_id, event_id))

    def get_or_compute(
        self, volunteer_id: str, event_id: str, compute: Callable[[], MatchScore]
    ) -> MatchScore:
        key = (volunteer_id, event_id)
        cached = self._scores.get(key)
        if cached is not None:
            self.hits += 1
            return cached
        self.misses += 1
        score = compute()
        self._scores[key] = score
        return score

    def invalidate_volunteer(self, volunteer_id: str) -> None:
        for key in [k for k in self._scores if k[0] == volunteer_id]:
            del self._scores[key]

    def invalidate_event(self, event_id: str) -> None:
        for key in [k for k in self._scores if k[1] == event_id]:
            del self._scores[key]

    def clear(self) -> None:
        self._scores.clear()

    def __len__(self) -> int:
        return len(self._scores)
