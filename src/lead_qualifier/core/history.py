"""Bounded per-lead score history and trend detection."""

import threading
from collections import deque
from typing import Deque, Dict, List, Optional

from .scorer import ScoreRecord

DEFAULT_HISTORY_LIMIT = 50
TREND_WINDOW = 5
TREND_THRESHOLD = 5.0


class ScoreHistoryStore:
    """Keeps the most recent score records for each lead.

    Appends for the same lead are serialized on that lead's lock; the oldest
    record is dropped once the limit is reached.
    """

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT):
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self.limit = limit
        self._history: Dict[str, Deque[ScoreRecord]] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()

    def lock_for(self, lead_id: str) -> threading.RLock:
        """The lock that serializes writes for one lead."""
        with self._registry_lock:
            lock = self._locks.get(lead_id)
            if lock is None:
                lock = self._locks[lead_id] = threading.RLock()
                self._history[lead_id] = deque(maxlen=self.limit)
            return lock

    def append(self, record: ScoreRecord):
        with self.lock_for(record.lead_id):
            self._history[record.lead_id].append(record)

    def records(self, lead_id: str) -> List[ScoreRecord]:
        """History for a lead, oldest first."""
        with self._registry_lock:
            lock = self._locks.get(lead_id)
        if lock is None:
            return []
        with lock:
            return list(self._history[lead_id])

    def latest(self, lead_id: str) -> Optional[ScoreRecord]:
        records = self.records(lead_id)
        return records[-1] if records else None

    def lead_ids(self) -> List[str]:
        with self._registry_lock:
            return list(self._history)

    def trend(self, lead_id: str) -> str:
        return score_trend([r.total for r in self.records(lead_id)])


def score_trend(totals: List[float], window: int = TREND_WINDOW,
                threshold: float = TREND_THRESHOLD) -> str:
    """Compare the mean of the latest window to the window before it."""
    if len(totals) <= window:
        return "stable"
    recent = totals[-window:]
    previous = totals[-2 * window:-window]
    avg_recent = sum(recent) / len(recent)
    avg_previous = sum(previous) / len(previous)

    if avg_recent > avg_previous + threshold:
        return "improving"
    if avg_recent < avg_previous - threshold:
        return "declining"
    return "stable"
