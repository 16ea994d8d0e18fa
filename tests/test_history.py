"""Tests for score history and trends."""

import threading

import pytest
from lead_qualifier.core.history import ScoreHistoryStore, score_trend
from lead_qualifier.core.scorer import ScoreRecord


def make_record(lead_id: str, total: float) -> ScoreRecord:
    return ScoreRecord(lead_id=lead_id, total=total, breakdown={}, contributions={})


class TestScoreHistoryStore:
    """Tests for the bounded per-lead history."""

    def test_unknown_lead(self):
        store = ScoreHistoryStore()
        assert store.records("nobody") == []
        assert store.latest("nobody") is None
        assert store.trend("nobody") == "stable"

    def test_oldest_evicted_at_limit(self):
        store = ScoreHistoryStore(limit=50)
        for i in range(55):
            store.append(make_record("1", i))
        records = store.records("1")
        assert len(records) == 50
        assert records[0].total == 5
        assert store.latest("1").total == 54

    def test_leads_kept_separate(self):
        store = ScoreHistoryStore()
        store.append(make_record("a", 10))
        store.append(make_record("b", 20))
        assert [r.total for r in store.records("a")] == [10]
        assert sorted(store.lead_ids()) == ["a", "b"]

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            ScoreHistoryStore(limit=0)

    def test_concurrent_appends_same_lead(self):
        store = ScoreHistoryStore(limit=1000)

        def worker():
            for i in range(100):
                store.append(make_record("shared", i))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(store.records("shared")) == 800

    def test_trend_from_records(self):
        store = ScoreHistoryStore()
        for total in [20, 20, 20, 20, 20, 60, 60, 60, 60, 60]:
            store.append(make_record("1", total))
        assert store.trend("1") == "improving"


class TestScoreTrend:
    """Tests for trend detection."""

    def test_five_or_fewer_is_stable(self):
        assert score_trend([10, 90, 10, 90, 10]) == "stable"

    def test_improving(self):
        assert score_trend([40, 40, 40, 40, 40, 50, 50, 50, 50, 50]) == "improving"

    def test_declining(self):
        assert score_trend([70, 70, 70, 70, 70, 60, 60, 60, 60, 60]) == "declining"

    def test_within_threshold(self):
        assert score_trend([50, 50, 50, 50, 50, 54, 54, 54, 54, 54]) == "stable"

    def test_short_previous_window(self):
        """With six records the previous window is a single score."""
        assert score_trend([10, 30, 30, 30, 30, 30]) == "improving"
