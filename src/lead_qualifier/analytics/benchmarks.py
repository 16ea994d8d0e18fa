"""Population statistics over current lead scores."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Sequence

from ..core.stages import QualificationStage, stage_for_score

logger = logging.getLogger(__name__)

HISTOGRAM_BINS = [0, 10, 20, 30, 40, 50, 60, 70, 80, 90, 100]


@dataclass
class Benchmark:
    """Point-in-time snapshot of the score distribution."""

    average: float
    median: float
    p25: float
    p75: float
    count: int = 0
    computed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "average": self.average,
            "median": self.median,
            "p25": self.p25,
            "p75": self.p75,
            "count": self.count,
            "computed_at": self.computed_at.isoformat(),
        }


# Reported when no lead has been scored yet
DEFAULT_BENCHMARK = Benchmark(average=50.0, median=50.0, p25=25.0, p75=75.0, count=0)


class BenchmarkTracker:
    """Computes benchmarks from whatever totals exist when asked.

    Takes no locks against concurrent scoring; a snapshot may miss scores
    that land while it is being computed.
    """

    def compute(self, totals: Iterable[float]) -> Benchmark:
        scores = sorted(totals)
        if not scores:
            return Benchmark(
                average=DEFAULT_BENCHMARK.average,
                median=DEFAULT_BENCHMARK.median,
                p25=DEFAULT_BENCHMARK.p25,
                p75=DEFAULT_BENCHMARK.p75,
            )

        n = len(scores)
        benchmark = Benchmark(
            average=round(sum(scores) / n, 2),
            median=scores[n // 2],
            p25=scores[int(n * 0.25)],
            p75=scores[int(n * 0.75)],
            count=n,
        )
        logger.debug(f"Benchmarks over {n} leads: avg {benchmark.average}")
        return benchmark


def score_distribution(totals: Iterable[float]) -> List[Dict[str, Any]]:
    """Histogram of scores in 10-point bins; 100 falls in the last bin."""
    scores = list(totals)
    bins = []
    for i, low in enumerate(HISTOGRAM_BINS[:-1]):
        high = HISTOGRAM_BINS[i + 1]
        last = high == HISTOGRAM_BINS[-1]
        count = sum(1 for s in scores if low <= s < high or (last and s == high))
        bins.append({"label": f"{low}-{high}", "min": low, "max": high, "count": count})
    return bins


def stage_funnel(
    totals: Iterable[float],
    stages: Sequence[QualificationStage],
) -> List[Dict[str, Any]]:
    """Count of leads per stage, in stage order."""
    counts = {stage.id: 0 for stage in stages}
    for score in totals:
        counts[stage_for_score(score, stages).id] += 1

    total = sum(counts.values()) or 1
    return [
        {
            "stage": stage.id,
            "name": stage.name,
            "count": counts[stage.id],
            "percentage": round(counts[stage.id] / total * 100, 1),
        }
        for stage in stages
    ]
