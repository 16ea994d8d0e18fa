"""Lead scoring and qualification engine.

Ties the pipeline together: evaluate -> aggregate -> predict -> record
history -> update stage. State lives in injected stores so callers can swap
in their own backends.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from .ai.predictions import PredictionModel, Prediction
from .analytics.benchmarks import Benchmark, BenchmarkTracker, score_distribution, stage_funnel
from .core.config import ActiveConfig, CustomRule, RuleConfigStore, ScoringConfig
from .core.evaluator import RuleEvaluator
from .core.history import DEFAULT_HISTORY_LIMIT, ScoreHistoryStore
from .core.lead import Lead
from .core.scorer import ScoreAggregator, ScoreRecord, explain_score
from .core.stages import QualificationStageMachine, StageTransition
from .storage.registry import InMemoryStore, RecordStore
from .team.roster import AgentRoster, InteractionProvider

logger = logging.getLogger(__name__)

DEFAULT_COLLABORATOR_TIMEOUT = 2.0
DEFAULT_CHUNK_SIZE = 100
QUALIFIED_SCORE = 50


@dataclass
class RescoreResult:
    """Outcome of a bulk rescore."""

    processed: int = 0
    transitions: int = 0
    chunks: int = 0
    cancelled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "processed": self.processed,
            "transitions": self.transitions,
            "chunks": self.chunks,
            "cancelled": self.cancelled,
        }


class LeadScoringEngine:
    """Scores leads, tracks their qualification stage and predicts outcomes."""

    def __init__(
        self,
        config_store: Optional[RuleConfigStore] = None,
        roster: Optional[AgentRoster] = None,
        interactions: Optional[InteractionProvider] = None,
        prediction_model: Optional[PredictionModel] = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        collaborator_timeout: float = DEFAULT_COLLABORATOR_TIMEOUT,
        score_store: Optional[RecordStore] = None,
        stage_store: Optional[RecordStore] = None,
        prediction_store: Optional[RecordStore] = None,
        top_agent_matches: int = 3,
        max_workers: int = 4,
    ):
        self.config = ActiveConfig(config_store)
        self.roster = roster
        self.interactions = interactions
        self.collaborator_timeout = collaborator_timeout
        self.top_agent_matches = top_agent_matches

        self.evaluator = RuleEvaluator()
        self.aggregator = ScoreAggregator()
        self.history = ScoreHistoryStore(history_limit)
        self.stages = QualificationStageMachine(stage_store)
        self.prediction_model = prediction_model or PredictionModel()
        self.benchmark_tracker = BenchmarkTracker()

        self.scores = score_store if score_store is not None else InMemoryStore()
        self.predictions = prediction_store if prediction_store is not None else InMemoryStore()
        self.leads = InMemoryStore()

        self._executor = ThreadPoolExecutor(max_workers=max_workers,
                                            thread_name_prefix="lead-qualifier")

    # === Scoring ===

    def calculate_score(self, lead: Union[Lead, Dict[str, Any]]) -> ScoreRecord:
        """Score a lead, record it, update its stage and refresh predictions.

        Never raises on bad lead data.
        """
        record, _ = self._score(lead)
        return record

    def _score(self, lead: Union[Lead, Dict[str, Any]]) -> Tuple[ScoreRecord, Optional[StageTransition]]:
        if not isinstance(lead, Lead):
            lead = Lead.from_dict(lead)

        # One snapshot for the whole pass; later swaps don't affect it
        config = self.config.snapshot()

        agents_future = self._fetch(self.roster.fetch_agents) if self.roster else None
        history_future = (self._fetch(self.interactions.fetch_interactions, lead.id)
                          if self.interactions else None)

        category_scores = self.evaluator.evaluate(lead, config.rule_tables)
        record = self.aggregator.aggregate(
            category_scores, lead, config.weights, config_version=config.version
        )

        agents = self._collect(agents_future, [], "agent roster")
        fetched = self._collect(history_future, [], "interaction history")
        interactions = list(lead.interaction_history) + list(fetched)

        # Nothing is written until the prediction exists
        try:
            prediction = self.prediction_model.predict(
                lead, record, agents, interactions, top_k=self.top_agent_matches
            )
        except (ArithmeticError, TypeError, ValueError) as e:
            logger.warning(f"Prediction failed for lead {lead.id} ({e}), using defaults")
            prediction = self.prediction_model.fallback(lead, record)

        with self.history.lock_for(lead.id):
            self.history.append(record)
            self.scores.put(lead.id, record)
            self.leads.put(lead.id, lead)
            self.predictions.put(lead.id, prediction)
            transition = self.stages.apply(record, config.stages)

        return record, transition

    def _fetch(self, fn: Callable, *args) -> Future:
        return self._executor.submit(fn, *args, timeout=self.collaborator_timeout)

    def _collect(self, future: Optional[Future], default: Any, label: str) -> Any:
        """Wait for a collaborator call, falling back to a default on failure."""
        if future is None:
            return default
        try:
            return future.result(timeout=self.collaborator_timeout)
        except FutureTimeout:
            future.cancel()
            logger.warning(f"{label} timed out after {self.collaborator_timeout}s, using defaults")
        except Exception as e:
            logger.warning(f"{label} unavailable ({e}), using defaults")
        return default

    def rescore_all(
        self,
        leads: Optional[Iterable[Union[Lead, Dict[str, Any]]]] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        cancel_event: Optional[threading.Event] = None,
    ) -> RescoreResult:
        """Rescore leads in chunks; stops between leads once cancel_event is set.

        Without an explicit iterable, every lead seen so far is rescored.
        """
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        source = leads if leads is not None else self.leads.values()
        result = RescoreResult()

        chunk: List = []
        for lead in source:
            chunk.append(lead)
            if len(chunk) >= chunk_size:
                if not self._rescore_chunk(chunk, result, cancel_event):
                    break
                chunk = []
        else:
            if chunk:
                self._rescore_chunk(chunk, result, cancel_event)

        logger.info(
            f"Rescore {'cancelled' if result.cancelled else 'complete'}: "
            f"{result.processed} leads, {result.transitions} stage changes"
        )
        return result

    def _rescore_chunk(self, chunk: List, result: RescoreResult,
                       cancel_event: Optional[threading.Event]) -> bool:
        for lead in chunk:
            if cancel_event is not None and cancel_event.is_set():
                result.cancelled = True
                return False
            _, transition = self._score(lead)
            result.processed += 1
            if transition is not None:
                result.transitions += 1
        result.chunks += 1
        logger.debug(f"Rescored chunk {result.chunks} ({result.processed} leads so far)")
        return True

    # === Queries ===

    def get_score(self, lead_id: str) -> Optional[ScoreRecord]:
        return self.scores.get(lead_id)

    def get_stage(self, lead_id: str) -> str:
        return self.stages.current_stage(lead_id, self.config.snapshot().stages)

    def get_prediction(self, lead_id: str) -> Optional[Prediction]:
        return self.predictions.get(lead_id)

    def get_history(self, lead_id: str) -> Dict[str, Any]:
        return {
            "records": self.history.records(lead_id),
            "trend": self.history.trend(lead_id),
        }

    def get_transitions(self, lead_id: Optional[str] = None) -> List[StageTransition]:
        return self.stages.transitions.entries(lead_id)

    def get_benchmarks(self) -> Benchmark:
        return self.benchmark_tracker.compute(r.total for r in self.scores.values())

    def subscribe(self, callback: Callable[[StageTransition], None]) -> Callable[[], None]:
        """Receive stage-changed events; returns an unsubscribe function."""
        return self.stages.events.subscribe(callback)

    def explain(self, lead_id: str) -> Optional[str]:
        record = self.get_score(lead_id)
        if record is None:
            return None
        return explain_score(record, self.get_stage(lead_id))

    # === Dashboard ===

    def stage_funnel(self) -> List[Dict[str, Any]]:
        return stage_funnel((r.total for r in self.scores.values()),
                            self.config.snapshot().stages)

    def score_distribution(self) -> List[Dict[str, Any]]:
        return score_distribution(r.total for r in self.scores.values())

    def dashboard_summary(self) -> Dict[str, Any]:
        """Headline numbers across all scored leads."""
        records = self.scores.values()
        predictions = self.predictions.values()

        avg_score = sum(r.total for r in records) / len(records) if records else 0.0
        avg_conversion = (
            sum(p.conversion_probability for p in predictions) / len(predictions)
            if predictions else 0.0
        )
        return {
            "total_leads": len(records),
            "average_score": round(avg_score, 1),
            "qualified_leads": sum(1 for r in records if r.total >= QUALIFIED_SCORE),
            "average_conversion_probability": round(avg_conversion, 4),
            "pipeline_value": sum(p.revenue_forecast.estimated for p in predictions),
            "config_version": self.config.version,
        }

    def top_leads(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Highest-scoring leads with their latest prediction and trend."""
        ranked = sorted(self.scores.items(), key=lambda item: item[1].total, reverse=True)
        top = []
        for lead_id, record in ranked[:limit]:
            prediction = self.get_prediction(lead_id)
            top.append({
                "lead_id": lead_id,
                "score": record.total,
                "stage": self.get_stage(lead_id),
                "trend": self.history.trend(lead_id),
                "conversion_probability": prediction.conversion_probability if prediction else None,
                "estimated_revenue": prediction.revenue_forecast.estimated if prediction else None,
            })
        return top

    # === Configuration ===

    def current_config(self) -> ScoringConfig:
        return self.config.snapshot()

    def activate_config(self, config: ScoringConfig) -> ScoringConfig:
        """Validate and swap in a config; raises ConfigurationError if invalid."""
        return self.config.activate(config)

    def update_weights(self, weights: Dict[str, float], rescore: bool = False) -> ScoringConfig:
        config = self.config.update_weights(weights)
        if rescore:
            self.rescore_all()
        return config

    def add_scoring_rule(self, category: str, factor: str, value: str, points: float) -> CustomRule:
        return self.config.add_rule(category, factor, value, points)

    # === Lifecycle ===

    def close(self):
        self._executor.shutdown(wait=False)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
