"""Qualification stages, transition auditing and stage-changed events."""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from .lead import parse_timestamp
from .scorer import ScoreRecord
from ..storage.registry import InMemoryStore, RecordStore

logger = logging.getLogger(__name__)

TRANSITION_SCHEMA_VERSION = 1
MAX_TRANSITIONS = 10000
TRIMMED_TRANSITIONS = 5000


@dataclass(frozen=True)
class QualificationStage:
    """A named bucket a lead occupies while its score is at least min_score."""

    id: str
    name: str
    min_score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "min_score": self.min_score}


DEFAULT_STAGES: List[QualificationStage] = [
    QualificationStage("new", "New Lead", 0),
    QualificationStage("contacted", "Contacted", 20),
    QualificationStage("qualified", "Qualified", 50),
    QualificationStage("opportunity", "Opportunity", 70),
    QualificationStage("negotiation", "Negotiation", 85),
    QualificationStage("closed", "Closed", 95),
]


@dataclass(frozen=True)
class StageTransition:
    """Audit entry, also delivered to subscribers as the stage-changed event."""

    lead_id: str
    from_stage: str
    to_stage: str
    score: float
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    schema_version: int = TRANSITION_SCHEMA_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "lead_id": self.lead_id,
            "from_stage": self.from_stage,
            "to_stage": self.to_stage,
            "score": self.score,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StageTransition":
        return cls(
            lead_id=str(data["lead_id"]),
            from_stage=data["from_stage"],
            to_stage=data["to_stage"],
            score=float(data["score"]),
            timestamp=parse_timestamp(data.get("timestamp")) or datetime.now(timezone.utc),
            schema_version=int(data.get("schema_version", TRANSITION_SCHEMA_VERSION)),
        )


def stage_for_score(score: float, stages: Sequence[QualificationStage]) -> QualificationStage:
    """Highest stage whose threshold the score reaches (lowest stage otherwise)."""
    current = stages[0]
    for stage in stages:
        if score >= stage.min_score:
            current = stage
    return current


class EventBus:
    """In-process fan-out of stage-changed events."""

    def __init__(self):
        self._subscribers: List[Callable[[StageTransition], None]] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[[StageTransition], None]) -> Callable[[], None]:
        """Register a subscriber; returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def emit(self, event: StageTransition):
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(event)
            except Exception:
                logger.exception(f"Stage-changed subscriber failed for lead {event.lead_id}")


class TransitionLog:
    """Append-only audit of stage transitions, trimmed when it grows too large."""

    def __init__(self, max_entries: int = MAX_TRANSITIONS, trim_to: int = TRIMMED_TRANSITIONS):
        self.max_entries = max_entries
        self.trim_to = trim_to
        self._entries: List[StageTransition] = []
        self._lock = threading.Lock()

    def append(self, transition: StageTransition):
        with self._lock:
            self._entries.append(transition)
            if len(self._entries) > self.max_entries:
                self._entries = self._entries[-self.trim_to:]

    def entries(self, lead_id: Optional[str] = None) -> List[StageTransition]:
        with self._lock:
            entries = list(self._entries)
        if lead_id is None:
            return entries
        return [t for t in entries if t.lead_id == lead_id]

    def __len__(self) -> int:
        return len(self._entries)


class QualificationStageMachine:
    """Assigns stages from scores and audits every change.

    Not path-dependent: a falling score moves a lead back down, and the last
    stage is not locked.
    """

    def __init__(
        self,
        stage_store: Optional[RecordStore] = None,
        transition_log: Optional[TransitionLog] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self.stage_store = stage_store if stage_store is not None else InMemoryStore()
        self.transitions = transition_log if transition_log is not None else TransitionLog()
        self.events = event_bus if event_bus is not None else EventBus()

    def current_stage(self, lead_id: str, stages: Sequence[QualificationStage]) -> str:
        """Stored stage for a lead; unscored leads sit in the lowest stage."""
        return self.stage_store.get(lead_id) or stages[0].id

    def apply(
        self,
        record: ScoreRecord,
        stages: Sequence[QualificationStage],
    ) -> Optional[StageTransition]:
        """Move the lead to the stage its new score earns.

        Returns the transition when the stage changed, else None. Callers
        must serialize calls for the same lead.
        """
        previous = self.current_stage(record.lead_id, stages)
        new_stage = stage_for_score(record.total, stages).id
        self.stage_store.put(record.lead_id, new_stage)

        if new_stage == previous:
            return None

        transition = StageTransition(
            lead_id=record.lead_id,
            from_stage=previous,
            to_stage=new_stage,
            score=record.total,
            timestamp=record.timestamp,
        )
        self.transitions.append(transition)
        logger.info(
            f"Lead {record.lead_id} moved {previous} -> {new_stage} (score {record.total:.1f})"
        )
        self.events.emit(transition)
        return transition
