"""Tests for qualification stages and transition events."""

from lead_qualifier.core.evaluator import CategoryScores
from lead_qualifier.core.lead import Lead
from lead_qualifier.core.scorer import ScoreAggregator, ScoreRecord
from lead_qualifier.core.stages import (
    DEFAULT_STAGES,
    EventBus,
    QualificationStageMachine,
    StageTransition,
    TransitionLog,
    stage_for_score,
)


def make_record(lead_id: str, total: float) -> ScoreRecord:
    return ScoreRecord(lead_id=lead_id, total=total, breakdown={}, contributions={})


class TestStageForScore:
    """Tests for threshold lookup."""

    def test_thresholds(self):
        assert stage_for_score(0, DEFAULT_STAGES).id == "new"
        assert stage_for_score(19.99, DEFAULT_STAGES).id == "new"
        assert stage_for_score(20, DEFAULT_STAGES).id == "contacted"
        assert stage_for_score(50, DEFAULT_STAGES).id == "qualified"
        assert stage_for_score(70, DEFAULT_STAGES).id == "opportunity"
        assert stage_for_score(85, DEFAULT_STAGES).id == "negotiation"
        assert stage_for_score(100, DEFAULT_STAGES).id == "closed"


class TestQualificationStageMachine:
    """Tests for QualificationStageMachine."""

    def setup_method(self):
        self.machine = QualificationStageMachine()
        self.events = []
        self.machine.events.subscribe(self.events.append)

    def test_unscored_lead_is_new(self):
        assert self.machine.current_stage("ghost", DEFAULT_STAGES) == "new"

    def test_transition_on_change(self):
        transition = self.machine.apply(make_record("1", 72), DEFAULT_STAGES)
        assert transition.from_stage == "new"
        assert transition.to_stage == "opportunity"
        assert transition.score == 72
        assert self.events == [transition]
        assert self.machine.current_stage("1", DEFAULT_STAGES) == "opportunity"

    def test_no_transition_without_change(self):
        self.machine.apply(make_record("1", 55), DEFAULT_STAGES)
        assert self.machine.apply(make_record("1", 60), DEFAULT_STAGES) is None
        assert len(self.events) == 1
        assert len(self.machine.transitions.entries("1")) == 1

    def test_no_transition_staying_new(self):
        assert self.machine.apply(make_record("1", 5), DEFAULT_STAGES) is None
        assert self.events == []

    def test_regression_allowed(self):
        """Stages follow the score down, including out of closed."""
        self.machine.apply(make_record("1", 97), DEFAULT_STAGES)
        transition = self.machine.apply(make_record("1", 30), DEFAULT_STAGES)
        assert transition.from_stage == "closed"
        assert transition.to_stage == "contacted"

    def test_transition_log_per_lead(self):
        self.machine.apply(make_record("1", 55), DEFAULT_STAGES)
        self.machine.apply(make_record("2", 25), DEFAULT_STAGES)
        assert [t.lead_id for t in self.machine.transitions.entries()] == ["1", "2"]
        assert [t.to_stage for t in self.machine.transitions.entries("2")] == ["contacted"]


class TestEventBus:
    """Tests for stage-changed event fan-out."""

    def test_failing_subscriber_does_not_block_others(self):
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("subscriber down")

        bus.subscribe(broken)
        bus.subscribe(received.append)
        event = StageTransition("1", "new", "qualified", 55)
        bus.emit(event)
        assert received == [event]

    def test_unsubscribe(self):
        bus = EventBus()
        received = []
        unsubscribe = bus.subscribe(received.append)
        unsubscribe()
        bus.emit(StageTransition("1", "new", "qualified", 55))
        assert received == []


class TestTransitionLog:
    """Tests for the bounded transition log."""

    def test_trims_when_full(self):
        log = TransitionLog(max_entries=10, trim_to=5)
        for i in range(11):
            log.append(StageTransition(str(i), "new", "contacted", 20))
        assert len(log) == 5
        assert log.entries()[0].lead_id == "6"
        assert log.entries()[-1].lead_id == "10"

    def test_round_trip_dict(self):
        transition = StageTransition("1", "new", "qualified", 55.5)
        data = transition.to_dict()
        assert data["schema_version"] == 1
        assert StageTransition.from_dict(data) == transition


def test_aggregated_record_drives_stage():
    lead = Lead.from_dict({"id": "x", "email": "x@example.com"})
    record = ScoreAggregator().aggregate(CategoryScores(), lead)
    machine = QualificationStageMachine()
    transition = machine.apply(record, DEFAULT_STAGES)
    assert transition.to_stage == "qualified"
