"""Tests for the prediction models."""

from datetime import datetime

import pytest
from lead_qualifier.ai.predictions import PredictionModel, random_noise
from lead_qualifier.core.lead import Lead
from lead_qualifier.core.scorer import ScoreRecord
from lead_qualifier.team.roster import AgentProfile


def make_record(total: float, lead_id: str = "1") -> ScoreRecord:
    return ScoreRecord(lead_id=lead_id, total=total, breakdown={}, contributions={})


class TestConversionProbability:
    """Tests for conversion probability."""

    def setup_method(self):
        self.model = PredictionModel()

    def test_base_is_score_fraction(self):
        lead = Lead.from_dict({"id": "1"})
        assert self.model.conversion_probability(lead, make_record(40)) == 0.4

    def test_modifiers(self):
        referral = Lead.from_dict({"id": "1", "source": "referral"})
        assert self.model.conversion_probability(referral, make_record(40)) == pytest.approx(0.52)

        returning = Lead.from_dict({"id": "1", "previous_customer": True})
        assert self.model.conversion_probability(returning, make_record(40)) == pytest.approx(0.6)

        competitor = Lead.from_dict({
            "id": "1", "competitor": {"mentioned": True, "currently_using": True},
        })
        assert self.model.conversion_probability(competitor, make_record(40)) == pytest.approx(0.28)

    def test_clamped(self):
        lead = Lead.from_dict({"id": "1", "source": "referral", "previous_customer": True})
        assert self.model.conversion_probability(lead, make_record(100)) == 0.95
        assert self.model.conversion_probability(Lead.from_dict({"id": "1"}), make_record(0)) == 0.05

    def test_noise_stays_in_bounds(self):
        model = PredictionModel(noise=random_noise(seed=7))
        lead = Lead.from_dict({"id": "1"})
        for total in (0, 3, 50, 97, 100):
            probability = model.conversion_probability(lead, make_record(total))
            assert 0.05 <= probability <= 0.95

    def test_seeded_noise_reproducible(self):
        lead = Lead.from_dict({"id": "1"})
        first = PredictionModel(noise=random_noise(seed=42)).conversion_probability(lead, make_record(50))
        second = PredictionModel(noise=random_noise(seed=42)).conversion_probability(lead, make_record(50))
        assert first == second


class TestBestContactTime:
    """Tests for contact time prediction."""

    def setup_method(self):
        self.model = PredictionModel()

    def test_defaults_without_history(self):
        prediction = self.model.best_contact_time(Lead.from_dict({"id": "1"}), [])
        assert (prediction.primary.hour, prediction.primary.day, prediction.primary.confidence) == (10, "Tuesday", 0.6)
        assert (prediction.secondary.hour, prediction.secondary.day, prediction.secondary.confidence) == (14, "Thursday", 0.5)
        assert prediction.data_points == 0

    def test_most_frequent_hours(self):
        history = [
            datetime(2024, 3, 1, 9, 15),
            datetime(2024, 3, 2, 16, 0),
            datetime(2024, 3, 3, 16, 30),
            datetime(2024, 3, 4, 9, 45),
            datetime(2024, 3, 5, 16, 10),
        ]
        prediction = self.model.best_contact_time(Lead.from_dict({"id": "1"}), history)
        assert prediction.primary.hour == 16
        assert prediction.secondary.hour == 9
        assert prediction.primary.confidence == 0.7
        assert prediction.secondary.confidence == 0.6
        assert prediction.data_points == 5

    def test_tie_prefers_earlier_hour(self):
        history = [datetime(2024, 3, 1, 15), datetime(2024, 3, 1, 11)]
        prediction = self.model.best_contact_time(Lead.from_dict({"id": "1"}), history)
        assert prediction.primary.hour == 11
        assert prediction.secondary.hour == 15

    def test_uses_lead_history(self):
        lead = Lead.from_dict({"id": "1", "interaction_history": ["2024-03-01T08:30:00Z"]})
        prediction = self.model.best_contact_time(lead)
        assert prediction.primary.hour == 8
        assert prediction.secondary.hour == 14


class TestAgentMatch:
    """Tests for agent ranking."""

    def setup_method(self):
        self.model = PredictionModel()
        self.agents = [
            AgentProfile("a1", "Avery", expertise=["saas"], languages=["en", "es"],
                         current_load=2, capacity=10, category_performance={"enterprise": 0.9}),
            AgentProfile("a2", "Blake", expertise=["retail"], languages=["en"],
                         current_load=9, capacity=10),
            AgentProfile("a3", "Casey", expertise=["saas"], languages=["en"],
                         current_load=8, capacity=10),
            AgentProfile("a4", "Drew", languages=["en"], current_load=0, capacity=5),
        ]

    def test_ranking(self):
        lead = Lead.from_dict({
            "id": "1", "industry": "SaaS", "preferred_language": "es", "category": "enterprise",
        })
        matches = self.model.agent_match(lead, self.agents)
        assert [m.agent_id for m in matches] == ["a1", "a3", "a4"]
        assert matches[0].match_score == 100
        assert "Language match" in matches[0].factors
        assert matches[1].match_score == 77

    def test_mixed_case_profile_matches(self):
        lead = Lead.from_dict({
            "id": "1", "industry": "SaaS", "preferred_language": "ES", "category": "Enterprise",
        })
        agent = AgentProfile("m1", "Morgan", expertise=["SaaS"], languages=["EN", "Es"],
                             current_load=2, capacity=10, category_performance={"Enterprise": 0.9})
        match = self.model.agent_match(lead, [agent])[0]
        assert "Industry expertise match" in match.factors
        assert "Language match" in match.factors
        assert match.match_score == 100

    def test_ties_broken_by_agent_id(self):
        lead = Lead.from_dict({"id": "1"})
        twins = [AgentProfile("b", "B", capacity=10), AgentProfile("a", "A", capacity=10)]
        assert [m.agent_id for m in self.model.agent_match(lead, twins)] == ["a", "b"]

    def test_no_agents(self):
        assert self.model.agent_match(Lead.from_dict({"id": "1"}), []) == []

    def test_top_k(self):
        matches = self.model.agent_match(Lead.from_dict({"id": "1"}), self.agents, top_k=1)
        assert len(matches) == 1


class TestRevenueForecast:
    """Tests for revenue forecasting."""

    def setup_method(self):
        self.model = PredictionModel()

    def test_company_size(self):
        lead = Lead.from_dict({"id": "1", "company_size": "enterprise"})
        forecast = self.model.revenue_forecast(lead, make_record(50))
        assert forecast.estimated == 10000
        assert forecast.low == 8000
        assert forecast.high == 12000
        assert forecast.confidence == 0.75

    def test_budget_overrides_size(self):
        lead = Lead.from_dict({"id": "1", "company_size": "small", "budget": 20000,
                               "urgency": "immediate"})
        forecast = self.model.revenue_forecast(lead, make_record(80))
        assert forecast.estimated == 19200

    def test_unknown_size(self):
        forecast = self.model.revenue_forecast(Lead.from_dict({"id": "1"}), make_record(25))
        assert forecast.estimated == 500

    def test_non_positive_budget_uses_size(self):
        for budget in (-5000, 0):
            lead = Lead.from_dict({"id": "1", "company_size": "enterprise", "budget": budget})
            forecast = self.model.revenue_forecast(lead, make_record(50))
            assert forecast.estimated == 10000
            assert 0 <= forecast.low <= forecast.estimated <= forecast.high


class TestPredict:
    """Tests for the combined prediction."""

    def test_predict(self, strong_lead):
        model = PredictionModel()
        lead = Lead.from_dict(strong_lead)
        prediction = model.predict(lead, make_record(100, lead.id))
        assert prediction.lead_id == "lead-strong"
        assert prediction.conversion_probability == 0.95
        assert prediction.agent_matches == []
        assert prediction.recommendations[0].startswith("Strike while hot")

        data = prediction.to_dict()
        assert data["schema_version"] == 1
        assert data["best_contact_time"]["primary"]["day"] == "Tuesday"

    def test_recommendations_for_cold_lead(self):
        model = PredictionModel()
        prediction = model.predict(Lead.from_dict({"id": "1"}), make_record(10))
        assert "Collect an email or phone number" in prediction.recommendations
        assert "Confirm budget to sharpen the revenue forecast" in prediction.recommendations

    def test_fallback(self):
        model = PredictionModel()
        prediction = model.fallback(Lead.from_dict({"id": "1"}), make_record(30))
        assert prediction.conversion_probability == 0.3
        assert prediction.best_contact_time.primary.hour == 10
        assert prediction.agent_matches == []
        assert prediction.revenue_forecast.estimated == 0
