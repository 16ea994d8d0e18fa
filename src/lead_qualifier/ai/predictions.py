"""Heuristic lead predictions derived from a lead and its latest score."""

import random
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..core.lead import Lead
from ..core.scorer import ScoreRecord
from ..team.roster import AgentProfile

PREDICTION_SCHEMA_VERSION = 1

MIN_PROBABILITY = 0.05
MAX_PROBABILITY = 0.95

# noise(low, high) -> value in [low, high]
NoiseSource = Callable[[float, float], float]


def no_noise(low: float, high: float) -> float:
    """Deterministic noise source."""
    return 0.0


def random_noise(seed: Optional[int] = None) -> NoiseSource:
    """Uniform noise, seedable for reproducible runs."""
    return random.Random(seed).uniform


@dataclass
class ContactWindow:
    """A recommended time to reach out."""
    hour: int
    day: str
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {"hour": self.hour, "day": self.day, "confidence": self.confidence}


@dataclass
class ContactTimePrediction:
    primary: ContactWindow
    secondary: ContactWindow
    data_points: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "primary": self.primary.to_dict(),
            "secondary": self.secondary.to_dict(),
            "data_points": self.data_points,
        }


@dataclass
class AgentMatch:
    """How well one agent fits a lead."""
    agent_id: str
    agent_name: str
    match_score: float
    factors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "agent_name": self.agent_name,
            "match_score": self.match_score,
            "factors": list(self.factors),
        }


@dataclass
class RevenueForecast:
    estimated: int
    low: int
    high: int
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "estimated": self.estimated,
            "low": self.low,
            "high": self.high,
            "confidence": self.confidence,
        }


@dataclass
class Prediction:
    """Latest predictions for a lead."""
    lead_id: str
    conversion_probability: float
    best_contact_time: ContactTimePrediction
    agent_matches: List[AgentMatch]
    revenue_forecast: RevenueForecast
    recommendations: List[str] = field(default_factory=list)
    score: float = 0.0
    calculated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    schema_version: int = PREDICTION_SCHEMA_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "lead_id": self.lead_id,
            "score": self.score,
            "conversion_probability": self.conversion_probability,
            "best_contact_time": self.best_contact_time.to_dict(),
            "agent_matches": [m.to_dict() for m in self.agent_matches],
            "revenue_forecast": self.revenue_forecast.to_dict(),
            "recommendations": list(self.recommendations),
            "calculated_at": self.calculated_at.isoformat(),
        }


class PredictionModel:
    """Predicts lead outcomes with fixed, explainable formulas.

    The four predictions are independent of each other. Any variance comes
    from the injected noise source, which defaults to none.
    """

    def __init__(self, noise: Optional[NoiseSource] = None):
        self.noise = noise or no_noise

        # Probability modifiers for known signals
        self.referral_multiplier = 1.3
        self.previous_customer_multiplier = 1.5
        self.competitor_multiplier = 0.7

        # Contact time defaults when a lead has no history
        self.default_primary = ContactWindow(hour=10, day="Tuesday", confidence=0.6)
        self.default_secondary = ContactWindow(hour=14, day="Thursday", confidence=0.5)

        # Agent matching
        self.base_match = 50
        self.expertise_bonus = 20
        self.language_bonus = 15
        self.performance_weight = 10
        self.availability_bonus = 10
        self.availability_threshold = 0.7

        # Revenue
        self.base_revenue = 1000
        self.company_size_multipliers = {
            'enterprise': 10,
            'mid-market': 5,
            'small': 2,
        }
        self.budget_discount = 0.8
        self.urgency_multiplier = 1.2
        self.revenue_variance = 0.2

    def predict(
        self,
        lead: Lead,
        record: ScoreRecord,
        agents: Sequence[AgentProfile] = (),
        interactions: Optional[Sequence[datetime]] = None,
        top_k: int = 3,
    ) -> Prediction:
        """Run every model for one lead."""
        probability = self.conversion_probability(lead, record)
        timestamps = interactions if interactions is not None else lead.interaction_history
        return Prediction(
            lead_id=lead.id,
            score=record.total,
            conversion_probability=probability,
            best_contact_time=self.best_contact_time(lead, timestamps),
            agent_matches=self.agent_match(lead, agents, top_k=top_k),
            revenue_forecast=self.revenue_forecast(lead, record),
            recommendations=self._conversion_recommendations(lead, probability),
        )

    def fallback(self, lead: Lead, record: ScoreRecord) -> Prediction:
        """Prediction built from the score alone, used when a model fails."""
        probability = round(min(MAX_PROBABILITY, max(MIN_PROBABILITY, record.total / 100)), 4)
        return Prediction(
            lead_id=lead.id,
            score=record.total,
            conversion_probability=probability,
            best_contact_time=ContactTimePrediction(
                primary=ContactWindow(**vars(self.default_primary)),
                secondary=ContactWindow(**vars(self.default_secondary)),
            ),
            agent_matches=[],
            revenue_forecast=RevenueForecast(estimated=0, low=0, high=0, confidence=0.0),
        )

    def conversion_probability(self, lead: Lead, record: ScoreRecord) -> float:
        """Likelihood (0.05-0.95) that the lead converts."""
        probability = record.total / 100

        if lead.source.origin == 'referral' or lead.source.source_type == 'referral':
            probability *= self.referral_multiplier
        if lead.previous_customer:
            probability *= self.previous_customer_multiplier
        competitor = lead.intent.competitor
        if competitor is not None and competitor.currently_using:
            probability *= self.competitor_multiplier

        probability += self.noise(-0.05, 0.05)

        return round(min(MAX_PROBABILITY, max(MIN_PROBABILITY, probability)), 4)

    def best_contact_time(
        self,
        lead: Lead,
        interactions: Optional[Sequence[datetime]] = None,
    ) -> ContactTimePrediction:
        """Most and second-most active hours from interaction history."""
        timestamps = list(interactions) if interactions is not None else lead.interaction_history
        hour_counts = Counter(ts.hour for ts in timestamps if isinstance(ts, datetime))

        if not hour_counts:
            return ContactTimePrediction(
                primary=ContactWindow(**vars(self.default_primary)),
                secondary=ContactWindow(**vars(self.default_secondary)),
            )

        # Most frequent first; earlier hour wins a tie
        ranked = sorted(hour_counts.items(), key=lambda item: (-item[1], item[0]))
        primary_hour = ranked[0][0]
        secondary_hour = ranked[1][0] if len(ranked) > 1 else self.default_secondary.hour

        return ContactTimePrediction(
            primary=ContactWindow(
                hour=primary_hour,
                day=self.default_primary.day,
                confidence=round(min(0.9, 0.7 + self.noise(0.0, 0.2)), 4),
            ),
            secondary=ContactWindow(
                hour=secondary_hour,
                day=self.default_secondary.day,
                confidence=round(min(0.8, 0.6 + self.noise(0.0, 0.2)), 4),
            ),
            data_points=sum(hour_counts.values()),
        )

    def agent_match(
        self,
        lead: Lead,
        agents: Sequence[AgentProfile],
        top_k: int = 3,
    ) -> List[AgentMatch]:
        """Rank candidate agents for a lead, best first."""
        matches = []

        for agent in agents:
            score = float(self.base_match)
            factors = []

            if lead.industry and lead.industry in agent.expertise:
                score += self.expertise_bonus
                factors.append('Industry expertise match')

            if lead.preferred_language and lead.preferred_language in agent.languages:
                score += self.language_bonus
                factors.append('Language match')

            performance = agent.performance_for(lead.category)
            score += performance * self.performance_weight
            factors.append(f'Category performance {performance:.0%}')

            if agent.current_load < agent.capacity * self.availability_threshold:
                score += self.availability_bonus
                if agent.utilization < 0.5:
                    factors.append('High availability')
                else:
                    factors.append('Available capacity')

            score += self.noise(0.0, 5.0)

            matches.append(AgentMatch(
                agent_id=agent.id,
                agent_name=agent.name,
                match_score=round(min(100.0, score), 2),
                factors=factors,
            ))

        matches.sort(key=lambda m: (-m.match_score, m.agent_id))
        return matches[:top_k]

    def revenue_forecast(self, lead: Lead, record: ScoreRecord) -> RevenueForecast:
        """Expected deal value with a fixed variance band."""
        value = float(self.base_revenue)
        value *= self.company_size_multipliers.get(lead.company_size or '', 1)
        value *= record.total / 50

        if lead.intent.budget is not None and lead.intent.budget > 0:
            # Stated budget beats the size heuristic; discount it to stay conservative
            value = lead.intent.budget * self.budget_discount
        if lead.intent.urgency == 'immediate':
            value *= self.urgency_multiplier

        variance = value * self.revenue_variance
        return RevenueForecast(
            estimated=round(value),
            low=round(value - variance),
            high=round(value + variance),
            confidence=round(0.6 + (record.total / 100) * 0.3, 4),
        )

    def _conversion_recommendations(self, lead: Lead, probability: float) -> List[str]:
        """Next steps suited to the lead's conversion outlook."""
        recommendations = []

        if probability < 0.3:
            recommendations.append("Focus on re-engagement - lead may be going cold")
            recommendations.append("Consider adding to long-term nurture campaign")
        elif probability < 0.5:
            recommendations.append("Increase touchpoint frequency")
            recommendations.append("Send personalized follow-up content")
        else:
            recommendations.append("Strike while hot - schedule call today")
            recommendations.append("Prepare proposal for next steps")

        if lead.intent.budget is None:
            recommendations.append("Confirm budget to sharpen the revenue forecast")
        if lead.intent.is_decision_maker is False:
            recommendations.append("Identify and engage the decision maker")
        if not lead.has_contact_channel:
            recommendations.append("Collect an email or phone number")

        return recommendations[:5]
