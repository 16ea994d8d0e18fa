"""Category evaluation - turns lead attributes into per-category raw scores."""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

from .lead import Lead
from .rules import Category, RuleTable, DEFAULT_RULE_TABLES, NEUTRAL_POINTS

logger = logging.getLogger(__name__)


@dataclass
class CategoryScores:
    """Raw 0-10 score per category plus the points each observed factor earned."""

    demographic: float = NEUTRAL_POINTS
    behavioral: float = NEUTRAL_POINTS
    source: float = NEUTRAL_POINTS
    intent: float = NEUTRAL_POINTS
    factor_points: Dict[str, Dict[str, float]] = field(default_factory=dict)

    def get(self, category: Category) -> float:
        return getattr(self, category.value)

    def as_dict(self) -> Dict[str, float]:
        return {cat.value: self.get(cat) for cat in Category}


# === Attribute bucketing ===

def age_band(age: int) -> str:
    if age < 26:
        return "18-25"
    if age < 36:
        return "26-35"
    if age < 46:
        return "36-45"
    if age < 56:
        return "46-55"
    return "56+"


def engagement_level(lead: Lead) -> str:
    b = lead.behavior
    points = ((b.email_opens or 0) * 2 + (b.link_clicks or 0) * 3
              + (b.page_views or 0) + (b.form_submissions or 0) * 5)
    if points > 20:
        return "high"
    if points > 10:
        return "medium"
    return "low"


def response_band(minutes: float) -> str:
    if minutes < 60:
        return "immediate"
    if minutes < 1440:
        return "same_day"
    if minutes < 2880:
        return "next_day"
    return "later"


def interaction_band(count: int) -> str:
    if count > 5:
        return "multiple"
    if count > 2:
        return "few"
    return "single"


def campaign_temperature(lead: Lead) -> Optional[str]:
    campaign = lead.source.campaign
    if campaign is None:
        return None
    if campaign.is_targeted:
        return "targeted"
    if campaign.is_warm:
        return "general"
    return "cold"


def budget_status(lead: Lead) -> Optional[str]:
    budget = lead.intent.budget
    if budget is None:
        return None
    return "confirmed" if budget > 0 else "unknown"


def decision_role(lead: Lead) -> Optional[str]:
    intent = lead.intent
    if intent.is_decision_maker is None:
        return None
    if intent.is_decision_maker:
        return "yes"
    return "influencer" if intent.has_influence else "no"


def competitor_status(lead: Lead) -> Optional[str]:
    info = lead.intent.competitor
    if info is None:
        return None
    if not info.mentioned:
        return "no"
    return "using" if info.currently_using else "considering"


def _when(value: Any, bucket: Callable[[Any], str]) -> Optional[str]:
    return None if value is None else bucket(value)


# Each extractor returns the categorical value to look up, or None when the
# attribute was not observed on the lead.
FACTOR_EXTRACTORS: Dict[Category, Dict[str, Callable[[Lead], Optional[str]]]] = {
    Category.DEMOGRAPHIC: {
        "location": lambda lead: lead.demographics.location_type or lead.demographics.location,
        "age": lambda lead: _when(lead.demographics.age, age_band),
        "income": lambda lead: lead.demographics.income_level,
        "occupation": lambda lead: lead.demographics.occupation_type or lead.demographics.occupation,
    },
    Category.BEHAVIORAL: {
        "engagement": lambda lead: engagement_level(lead) if lead.behavior.has_engagement_data else None,
        "response_time": lambda lead: _when(lead.behavior.first_response_minutes, response_band),
        "interactions": lambda lead: _when(lead.behavior.interaction_count, interaction_band),
        "channel_preference": lambda lead: lead.behavior.preferred_channel,
    },
    Category.SOURCE: {
        "type": lambda lead: lead.source.source_type or lead.source.origin,
        "quality": lambda lead: lead.source.quality,
        "campaign": campaign_temperature,
    },
    Category.INTENT: {
        "urgency": lambda lead: lead.intent.urgency,
        "budget": budget_status,
        "decision_maker": decision_role,
        "competitor_mentioned": competitor_status,
    },
}


class RuleEvaluator:
    """Evaluates a lead against the active rule tables.

    Missing or malformed attributes never raise: an unobserved factor is
    skipped, an unmapped value earns the factor's fallback, and a category
    with nothing observed scores the neutral midpoint.
    """

    def __init__(self, extractors: Optional[Dict[Category, Dict[str, Callable]]] = None):
        self.extractors = extractors or FACTOR_EXTRACTORS

    def evaluate(
        self,
        lead: Lead,
        rule_tables: Optional[Mapping[Category, RuleTable]] = None,
    ) -> CategoryScores:
        """Score each category on a 0-10 scale."""
        tables = rule_tables or DEFAULT_RULE_TABLES
        scores = CategoryScores()

        for category in Category:
            table = tables.get(category)
            if table is None:
                continue
            points = self._factor_points(lead, table)
            scores.factor_points[category.value] = points
            if points:
                raw = sum(points.values()) / len(points)
            else:
                raw = NEUTRAL_POINTS
            setattr(scores, category.value, raw)

        return scores

    def _factor_points(self, lead: Lead, table: RuleTable) -> Dict[str, float]:
        extractors = self.extractors.get(table.category, {})
        points: Dict[str, float] = {}

        for rule in table.factors:
            value = self._observe(lead, rule.name, extractors.get(rule.name))
            if value is None:
                continue
            points[rule.name] = rule.points_for(value)

        return points

    def _observe(self, lead: Lead, factor: str, extractor: Optional[Callable]) -> Optional[str]:
        """Read one factor's categorical value from the lead."""
        try:
            if extractor is not None:
                value = extractor(lead)
            else:
                # Custom factors read straight from the lead's extra attributes
                value = lead.extra.get(factor)
        except (AttributeError, TypeError, ValueError) as e:
            logger.debug(f"Unreadable factor '{factor}' on lead {lead.id}: {e}")
            return None

        if value is None:
            return None
        if isinstance(value, bool):
            return "yes" if value else "no"
        return str(value).strip().lower() or None
