"""Rule tables for category scoring - one table per lead attribute group."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Optional, Tuple

NEUTRAL_POINTS = 5.0
MAX_POINTS = 10.0


class Category(Enum):
    """Attribute groups a lead is scored on."""

    DEMOGRAPHIC = "demographic"
    BEHAVIORAL = "behavioral"
    SOURCE = "source"
    INTENT = "intent"


@dataclass(frozen=True)
class FactorRule:
    """Maps the discrete values of one lead attribute to points."""

    name: str
    points: Dict[str, float]
    fallback: float = NEUTRAL_POINTS
    description: str = ""

    def points_for(self, value: Optional[str]) -> float:
        """Points for an observed value; unmapped values get the fallback."""
        if value is None:
            return self.fallback
        return self.points.get(value, self.fallback)


@dataclass(frozen=True)
class RuleTable:
    """Weight and factor rules for one category."""

    category: Category
    weight: float
    factors: Tuple[FactorRule, ...] = field(default_factory=tuple)

    def factor(self, name: str) -> Optional[FactorRule]:
        for rule in self.factors:
            if rule.name == name:
                return rule
        return None

    def with_weight(self, weight: float) -> "RuleTable":
        return replace(self, weight=weight)

    def with_points(self, factor: str, value: str, points: float) -> "RuleTable":
        """Copy of this table with one value mapping added or overridden."""
        factors = []
        found = False
        for rule in self.factors:
            if rule.name == factor:
                found = True
                rule = replace(rule, points={**rule.points, value: points})
            factors.append(rule)
        if not found:
            factors.append(FactorRule(factor, {value: points}, description="Custom factor"))
        return replace(self, factors=tuple(factors))


DEFAULT_RULE_TABLES: Dict[Category, RuleTable] = {
    Category.DEMOGRAPHIC: RuleTable(Category.DEMOGRAPHIC, 0.25, (
        FactorRule("location", {"urban": 10, "suburban": 8, "rural": 5}, description="Location type"),
        FactorRule("age", {"18-25": 6, "26-35": 10, "36-45": 9, "46-55": 7, "56+": 5}, description="Age band"),
        FactorRule("income", {"low": 3, "medium": 7, "high": 10}, description="Income level"),
        FactorRule("occupation", {"professional": 10, "business": 9, "student": 5, "retired": 6}, description="Occupation type"),
    )),
    Category.BEHAVIORAL: RuleTable(Category.BEHAVIORAL, 0.35, (
        FactorRule("engagement", {"high": 10, "medium": 7, "low": 3}, description="Opens, clicks, views and forms"),
        FactorRule("response_time", {"immediate": 10, "same_day": 8, "next_day": 6, "later": 3}, description="First response latency"),
        FactorRule("interactions", {"multiple": 10, "few": 7, "single": 4}, description="Interaction count"),
        FactorRule("channel_preference", {"phone": 9, "email": 7, "sms": 8, "web": 6}, description="Preferred channel"),
    )),
    Category.SOURCE: RuleTable(Category.SOURCE, 0.20, (
        FactorRule("type", {"referral": 10, "organic": 8, "paid": 7, "social": 6, "direct": 5}, description="Source type"),
        FactorRule("quality", {"verified": 10, "trusted": 8, "new": 5, "suspicious": 1}, description="Source quality"),
        FactorRule("campaign", {"targeted": 9, "general": 6, "cold": 3}, description="Campaign temperature"),
    )),
    Category.INTENT: RuleTable(Category.INTENT, 0.20, (
        FactorRule("urgency", {"immediate": 10, "soon": 8, "exploring": 5, "future": 3}, description="Purchase timeline"),
        FactorRule("budget", {"confirmed": 10, "estimated": 7, "unknown": 4}, description="Budget status"),
        FactorRule("decision_maker", {"yes": 10, "influencer": 7, "no": 3}, description="Buying authority"),
        FactorRule("competitor_mentioned", {"no": 10, "considering": 6, "using": 3}, description="Competitor involvement"),
    )),
}

DEFAULT_WEIGHTS: Dict[str, float] = {
    cat.value: table.weight for cat, table in DEFAULT_RULE_TABLES.items()
}
