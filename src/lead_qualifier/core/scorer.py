"""Score aggregation - weighted category scores plus bonus and penalty rules."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .evaluator import CategoryScores
from .lead import Lead, parse_timestamp
from .rules import Category, DEFAULT_WEIGHTS, MAX_POINTS

SCORE_RECORD_SCHEMA_VERSION = 1

MIN_SCORE = 0.0
MAX_SCORE = 100.0
CATEGORY_SCALE = MAX_SCORE / MAX_POINTS  # raw 0-10 -> 0-100

FAST_RESPONSE_MINUTES = 5
HIGH_VALUE_FLOOR = 10000
SPAM_THRESHOLD = 0.7

MATERIALITY_THRESHOLD = 2.0
SIGNIFICANT_FACTOR_LIMIT = 3


@dataclass(frozen=True)
class Adjustment:
    """A fixed bonus or penalty applied when its condition holds."""

    name: str
    points: float
    applies: Callable[[Lead], bool]
    description: str = ""


BONUS_RULES: List[Adjustment] = [
    Adjustment("referral", 5, lambda lead: lead.is_referral, "Referred lead"),
    Adjustment("complete_profile", 3, lambda lead: lead.is_profile_complete,
               "Name, email, phone and company on file"),
    Adjustment("fast_response", 5,
               lambda lead: (lead.behavior.first_response_minutes is not None
                             and lead.behavior.first_response_minutes < FAST_RESPONSE_MINUTES),
               "First response under 5 minutes"),
    Adjustment("high_value", 5,
               lambda lead: (lead.estimated_value or 0) > HIGH_VALUE_FLOOR,
               "High estimated value"),
    Adjustment("returning_customer", 10, lambda lead: lead.is_return_customer,
               "Returning customer"),
]

PENALTY_RULES: List[Adjustment] = [
    Adjustment("no_contact_channel", 10, lambda lead: not lead.has_contact_channel,
               "No email or phone"),
    Adjustment("bad_contact_info", 15, lambda lead: lead.email_bounced or lead.phone_bad,
               "Bounced email or bad phone"),
    Adjustment("do_not_contact", 50, lambda lead: lead.do_not_contact, "Do-not-contact flag"),
    Adjustment("competitor", 30, lambda lead: lead.is_competitor, "Flagged competitor"),
    Adjustment("spam_risk", 20,
               lambda lead: (lead.spam_score or 0) > SPAM_THRESHOLD,
               "High spam likelihood"),
]


@dataclass(frozen=True)
class SignificantFactor:
    """One of the largest contributors to a score."""

    name: str
    kind: str  # category, bonus, penalty
    magnitude: float
    impact: str  # high, medium, low

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "kind": self.kind,
                "magnitude": self.magnitude, "impact": self.impact}


@dataclass(frozen=True)
class ScoreRecord:
    """Result of one scoring pass over a lead. Never mutated after creation."""

    lead_id: str
    total: float
    breakdown: Dict[str, float]
    contributions: Dict[str, float]
    bonus: float = 0.0
    penalties: float = 0.0
    adjustments: Tuple[str, ...] = ()
    factors: Tuple[SignificantFactor, ...] = ()
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    config_version: int = 0
    schema_version: int = SCORE_RECORD_SCHEMA_VERSION

    @property
    def summary(self) -> str:
        """Short human-readable summary of the top factors."""
        if not self.factors:
            return "No significant factors"
        parts = []
        for factor in self.factors:
            sign = "+" if factor.magnitude > 0 else ""
            parts.append(f"{factor.name} ({sign}{factor.magnitude:.1f}, {factor.impact})")
        return ", ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Flat, versioned representation for persistence and transport."""
        data: Dict[str, Any] = {
            "schema_version": self.schema_version,
            "config_version": self.config_version,
            "lead_id": self.lead_id,
            "total": self.total,
            "bonus": self.bonus,
            "penalties": self.penalties,
            "adjustments": list(self.adjustments),
            "factors": [f.to_dict() for f in self.factors],
            "timestamp": self.timestamp.isoformat(),
        }
        for name, raw in self.breakdown.items():
            data[f"{name}_raw"] = raw
        for name, weighted in self.contributions.items():
            data[f"{name}_weighted"] = weighted
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScoreRecord":
        categories = [cat.value for cat in Category]
        return cls(
            lead_id=str(data["lead_id"]),
            total=float(data["total"]),
            breakdown={c: float(data.get(f"{c}_raw", 0.0)) for c in categories},
            contributions={c: float(data.get(f"{c}_weighted", 0.0)) for c in categories},
            bonus=float(data.get("bonus", 0.0)),
            penalties=float(data.get("penalties", 0.0)),
            adjustments=tuple(data.get("adjustments", [])),
            factors=tuple(SignificantFactor(**f) for f in data.get("factors", [])),
            timestamp=parse_timestamp(data.get("timestamp")) or datetime.now(timezone.utc),
            config_version=int(data.get("config_version", 0)),
            schema_version=int(data.get("schema_version", SCORE_RECORD_SCHEMA_VERSION)),
        )


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def impact_band(magnitude: float) -> str:
    size = abs(magnitude)
    if size > 7:
        return "high"
    if size > 4:
        return "medium"
    return "low"


class ScoreAggregator:
    """Combines category scores, bonuses and penalties into a ScoreRecord.

    Pure: nothing is stored here, the caller persists the record.
    Weights are assumed valid; they are checked when a config is activated.
    """

    def __init__(
        self,
        bonus_rules: Optional[List[Adjustment]] = None,
        penalty_rules: Optional[List[Adjustment]] = None,
    ):
        self.bonus_rules = bonus_rules if bonus_rules is not None else BONUS_RULES
        self.penalty_rules = penalty_rules if penalty_rules is not None else PENALTY_RULES

    def aggregate(
        self,
        category_scores: CategoryScores,
        lead: Lead,
        weights: Optional[Mapping[str, float]] = None,
        config_version: int = 0,
    ) -> ScoreRecord:
        weights = weights or DEFAULT_WEIGHTS

        breakdown = category_scores.as_dict()
        contributions = {
            name: raw * weights.get(name, 0.0) * CATEGORY_SCALE
            for name, raw in breakdown.items()
        }
        weighted_sum = sum(contributions.values())

        bonuses = self._fired(self.bonus_rules, lead)
        penalties = self._fired(self.penalty_rules, lead)
        bonus_total = float(sum(rule.points for rule in bonuses))
        penalty_total = float(sum(rule.points for rule in penalties))

        total = clamp(weighted_sum + bonus_total - penalty_total, MIN_SCORE, MAX_SCORE)

        magnitudes: List[Tuple[str, str, float]] = [
            (name, "category", value) for name, value in contributions.items()
        ]
        magnitudes.extend((rule.name, "bonus", float(rule.points)) for rule in bonuses)
        magnitudes.extend((rule.name, "penalty", -float(rule.points)) for rule in penalties)

        return ScoreRecord(
            lead_id=lead.id,
            total=round(total, 2),
            breakdown={k: round(v, 4) for k, v in breakdown.items()},
            contributions={k: round(v, 4) for k, v in contributions.items()},
            bonus=bonus_total,
            penalties=penalty_total,
            adjustments=tuple(rule.name for rule in bonuses + penalties),
            factors=significant_factors(magnitudes),
            config_version=config_version,
        )

    def _fired(self, rules: List[Adjustment], lead: Lead) -> List[Adjustment]:
        fired = []
        for rule in rules:
            try:
                if rule.applies(lead):
                    fired.append(rule)
            except (AttributeError, TypeError, ValueError):
                continue
        return fired


def significant_factors(
    magnitudes: List[Tuple[str, str, float]],
    limit: int = SIGNIFICANT_FACTOR_LIMIT,
    threshold: float = MATERIALITY_THRESHOLD,
) -> Tuple[SignificantFactor, ...]:
    """Top contributors by absolute magnitude that clear the materiality bar."""
    ranked = sorted(magnitudes, key=lambda m: abs(m[2]), reverse=True)
    return tuple(
        SignificantFactor(name, kind, round(value, 2), impact_band(value))
        for name, kind, value in ranked[:limit]
        if abs(value) > threshold
    )


def explain_score(record: ScoreRecord, stage: Optional[str] = None) -> str:
    """Get a detailed explanation of a score record."""
    header = f"Total Score: {record.total:.1f}"
    if stage:
        header += f" ({stage.upper()})"
    lines = [header, "", "Category Breakdown:"]

    for name, raw in record.breakdown.items():
        lines.append(
            f"  {name}: {raw:.1f}/10 -> {record.contributions.get(name, 0.0):.1f} pts"
        )

    lines.extend(["", f"Bonus: +{record.bonus:.0f}", f"Penalties: -{record.penalties:.0f}"])
    if record.adjustments:
        lines.append(f"Applied: {', '.join(record.adjustments)}")

    lines.extend(["", "Significant Factors:"])
    if not record.factors:
        lines.append("  (none)")
    for factor in record.factors:
        sign = "+" if factor.magnitude > 0 else ""
        lines.append(f"  {sign}{factor.magnitude:.1f}: {factor.name} [{factor.kind}, {factor.impact}]")

    return "\n".join(lines)
