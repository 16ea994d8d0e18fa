"""Lead record schema consumed by the scoring engine.

Every attribute is optional. A missing value means "not observed" and the
evaluator falls back to neutral points for it, so building a lead from a
loose dict never fails: unparseable values are dropped to ``None`` and any
key the schema does not know about lands in ``extra``.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

LEAD_SCHEMA_VERSION = 1


@dataclass
class Demographics:
    """Who the prospect is."""

    location: Optional[str] = None
    location_type: Optional[str] = None  # urban, suburban, rural
    age: Optional[int] = None
    income_level: Optional[str] = None  # low, medium, high
    occupation: Optional[str] = None
    occupation_type: Optional[str] = None  # professional, business, student, retired


@dataclass
class Behavior:
    """How the prospect has engaged so far."""

    email_opens: Optional[int] = None
    link_clicks: Optional[int] = None
    page_views: Optional[int] = None
    form_submissions: Optional[int] = None
    first_response_minutes: Optional[float] = None
    interaction_count: Optional[int] = None
    preferred_channel: Optional[str] = None  # phone, email, sms, web

    @property
    def has_engagement_data(self) -> bool:
        return any(
            v is not None
            for v in (self.email_opens, self.link_clicks, self.page_views, self.form_submissions)
        )


@dataclass
class Campaign:
    """Marketing campaign the lead came in through."""

    name: Optional[str] = None
    is_targeted: bool = False
    is_warm: bool = False


@dataclass
class LeadSource:
    """Where the lead came from."""

    origin: Optional[str] = None  # free-form channel name, e.g. "referral", "zillow"
    source_type: Optional[str] = None  # referral, organic, paid, social, direct
    quality: Optional[str] = None  # verified, trusted, new, suspicious
    campaign: Optional[Campaign] = None


@dataclass
class CompetitorInfo:
    """What the lead said about competing vendors."""

    mentioned: bool = False
    currently_using: bool = False
    name: Optional[str] = None


@dataclass
class Intent:
    """Purchase intent signals."""

    urgency: Optional[str] = None  # immediate, soon, exploring, future
    budget: Optional[float] = None
    is_decision_maker: Optional[bool] = None
    has_influence: Optional[bool] = None
    competitor: Optional[CompetitorInfo] = None


@dataclass
class Lead:
    """A prospect record as read by the scoring engine."""

    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None

    demographics: Demographics = field(default_factory=Demographics)
    behavior: Behavior = field(default_factory=Behavior)
    source: LeadSource = field(default_factory=LeadSource)
    intent: Intent = field(default_factory=Intent)

    # Flags
    is_referral: bool = False
    is_return_customer: bool = False
    previous_customer: bool = False
    do_not_contact: bool = False
    is_competitor: bool = False
    email_bounced: bool = False
    phone_bad: bool = False

    estimated_value: Optional[float] = None
    spam_score: Optional[float] = None

    # Inputs used only by the prediction models
    industry: Optional[str] = None
    preferred_language: Optional[str] = None
    category: Optional[str] = None
    company_size: Optional[str] = None  # enterprise, mid-market, small
    interaction_history: List[datetime] = field(default_factory=list)

    extra: Dict[str, Any] = field(default_factory=dict)
    schema_version: int = LEAD_SCHEMA_VERSION

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.phone or f"Lead #{self.id}"

    @property
    def has_contact_channel(self) -> bool:
        return bool(self.email) or bool(self.phone)

    @property
    def is_profile_complete(self) -> bool:
        return all(
            isinstance(v, str) and v.strip()
            for v in (self.name, self.email, self.phone, self.company)
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Lead":
        """Build a lead from a loosely-typed dict.

        Group attributes may be given nested (``{"intent": {"urgency": ...}}``)
        or flat at the top level. A top-level ``source`` string is read as the
        source origin.
        """
        if not isinstance(data, dict):
            logger.debug(f"Lead payload is not a mapping: {type(data).__name__}")
            data = {}

        known = set(_TOP_LEVEL_KEYS)
        demo = _group(data, "demographics", "demographic")
        beh = _group(data, "behavior", "behavioral")
        src = _group(data, "source")
        intent = _group(data, "intent")

        lead = cls(
            id=_as_str(data.get("id")) or "",
            name=_as_str(data.get("name")),
            email=_as_str(data.get("email")),
            phone=_as_str(data.get("phone")),
            company=_as_str(data.get("company")),
            demographics=Demographics(
                location=_as_str(_pick(demo, data, "location")),
                location_type=_as_key(_pick(demo, data, "location_type")),
                age=_as_int(_pick(demo, data, "age")),
                income_level=_as_key(_pick(demo, data, "income_level")),
                occupation=_as_str(_pick(demo, data, "occupation")),
                occupation_type=_as_key(_pick(demo, data, "occupation_type")),
            ),
            behavior=Behavior(
                email_opens=_as_int(_pick(beh, data, "email_opens")),
                link_clicks=_as_int(_pick(beh, data, "link_clicks")),
                page_views=_as_int(_pick(beh, data, "page_views")),
                form_submissions=_as_int(_pick(beh, data, "form_submissions")),
                first_response_minutes=_as_float(_pick(beh, data, "first_response_minutes")),
                interaction_count=_as_int(_pick(beh, data, "interaction_count")),
                preferred_channel=_as_key(_pick(beh, data, "preferred_channel")),
            ),
            source=LeadSource(
                origin=_as_key(src.get("origin") if src else data.get("source")),
                source_type=_as_key(_pick(src, data, "source_type")),
                quality=_as_key(_pick(src, data, "quality", "source_quality")),
                campaign=_as_campaign(_pick(src, data, "campaign")),
            ),
            intent=Intent(
                urgency=_as_key(_pick(intent, data, "urgency")),
                budget=_as_float(_pick(intent, data, "budget")),
                is_decision_maker=_as_optional_bool(_pick(intent, data, "is_decision_maker")),
                has_influence=_as_optional_bool(_pick(intent, data, "has_influence")),
                competitor=_as_competitor(_pick(intent, data, "competitor", "competitor_info")),
            ),
            is_referral=_as_bool(data.get("is_referral")),
            is_return_customer=_as_bool(data.get("is_return_customer")),
            previous_customer=_as_bool(data.get("previous_customer")),
            do_not_contact=_as_bool(data.get("do_not_contact")),
            is_competitor=_as_bool(data.get("is_competitor")),
            email_bounced=_as_bool(data.get("email_bounced")),
            phone_bad=_as_bool(data.get("phone_bad")),
            estimated_value=_as_float(data.get("estimated_value")),
            spam_score=_as_float(data.get("spam_score")),
            industry=_as_key(data.get("industry")),
            preferred_language=_as_key(data.get("preferred_language")),
            category=_as_key(data.get("category")),
            company_size=_as_key(data.get("company_size")),
            interaction_history=_as_timestamps(data.get("interaction_history")),
            extra={k: v for k, v in data.items() if k not in known},
        )
        return lead


_GROUP_KEYS = {
    "demographics": ["location", "location_type", "age", "income_level",
                     "occupation", "occupation_type"],
    "behavior": ["email_opens", "link_clicks", "page_views", "form_submissions",
                 "first_response_minutes", "interaction_count", "preferred_channel"],
    "source": ["source_type", "quality", "source_quality", "campaign"],
    "intent": ["urgency", "budget", "is_decision_maker", "has_influence",
               "competitor", "competitor_info"],
}

_TOP_LEVEL_KEYS = [
    "id", "name", "email", "phone", "company",
    "demographics", "demographic", "behavior", "behavioral", "source", "intent",
    "is_referral", "is_return_customer", "previous_customer", "do_not_contact",
    "is_competitor", "email_bounced", "phone_bad", "estimated_value", "spam_score",
    "industry", "preferred_language", "category", "company_size",
    "interaction_history", "schema_version",
] + [k for keys in _GROUP_KEYS.values() for k in keys]


def _group(data: Dict[str, Any], *names: str) -> Dict[str, Any]:
    for name in names:
        value = data.get(name)
        if isinstance(value, dict):
            return value
    return {}


def _pick(group: Dict[str, Any], data: Dict[str, Any], *keys: str) -> Any:
    """Read a key from its nested group first, then from the top level."""
    for key in keys:
        if group.get(key) is not None:
            return group[key]
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _as_str(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _as_key(value: Any) -> Optional[str]:
    """Normalize a categorical value for rule-table lookup."""
    text = _as_str(value)
    return text.lower() if text else None


def _as_int(value: Any) -> Optional[int]:
    number = _as_float(value)
    return int(number) if number is not None else None


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (OverflowError, TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _as_bool(value: Any) -> bool:
    return bool(_as_optional_bool(value))


def _as_optional_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "y", "1"):
            return True
        if lowered in ("false", "no", "n", "0"):
            return False
    return None


def _as_campaign(value: Any) -> Optional[Campaign]:
    if isinstance(value, Campaign):
        return value
    if isinstance(value, dict):
        return Campaign(
            name=_as_str(value.get("name")),
            is_targeted=_as_bool(value.get("is_targeted")),
            is_warm=_as_bool(value.get("is_warm")),
        )
    if isinstance(value, str) and value.strip():
        return Campaign(name=value.strip())
    return None


def _as_competitor(value: Any) -> Optional[CompetitorInfo]:
    if isinstance(value, CompetitorInfo):
        return value
    if isinstance(value, dict):
        return CompetitorInfo(
            mentioned=_as_bool(value.get("mentioned")),
            currently_using=_as_bool(value.get("currently_using")),
            name=_as_str(value.get("name")),
        )
    return None


def _as_timestamps(value: Any) -> List[datetime]:
    if not isinstance(value, list):
        return []
    timestamps = []
    for item in value:
        if isinstance(item, dict):
            item = item.get("timestamp")
        parsed = parse_timestamp(item)
        if parsed is not None:
            timestamps.append(parsed)
    return timestamps


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string or epoch seconds; ``None`` when unparseable."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            return None
    return None
