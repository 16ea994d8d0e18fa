"""Pydantic models for the scoring API."""

from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


class LeadScoreRequest(BaseModel):
    """A lead to score.

    Only ``id`` is checked here. Every other attribute is passed through as
    sent and normalized by ``Lead.from_dict``, which drops values it cannot
    read instead of rejecting the lead. Unknown fields become custom
    attributes.
    """

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1)
    name: Optional[Any] = None
    email: Optional[Any] = None
    phone: Optional[Any] = None
    company: Optional[Any] = None
    demographics: Optional[Any] = None
    behavior: Optional[Any] = None
    source: Optional[Any] = None
    intent: Optional[Any] = None
    is_referral: Optional[Any] = None
    is_return_customer: Optional[Any] = None
    previous_customer: Optional[Any] = None
    do_not_contact: Optional[Any] = None
    is_competitor: Optional[Any] = None
    email_bounced: Optional[Any] = None
    phone_bad: Optional[Any] = None
    estimated_value: Optional[Any] = None
    spam_score: Optional[Any] = None
    industry: Optional[Any] = None
    preferred_language: Optional[Any] = None
    category: Optional[Any] = None
    company_size: Optional[Any] = None
    interaction_history: Optional[Any] = None


class ScoreResponse(BaseModel):
    success: bool = True
    stage: str
    record: Dict[str, Any]
    prediction: Optional[Dict[str, Any]] = None


class WeightsUpdate(BaseModel):
    weights: Dict[str, float]
    rescore: bool = False


class RuleCreate(BaseModel):
    category: str
    factor: str
    value: str
    points: float


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    detail: str
