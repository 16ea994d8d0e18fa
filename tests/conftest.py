"""Shared fixtures for lead qualifier tests."""

import tempfile
from pathlib import Path

import pytest

from lead_qualifier.core.config import InMemoryRuleConfigStore, JsonRuleConfigStore
from lead_qualifier.engine import LeadScoringEngine


STRONG_LEAD = {
    "id": "lead-strong",
    "name": "Dana Whitfield",
    "email": "dana@example.com",
    "phone": "614-555-0101",
    "company": "Whitfield Logistics",
    "demographics": {
        "location_type": "urban",
        "age": 34,
        "income_level": "high",
        "occupation_type": "professional",
    },
    "behavior": {
        "email_opens": 6,
        "link_clicks": 4,
        "page_views": 10,
        "form_submissions": 2,
        "first_response_minutes": 3,
        "interaction_count": 8,
        "preferred_channel": "phone",
    },
    "source": {
        "origin": "referral",
        "source_type": "referral",
        "quality": "verified",
        "campaign": {"name": "spring", "is_targeted": True},
    },
    "intent": {
        "urgency": "immediate",
        "budget": 50000,
        "is_decision_maker": True,
    },
    "is_referral": True,
    "company_size": "enterprise",
}


@pytest.fixture
def strong_lead():
    return dict(STRONG_LEAD)


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config_path(temp_dir):
    return temp_dir / "scoring_config.json"


@pytest.fixture
def json_store(config_path):
    return JsonRuleConfigStore(config_path)


@pytest.fixture
def engine():
    engine = LeadScoringEngine(config_store=InMemoryRuleConfigStore())
    yield engine
    engine.close()
