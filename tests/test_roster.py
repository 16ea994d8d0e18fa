"""Tests for agent roster and interaction providers."""

import pytest
import requests

from lead_qualifier.team import roster as roster_module
from lead_qualifier.team.roster import (
    AgentProfile,
    HttpAgentRoster,
    HttpInteractionProvider,
)


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def json(self):
        return self.payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class TestAgentProfile:
    def test_from_dict(self):
        agent = AgentProfile.from_dict({
            "id": 7, "name": "Avery", "expertise": ["SaaS"], "languages": ["EN", "es"],
            "current_load": 3, "capacity": 10, "category_performance": {"Enterprise": 0.8},
        })
        assert agent.id == "7"
        assert agent.expertise == ["saas"]
        assert agent.languages == ["en", "es"]
        assert agent.performance_for("enterprise") == 0.8
        assert agent.performance_for("smb") == 0.7
        assert agent.utilization == 0.3

    def test_direct_construction_normalizes(self):
        agent = AgentProfile("1", "A", expertise=["SaaS"], languages=["ES"],
                             category_performance={"Enterprise": "0.8"})
        assert agent.expertise == ["saas"]
        assert agent.languages == ["es"]
        assert agent.performance_for("enterprise") == 0.8

    def test_zero_capacity_is_fully_utilized(self):
        assert AgentProfile("1", "A").utilization == 1.0


class TestHttpProviders:
    """Tests for the requests-backed collaborators."""

    def test_roster_fetch(self, monkeypatch):
        calls = []

        def fake_get(url, headers=None, timeout=None):
            calls.append((url, timeout))
            return FakeResponse({"agents": [{"id": "a1", "name": "Avery"}, {"name": "no id"}]})

        monkeypatch.setattr(roster_module.requests, "get", fake_get)
        agents = HttpAgentRoster("http://roster.local/agents").fetch_agents(timeout=1.5)

        assert [a.id for a in agents] == ["a1"]
        assert calls == [("http://roster.local/agents", 1.5)]

    def test_roster_http_error(self, monkeypatch):
        monkeypatch.setattr(roster_module.requests, "get",
                            lambda url, headers=None, timeout=None: FakeResponse([], 503))
        with pytest.raises(requests.HTTPError):
            HttpAgentRoster("http://roster.local/agents").fetch_agents(timeout=1.0)

    def test_interactions_fetch(self, monkeypatch):
        urls = []

        def fake_get(url, headers=None, timeout=None):
            urls.append(url)
            return FakeResponse([
                {"timestamp": "2024-06-03T15:20:00Z"},
                "2024-06-04T09:00:00+00:00",
                "not a date",
            ])

        monkeypatch.setattr(roster_module.requests, "get", fake_get)
        timestamps = HttpInteractionProvider("http://crm.local/leads/").fetch_interactions("42", timeout=1.0)

        assert urls == ["http://crm.local/leads/42/interactions"]
        assert [ts.hour for ts in timestamps] == [15, 9]
