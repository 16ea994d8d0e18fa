"""Agent roster and interaction-history providers.

These are I/O-bound collaborators. Every fetch takes a timeout; callers are
expected to fall back to defaults when a fetch fails.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from ..core.lead import parse_timestamp

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_PERFORMANCE = 0.7


@dataclass
class AgentProfile:
    """A sales agent as seen by the matcher."""

    id: str
    name: str
    expertise: List[str] = field(default_factory=list)
    languages: List[str] = field(default_factory=lambda: ["en"])
    current_load: int = 0
    capacity: int = 0
    category_performance: Dict[str, float] = field(default_factory=dict)

    def __post_init__(self):
        # Matching compares lowercased lead attributes
        self.expertise = [str(e).lower() for e in self.expertise]
        self.languages = [str(lang).lower() for lang in self.languages]
        self.category_performance = {
            str(k).lower(): float(v) for k, v in self.category_performance.items()
        }

    @property
    def utilization(self) -> float:
        if self.capacity <= 0:
            return 1.0
        return self.current_load / self.capacity

    def performance_for(self, category: Optional[str]) -> float:
        """Historical success rate (0-1) with leads of a category."""
        if category and category in self.category_performance:
            return max(0.0, min(1.0, self.category_performance[category]))
        return DEFAULT_CATEGORY_PERFORMANCE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AgentProfile":
        return cls(
            id=str(data["id"]),
            name=data.get("name", str(data["id"])),
            expertise=list(data.get("expertise", [])),
            languages=list(data.get("languages", ["en"])),
            current_load=int(data.get("current_load", 0)),
            capacity=int(data.get("capacity", 0)),
            category_performance=dict(data.get("category_performance", {})),
        )


class AgentRoster(ABC):
    """Source of candidate agents."""

    @abstractmethod
    def fetch_agents(self, timeout: float) -> List[AgentProfile]:
        pass


class InteractionProvider(ABC):
    """Source of historical interaction timestamps per lead."""

    @abstractmethod
    def fetch_interactions(self, lead_id: str, timeout: float) -> List[datetime]:
        pass


class StaticAgentRoster(AgentRoster):
    """Fixed in-memory roster."""

    def __init__(self, agents: Optional[List[AgentProfile]] = None):
        self.agents = list(agents or [])

    def fetch_agents(self, timeout: float) -> List[AgentProfile]:
        return list(self.agents)


class StaticInteractionProvider(InteractionProvider):
    """In-memory interaction history keyed by lead id."""

    def __init__(self, history: Optional[Dict[str, List[datetime]]] = None):
        self.history = dict(history or {})

    def fetch_interactions(self, lead_id: str, timeout: float) -> List[datetime]:
        return list(self.history.get(lead_id, []))


class HttpAgentRoster(AgentRoster):
    """Roster served as a JSON list by an agent-management service."""

    def __init__(self, url: str, headers: Optional[Dict[str, str]] = None):
        self.url = url
        self.headers = headers or {"Accept": "application/json"}

    def fetch_agents(self, timeout: float) -> List[AgentProfile]:
        response = requests.get(self.url, headers=self.headers, timeout=timeout)
        response.raise_for_status()
        payload = response.json()
        if isinstance(payload, dict):
            payload = payload.get("agents", [])

        agents = []
        for item in payload:
            try:
                agents.append(AgentProfile.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed agent record: {e}")
        return agents


class HttpInteractionProvider(InteractionProvider):
    """Interaction timestamps from ``{base_url}/{lead_id}/interactions``."""

    def __init__(self, base_url: str, headers: Optional[Dict[str, str]] = None):
        self.base_url = base_url.rstrip("/")
        self.headers = headers or {"Accept": "application/json"}

    def fetch_interactions(self, lead_id: str, timeout: float) -> List[datetime]:
        url = f"{self.base_url}/{lead_id}/interactions"
        response = requests.get(url, headers=self.headers, timeout=timeout)
        response.raise_for_status()
        payload = response.json()
        if isinstance(payload, dict):
            payload = payload.get("interactions", [])

        timestamps = []
        for item in payload:
            if isinstance(item, dict):
                item = item.get("timestamp")
            parsed = parse_timestamp(item)
            if parsed is not None:
                timestamps.append(parsed)
        return timestamps
