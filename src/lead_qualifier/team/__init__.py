"""Agent roster and interaction-history collaborators."""

from .roster import (
    AgentProfile,
    AgentRoster,
    InteractionProvider,
    StaticAgentRoster,
    StaticInteractionProvider,
    HttpAgentRoster,
    HttpInteractionProvider,
)

__all__ = [
    'AgentProfile',
    'AgentRoster',
    'InteractionProvider',
    'StaticAgentRoster',
    'StaticInteractionProvider',
    'HttpAgentRoster',
    'HttpInteractionProvider',
]
