"""Exceptions raised by the scoring engine."""

from typing import List, Optional


class LeadQualifierError(Exception):
    """Base class for engine errors."""


class ConfigurationError(LeadQualifierError):
    """A scoring configuration failed validation and was not activated."""

    def __init__(self, message: str, problems: Optional[List[str]] = None):
        self.problems = problems or []
        if self.problems:
            message = f"{message}: {'; '.join(self.problems)}"
        super().__init__(message)
