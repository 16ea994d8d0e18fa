"""Scoring configuration: weights, custom rules and the stage table.

A ScoringConfig is an immutable snapshot. Changes build a new snapshot,
validate it, and swap it in through ActiveConfig; a scoring pass reads the
pointer once, so a swap never lands mid-evaluation.
"""

import json
import math
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .errors import ConfigurationError
from .rules import Category, RuleTable, DEFAULT_RULE_TABLES, DEFAULT_WEIGHTS, MAX_POINTS
from .stages import QualificationStage, DEFAULT_STAGES

logger = logging.getLogger(__name__)

CONFIG_SCHEMA_VERSION = 1
WEIGHT_TOLERANCE = 1e-6


@dataclass(frozen=True)
class CustomRule:
    """User-defined value mapping layered over the default rule tables."""

    category: str
    factor: str
    value: str
    points: float
    id: str = field(default_factory=lambda: f"rule_{uuid.uuid4().hex[:12]}")
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category,
            "factor": self.factor,
            "value": self.value,
            "points": self.points,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class ScoringConfig:
    """Immutable scoring configuration snapshot."""

    weights: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))
    custom_rules: Tuple[CustomRule, ...] = ()
    stages: Tuple[QualificationStage, ...] = tuple(DEFAULT_STAGES)
    version: int = 0
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def rule_tables(self) -> Dict[Category, RuleTable]:
        """Default tables with this config's weights and custom rules applied."""
        cached = self.__dict__.get("_rule_tables")
        if cached is None:
            cached = build_rule_tables(self.weights, self.custom_rules)
            object.__setattr__(self, "_rule_tables", cached)
        return cached

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": CONFIG_SCHEMA_VERSION,
            "version": self.version,
            "weights": dict(self.weights),
            "custom_rules": [rule.to_dict() for rule in self.custom_rules],
            "stages": [stage.to_dict() for stage in self.stages],
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScoringConfig":
        """Parse a stored config. Structural problems raise ConfigurationError."""
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration must be a JSON object")
        try:
            weights = {str(k): float(v) for k, v in data.get("weights", DEFAULT_WEIGHTS).items()}
            rules = tuple(
                CustomRule(
                    category=str(r["category"]),
                    factor=str(r["factor"]),
                    value=str(r["value"]).lower(),
                    points=float(r["points"]),
                    id=r.get("id") or f"rule_{uuid.uuid4().hex[:12]}",
                    created_at=(datetime.fromisoformat(r["created_at"])
                                if r.get("created_at") else datetime.now()),
                )
                for r in data.get("custom_rules", [])
            )
            if "stages" in data:
                stages = tuple(
                    QualificationStage(str(s["id"]), str(s.get("name", s["id"])), float(s["min_score"]))
                    for s in data["stages"]
                )
            else:
                stages = tuple(DEFAULT_STAGES)
            updated_at = (datetime.fromisoformat(data["updated_at"])
                          if data.get("updated_at") else datetime.now())
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ConfigurationError("Malformed scoring configuration", [str(e)])

        return cls(
            weights=weights,
            custom_rules=rules,
            stages=stages,
            version=int(data.get("version", 0)),
            updated_at=updated_at,
        )


def build_rule_tables(
    weights: Dict[str, float],
    custom_rules: Tuple[CustomRule, ...] = (),
) -> Dict[Category, RuleTable]:
    tables = {}
    for category, table in DEFAULT_RULE_TABLES.items():
        tables[category] = table.with_weight(weights.get(category.value, table.weight))
    for rule in custom_rules:
        category = Category(rule.category)
        tables[category] = tables[category].with_points(rule.factor, rule.value, rule.points)
    return tables


def validate_config(config: ScoringConfig) -> List[str]:
    """Collect every problem with a config; an empty list means it is valid."""
    problems: List[str] = []
    known = {cat.value for cat in Category}

    missing = known - set(config.weights)
    if missing:
        problems.append(f"missing weights for {', '.join(sorted(missing))}")
    unknown = set(config.weights) - known
    if unknown:
        problems.append(f"unknown weight categories {', '.join(sorted(unknown))}")
    for name, weight in config.weights.items():
        if not 0.0 <= weight <= 1.0:
            problems.append(f"weight for {name} must be between 0 and 1, got {weight}")
    total = sum(config.weights.values())
    if abs(total - 1.0) > WEIGHT_TOLERANCE:
        problems.append(f"weights must sum to 1, got {total:.4f}")

    if not config.stages:
        problems.append("stage table is empty")
    elif config.stages[0].min_score != 0:
        problems.append(f"lowest stage '{config.stages[0].id}' must start at 0, got {config.stages[0].min_score}")
    seen = set()
    for stage in config.stages:
        if not math.isfinite(stage.min_score):
            problems.append(f"stage '{stage.id}' threshold must be a finite number, got {stage.min_score}")
        if stage.id in seen:
            problems.append(f"duplicate stage id '{stage.id}'")
        seen.add(stage.id)
    for lower, upper in zip(config.stages, config.stages[1:]):
        if upper.min_score <= lower.min_score:
            problems.append(
                f"stage '{upper.id}' threshold {upper.min_score} must exceed "
                f"'{lower.id}' threshold {lower.min_score}"
            )

    for rule in config.custom_rules:
        problems.extend(validate_custom_rule(rule))

    return problems


def validate_custom_rule(rule: CustomRule) -> List[str]:
    problems = []
    if rule.category not in {cat.value for cat in Category}:
        problems.append(f"rule {rule.id}: unknown category '{rule.category}'")
    if not rule.factor or not rule.value:
        problems.append(f"rule {rule.id}: factor and value are required")
    if not 0.0 <= rule.points <= MAX_POINTS:
        problems.append(f"rule {rule.id}: points must be between 0 and {MAX_POINTS:.0f}")
    return problems


def ensure_valid(config: ScoringConfig):
    problems = validate_config(config)
    if problems:
        raise ConfigurationError("Invalid scoring configuration", problems)


# === Config stores ===

class RuleConfigStore(ABC):
    """Where scoring configuration is persisted."""

    @abstractmethod
    def load_config(self) -> ScoringConfig:
        pass

    @abstractmethod
    def save_config(self, config: ScoringConfig):
        """Persist a config; raises ConfigurationError if it is invalid."""


class InMemoryRuleConfigStore(RuleConfigStore):
    """Keeps the config in memory only."""

    def __init__(self, config: Optional[ScoringConfig] = None):
        self._config = config or ScoringConfig()

    def load_config(self) -> ScoringConfig:
        return self._config

    def save_config(self, config: ScoringConfig):
        ensure_valid(config)
        self._config = config


class JsonRuleConfigStore(RuleConfigStore):
    """Manage and persist scoring configuration as a JSON file."""

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = Path(config_path) if config_path else (
            Path.home() / ".lead-qualifier" / "scoring_config.json"
        )

    def load_config(self) -> ScoringConfig:
        """Load configuration from file, falling back to defaults."""
        if not self.config_path.exists():
            return ScoringConfig()
        try:
            with open(self.config_path, 'r') as f:
                config = ScoringConfig.from_dict(json.load(f))
            ensure_valid(config)
            return config
        except (OSError, json.JSONDecodeError, ConfigurationError) as e:
            logger.error(f"Error loading scoring config from {self.config_path}: {e}")
        return ScoringConfig()

    def save_config(self, config: ScoringConfig):
        """Save configuration to file."""
        ensure_valid(config)
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.config_path.with_suffix(".tmp")
        with open(tmp_path, 'w') as f:
            json.dump(config.to_dict(), f, indent=2)
        tmp_path.replace(self.config_path)


class ActiveConfig:
    """Versioned pointer to the live config snapshot."""

    def __init__(self, store: Optional[RuleConfigStore] = None):
        self.store = store or InMemoryRuleConfigStore()
        self._lock = threading.RLock()
        initial = self.store.load_config()
        ensure_valid(initial)
        self._current = initial

    def snapshot(self) -> ScoringConfig:
        return self._current

    @property
    def version(self) -> int:
        return self._current.version

    def activate(self, config: ScoringConfig) -> ScoringConfig:
        """Validate, persist and swap in a new config.

        On any validation error the previous config stays live.
        """
        with self._lock:
            candidate = replace(
                config,
                version=self._current.version + 1,
                updated_at=datetime.now(),
            )
            ensure_valid(candidate)
            self.store.save_config(candidate)
            self._current = candidate
        logger.info(f"Activated scoring config v{candidate.version}")
        return candidate

    def update_weights(self, weights: Dict[str, Any]) -> ScoringConfig:
        try:
            updates = {str(k): float(v) for k, v in weights.items()}
        except (AttributeError, TypeError, ValueError) as e:
            raise ConfigurationError("Weights must be numeric", [str(e)])
        with self._lock:
            current = self._current
            return self.activate(replace(current, weights={**current.weights, **updates}))

    def add_rule(self, category: str, factor: str, value: str, points: float) -> CustomRule:
        try:
            points = float(points)
        except (TypeError, ValueError) as e:
            raise ConfigurationError("Rule points must be numeric", [str(e)])
        rule = CustomRule(
            category=str(category).strip().lower(),
            factor=str(factor).strip().lower(),
            value=str(value).strip().lower(),
            points=points,
        )
        with self._lock:
            current = self._current
            self.activate(replace(current, custom_rules=current.custom_rules + (rule,)))
        return rule

    def set_stages(self, stages: List[QualificationStage]) -> ScoringConfig:
        with self._lock:
            return self.activate(replace(self._current, stages=tuple(stages)))
