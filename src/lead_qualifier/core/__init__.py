"""Core scoring engine for lead qualification."""

from .lead import Lead, Demographics, Behavior, LeadSource, Campaign, Intent, CompetitorInfo
from .rules import Category, FactorRule, RuleTable, DEFAULT_RULE_TABLES, DEFAULT_WEIGHTS
from .evaluator import RuleEvaluator, CategoryScores
from .scorer import ScoreAggregator, ScoreRecord, SignificantFactor, explain_score
from .stages import (
    QualificationStage,
    QualificationStageMachine,
    StageTransition,
    EventBus,
    TransitionLog,
    DEFAULT_STAGES,
    stage_for_score,
)
from .history import ScoreHistoryStore, score_trend
from .config import (
    ScoringConfig,
    CustomRule,
    RuleConfigStore,
    JsonRuleConfigStore,
    InMemoryRuleConfigStore,
    ActiveConfig,
    validate_config,
)
from .errors import LeadQualifierError, ConfigurationError

__all__ = [
    "Lead",
    "Demographics",
    "Behavior",
    "LeadSource",
    "Campaign",
    "Intent",
    "CompetitorInfo",
    "Category",
    "FactorRule",
    "RuleTable",
    "DEFAULT_RULE_TABLES",
    "DEFAULT_WEIGHTS",
    "RuleEvaluator",
    "CategoryScores",
    "ScoreAggregator",
    "ScoreRecord",
    "SignificantFactor",
    "explain_score",
    "QualificationStage",
    "QualificationStageMachine",
    "StageTransition",
    "EventBus",
    "TransitionLog",
    "DEFAULT_STAGES",
    "stage_for_score",
    "ScoreHistoryStore",
    "score_trend",
    "ScoringConfig",
    "CustomRule",
    "RuleConfigStore",
    "JsonRuleConfigStore",
    "InMemoryRuleConfigStore",
    "ActiveConfig",
    "validate_config",
    "LeadQualifierError",
    "ConfigurationError",
]
