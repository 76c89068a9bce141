"""Rule engine for auto-classifying listings.

This module provides:
- Rule / RuleCondition / RuleSettings: rule definitions and global policy
- RuleEngine: evaluation, trigger bookkeeping and write-back modes
- RuleEvaluationResult / RuleDiagnostic: per-evaluation outcome
- ReevaluationMode: initial intake, bulk reconcile, targeted override
- preset_rules: starter rule set
"""

from .engine import RuleEngine
from .models import (
    ConditionLogic,
    ReevaluationMode,
    Rule,
    RuleCondition,
    RuleDiagnostic,
    RuleEvaluationResult,
    RuleField,
    RuleOperator,
    RuleSettings,
)
from .presets import preset_rules

__all__ = [
    "RuleEngine",
    "Rule",
    "RuleCondition",
    "RuleSettings",
    "RuleField",
    "RuleOperator",
    "ConditionLogic",
    "ReevaluationMode",
    "RuleEvaluationResult",
    "RuleDiagnostic",
    "preset_rules",
]
