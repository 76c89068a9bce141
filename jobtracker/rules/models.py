"""Data models for the rule engine.

Rules are pydantic models so they can be loaded from configuration and
validated once; evaluation results are plain dataclasses built fresh for
every evaluation.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from jobtracker.domain.models import InterestStatus, SuitabilityStatus
from jobtracker.utils.timestamps import ensure_utc, utc_now


class RuleField(str, Enum):
    """Listing attribute a condition reads."""

    TITLE = "title"
    DESCRIPTION = "description"
    COMPANY = "company"
    LOCATION = "location"
    SALARY = "salary"
    SOURCE = "source"
    SKILLS = "skills"
    IS_REMOTE = "is_remote"
    SUITABILITY_SCORE = "suitability_score"
    ANY = "any"


class RuleOperator(str, Enum):
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    REGEX = "regex"
    IS_TRUE = "is_true"
    IS_FALSE = "is_false"
    GREATER_THAN = "greater_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN = "less_than"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"


NUMERIC_OPERATORS = frozenset(
    {
        RuleOperator.GREATER_THAN,
        RuleOperator.GREATER_THAN_OR_EQUAL,
        RuleOperator.LESS_THAN,
        RuleOperator.LESS_THAN_OR_EQUAL,
    }
)

BOOLEAN_OPERATORS = frozenset({RuleOperator.IS_TRUE, RuleOperator.IS_FALSE})


class ConditionLogic(str, Enum):
    AND = "and"
    OR = "or"


class RuleCondition(BaseModel):
    """A single field/operator/value test."""

    field: RuleField = Field(RuleField.TITLE)
    operator: RuleOperator = Field(RuleOperator.CONTAINS)
    value: str = Field("", description="Operand; a pattern for regex, a threshold for numeric operators")
    case_sensitive: bool = Field(False)

    @field_validator("value", mode="before")
    @classmethod
    def none_to_empty(cls, v: Optional[str]) -> str:
        return "" if v is None else str(v)


class Rule(BaseModel):
    """A named, owned, priority-ordered classification directive.

    A rule either carries a single condition (``field``/``operator``/``value``)
    or, when ``conditions`` is non-empty, a compound condition set combined
    with ``logic``. Up to three outputs may be set; a rule with none still
    counts as matched.
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    owner_id: Optional[str] = Field(None, description="None means the rule applies to every owner")
    name: str = Field(..., min_length=1)
    enabled: bool = Field(True)
    priority: int = Field(0, description="Higher runs first")

    field: RuleField = Field(RuleField.TITLE)
    operator: RuleOperator = Field(RuleOperator.CONTAINS)
    value: str = Field("")
    case_sensitive: bool = Field(False)

    conditions: List[RuleCondition] = Field(default_factory=list)
    logic: ConditionLogic = Field(ConditionLogic.AND)

    set_interest: Optional[InterestStatus] = Field(None)
    set_suitability: Optional[SuitabilityStatus] = Field(None)
    set_is_remote: Optional[bool] = Field(None)

    times_triggered: int = Field(0, ge=0)
    last_triggered: Optional[datetime] = Field(None)
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Rule name cannot be empty or whitespace-only")
        return stripped

    @field_validator("value", mode="before")
    @classmethod
    def none_to_empty(cls, v: Optional[str]) -> str:
        return "" if v is None else str(v)

    @field_validator("last_triggered", "created_at")
    @classmethod
    def to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @property
    def has_compound_conditions(self) -> bool:
        return len(self.conditions) > 0

    def simple_condition(self) -> RuleCondition:
        """The rule's single condition as a RuleCondition."""
        return RuleCondition(
            field=self.field,
            operator=self.operator,
            value=self.value,
            case_sensitive=self.case_sensitive,
        )

    def all_conditions(self) -> List[RuleCondition]:
        """Compound conditions when present, else the single condition."""
        return list(self.conditions) if self.has_compound_conditions else [self.simple_condition()]


class RuleSettings(BaseModel):
    """Global rule policy for one owner."""

    enable_auto_rules: bool = Field(True)
    stop_on_first_match: bool = Field(False)


class ReevaluationMode(str, Enum):
    """How resolved rule outputs are written back onto a listing.

    - INITIAL_INTAKE: every resolved value is written
    - BULK_RECONCILE: written only where the listing is still at its default
    - TARGETED_OVERRIDE: written wherever it differs from the current value
    """

    INITIAL_INTAKE = "initial_intake"
    BULK_RECONCILE = "bulk_reconcile"
    TARGETED_OVERRIDE = "targeted_override"


@dataclass
class RuleDiagnostic:
    """A condition that could not be evaluated and was treated as no match.

    Attributes:
        rule_name: Rule the condition belongs to
        field: Field the condition reads
        operator: Operator it applies
        value: Offending pattern or threshold
        reason: Short machine-readable cause (invalid_regex, regex_timeout, ...)
    """

    rule_name: str
    field: RuleField
    operator: RuleOperator
    value: str
    reason: str


@dataclass
class RuleEvaluationResult:
    """Outcome of evaluating one listing against a rule set.

    At most one value per output field, each tagged with the rule that
    resolved it. Never persisted.

    Attributes:
        matched_rules: Rules that matched, in evaluation order
        interest: Resolved interest label, if any rule set one
        suitability: Resolved suitability label, if any rule set one
        is_remote: Resolved remote flag, if any rule set one
        interest_rule_name: Name of the rule that set ``interest``
        suitability_rule_name: Name of the rule that set ``suitability``
        is_remote_rule_name: Name of the rule that set ``is_remote``
        diagnostics: Conditions that failed to evaluate
    """

    matched_rules: List[Rule] = field(default_factory=list)
    interest: Optional[InterestStatus] = None
    suitability: Optional[SuitabilityStatus] = None
    is_remote: Optional[bool] = None
    interest_rule_name: Optional[str] = None
    suitability_rule_name: Optional[str] = None
    is_remote_rule_name: Optional[str] = None
    diagnostics: List[RuleDiagnostic] = field(default_factory=list)

    @property
    def has_matches(self) -> bool:
        return len(self.matched_rules) > 0

    @property
    def matched_rule_names(self) -> List[str]:
        return [rule.name for rule in self.matched_rules]
