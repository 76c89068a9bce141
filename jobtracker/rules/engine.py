"""Rule engine for auto-classifying listings.

This module implements the classification logic that:
1. Selects the owner's enabled rules in priority order
2. Evaluates simple and compound (AND/OR) conditions against a listing
3. Resolves at most one value per output field (first match per field wins)
4. Records trigger bookkeeping for every matched rule
5. Writes resolved values back onto a listing under one of three modes
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple

import regex

from jobtracker.domain.models import (
    ChangeRecord,
    ChangeSource,
    ChangeType,
    InterestStatus,
    Listing,
    SuitabilityStatus,
)
from jobtracker.logging import get_logger
from jobtracker.utils.timestamps import utc_now

from .models import (
    BOOLEAN_OPERATORS,
    NUMERIC_OPERATORS,
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

logger = get_logger(__name__, component="rules")

DEFAULT_REGEX_TIMEOUT = 1.0

# Fields searched by RuleField.ANY, in order.
ANY_FIELDS = (
    RuleField.TITLE,
    RuleField.DESCRIPTION,
    RuleField.COMPANY,
    RuleField.LOCATION,
    RuleField.SALARY,
    RuleField.SOURCE,
)

_TEXT_ATTRIBUTES = {
    RuleField.TITLE: "title",
    RuleField.DESCRIPTION: "description",
    RuleField.COMPANY: "company",
    RuleField.LOCATION: "location",
    RuleField.SALARY: "salary",
    RuleField.SOURCE: "source",
}


class RuleEngine:
    """Evaluates an owner's rules against listings.

    Responsibilities:
    - Filter to enabled rules for the listing's owner (plus unowned rules)
    - Order by priority descending, then name ascending
    - Resolve interest, suitability and remote outputs, first match per field
    - Honour stop-on-first-match
    - Update trigger count and last-triggered time on matched rules
    - Treat malformed conditions as no match and report them as diagnostics
    """

    def __init__(
        self,
        trigger_sink=None,
        regex_timeout: float = DEFAULT_REGEX_TIMEOUT,
        clock: Callable[[], datetime] = utc_now,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize RuleEngine.

        Args:
            trigger_sink: Object with ``record_trigger(rule_id, triggered_at)``,
                normally a RuleStore. Optional.
            regex_timeout: Seconds a single regex search may run
            clock: Source of "now" for last-triggered timestamps
            logger_instance: Logger instance (defaults to module logger)
        """
        self.trigger_sink = trigger_sink
        self.regex_timeout = regex_timeout
        self.clock = clock
        self.logger = logger_instance or logger
        self._lock = threading.Lock()

    def applicable_rules(self, rules: Iterable[Rule], owner_id: Optional[str]) -> List[Rule]:
        """Enabled rules for ``owner_id`` and unowned rules, in evaluation order."""
        selected = [
            rule
            for rule in rules
            if rule.enabled and (rule.owner_id is None or rule.owner_id == owner_id)
        ]
        return sorted(selected, key=lambda rule: (-rule.priority, rule.name))

    def evaluate(
        self,
        listing: Listing,
        rules: Iterable[Rule],
        settings: Optional[RuleSettings] = None,
    ) -> RuleEvaluationResult:
        """Evaluate a listing against a rule set.

        Args:
            listing: Listing to classify
            rules: Candidate rules; filtering and ordering happen here
            settings: Global rule policy (defaults to RuleSettings())

        Returns:
            RuleEvaluationResult with matched rules and resolved outputs
        """
        settings = settings or RuleSettings()
        result = RuleEvaluationResult()

        if not settings.enable_auto_rules:
            self.logger.debug(
                "Auto rules disabled, skipping evaluation",
                extra={"event": "rules.evaluation.disabled", "listing_id": listing.id},
            )
            return result

        ordered = self.applicable_rules(rules, listing.owner_id)

        for rule in ordered:
            if not self._rule_matches(rule, listing, result):
                continue

            result.matched_rules.append(rule)

            if rule.set_interest is not None and result.interest is None:
                result.interest = rule.set_interest
                result.interest_rule_name = rule.name
            if rule.set_suitability is not None and result.suitability is None:
                result.suitability = rule.set_suitability
                result.suitability_rule_name = rule.name
            if rule.set_is_remote is not None and result.is_remote is None:
                result.is_remote = rule.set_is_remote
                result.is_remote_rule_name = rule.name

            self._record_trigger(rule)

            self.logger.info(
                f"Rule '{rule.name}' matched listing",
                extra={
                    "event": "rules.rule.matched",
                    "rule_name": rule.name,
                    "listing_id": listing.id,
                    "title": listing.title,
                },
            )

            if settings.stop_on_first_match:
                break

        if not result.has_matches:
            self.logger.debug(
                "No rules matched listing",
                extra={
                    "event": "rules.evaluation.no_match",
                    "listing_id": listing.id,
                    "rules_considered": len(ordered),
                },
            )

        return result

    def apply(
        self,
        listing: Listing,
        result: RuleEvaluationResult,
        mode: ReevaluationMode = ReevaluationMode.INITIAL_INTAKE,
    ) -> Tuple[Listing, List[ChangeRecord]]:
        """Write resolved outputs onto a copy of the listing.

        - INITIAL_INTAKE: every resolved value is written
        - BULK_RECONCILE: only onto fields still at their default
          (interest not_rated, suitability not_checked, is_remote False)
        - TARGETED_OVERRIDE: any resolved value that differs is written

        Args:
            listing: Listing to update (not mutated)
            result: Evaluation result for that listing
            mode: Write policy

        Returns:
            (updated listing, one ChangeRecord per field that actually changed)
        """
        outputs = (
            ("interest", result.interest, result.interest_rule_name, InterestStatus.NOT_RATED),
            ("suitability", result.suitability, result.suitability_rule_name, SuitabilityStatus.NOT_CHECKED),
            ("is_remote", result.is_remote, result.is_remote_rule_name, False),
        )

        updates = {}
        changes: List[ChangeRecord] = []

        for field_name, new_value, rule_name, default in outputs:
            if new_value is None:
                continue
            current = getattr(listing, field_name)
            if mode == ReevaluationMode.BULK_RECONCILE and current != default:
                continue
            if current == new_value:
                continue

            updates[field_name] = new_value
            changes.append(
                ChangeRecord(
                    listing_id=listing.id,
                    owner_id=listing.owner_id,
                    field_name=field_name,
                    old_value=_render(current),
                    new_value=_render(new_value),
                    change_type=ChangeType.MODIFIED,
                    change_source=ChangeSource.RULE,
                    rule_name=rule_name,
                    description=(
                        f"{field_name} changed from {_render(current)} to "
                        f"{_render(new_value)} by rule '{rule_name}'"
                    ),
                )
            )

        if not updates:
            return listing, changes
        return listing.model_copy(update=updates), changes

    def _record_trigger(self, rule: Rule) -> None:
        with self._lock:
            now = self.clock()
            rule.times_triggered += 1
            rule.last_triggered = now
            if self.trigger_sink is not None:
                self.trigger_sink.record_trigger(rule.id, now)

    def _rule_matches(self, rule: Rule, listing: Listing, result: RuleEvaluationResult) -> bool:
        conditions = rule.all_conditions()
        if rule.logic == ConditionLogic.AND:
            return all(self._condition_matches(rule, c, listing, result) for c in conditions)
        return any(self._condition_matches(rule, c, listing, result) for c in conditions)

    def _condition_matches(
        self,
        rule: Rule,
        condition: RuleCondition,
        listing: Listing,
        result: RuleEvaluationResult,
    ) -> bool:
        field = condition.field
        operator = condition.operator

        if field == RuleField.IS_REMOTE:
            if operator == RuleOperator.IS_TRUE:
                return listing.is_remote
            if operator == RuleOperator.IS_FALSE:
                return not listing.is_remote
            return False

        if field == RuleField.SUITABILITY_SCORE and (
            operator in NUMERIC_OPERATORS
            or operator in (RuleOperator.EQUALS, RuleOperator.NOT_EQUALS)
        ):
            return self._score_matches(rule, condition, listing.suitability_score, result)

        if operator in BOOLEAN_OPERATORS or operator in NUMERIC_OPERATORS:
            # Only meaningful for is_remote / suitability_score.
            return False

        if field == RuleField.ANY:
            texts = [getattr(listing, _TEXT_ATTRIBUTES[f]) for f in ANY_FIELDS]
        elif field == RuleField.SKILLS:
            texts = [" ".join(listing.skills)]
        elif field == RuleField.SUITABILITY_SCORE:
            texts = [str(listing.suitability_score)]
        else:
            texts = [getattr(listing, _TEXT_ATTRIBUTES[field])]

        if operator == RuleOperator.REGEX:
            return self._regex_matches(rule, condition, texts, result)

        return any(_text_matches(text, operator, condition.value, condition.case_sensitive) for text in texts)

    def _score_matches(
        self,
        rule: Rule,
        condition: RuleCondition,
        score: int,
        result: RuleEvaluationResult,
    ) -> bool:
        try:
            threshold = int(condition.value.strip())
        except ValueError:
            self._diagnose(rule, condition, "invalid_threshold", result)
            return False

        operator = condition.operator
        if operator == RuleOperator.GREATER_THAN:
            return score > threshold
        if operator == RuleOperator.GREATER_THAN_OR_EQUAL:
            return score >= threshold
        if operator == RuleOperator.LESS_THAN:
            return score < threshold
        if operator == RuleOperator.LESS_THAN_OR_EQUAL:
            return score <= threshold
        if operator == RuleOperator.EQUALS:
            return score == threshold
        return score != threshold

    def _regex_matches(
        self,
        rule: Rule,
        condition: RuleCondition,
        texts: List[str],
        result: RuleEvaluationResult,
    ) -> bool:
        flags = 0 if condition.case_sensitive else regex.IGNORECASE
        try:
            pattern = regex.compile(condition.value, flags)
        except regex.error as e:
            self._diagnose(rule, condition, "invalid_regex", result, error=str(e))
            return False

        for text in texts:
            try:
                if pattern.search(text, timeout=self.regex_timeout):
                    return True
            except TimeoutError:
                self._diagnose(rule, condition, "regex_timeout", result)
                return False
        return False

    def _diagnose(
        self,
        rule: Rule,
        condition: RuleCondition,
        reason: str,
        result: RuleEvaluationResult,
        error: Optional[str] = None,
    ) -> None:
        result.diagnostics.append(
            RuleDiagnostic(
                rule_name=rule.name,
                field=condition.field,
                operator=condition.operator,
                value=condition.value,
                reason=reason,
            )
        )
        self.logger.warning(
            f"Rule '{rule.name}' condition treated as no match: {reason}",
            extra={
                "event": f"rules.condition.{reason}",
                "rule_name": rule.name,
                "field": condition.field.value,
                "operator": condition.operator.value,
                "pattern": condition.value,
                "error": error,
            },
        )


def _text_matches(text: str, operator: RuleOperator, value: str, case_sensitive: bool) -> bool:
    if not case_sensitive:
        text = text.casefold()
        value = value.casefold()

    if operator == RuleOperator.CONTAINS:
        return value in text
    if operator == RuleOperator.NOT_CONTAINS:
        return value not in text
    if operator == RuleOperator.EQUALS:
        return text == value
    if operator == RuleOperator.NOT_EQUALS:
        return text != value
    if operator == RuleOperator.STARTS_WITH:
        return text.startswith(value)
    if operator == RuleOperator.ENDS_WITH:
        return text.endswith(value)
    return False


def _render(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)
