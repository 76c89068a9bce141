"""Non-fatal checks on raw rule configuration."""

import warnings
from typing import Any, Dict, Iterator, List, Tuple

import regex

_SCORE_OPERATORS = frozenset(
    {
        "equals",
        "not_equals",
        "greater_than",
        "greater_than_or_equal",
        "less_than",
        "less_than_or_equal",
    }
)


def _conditions(rule: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    conditions = rule.get("conditions") or []
    if isinstance(conditions, list) and conditions:
        for condition in conditions:
            if isinstance(condition, dict):
                yield condition
    else:
        yield rule


def _rule_name(rule: Dict[str, Any], idx: int) -> str:
    return str(rule.get("name") or f"rules[{idx}]")


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Find rule definitions that will load but probably not do what was meant.

    Nothing reported here stops the configuration from loading; at evaluation
    time the affected conditions simply never match.

    Args:
        config_dict: Parsed YAML, before pydantic validation

    Returns:
        List of warning messages
    """
    warning_messages = []

    rules = config_dict.get("rules", [])
    if not isinstance(rules, list):
        return warning_messages

    names: List[Tuple[str, int]] = []
    for idx, rule in enumerate(rules):
        if not isinstance(rule, dict):
            continue
        name = _rule_name(rule, idx)
        names.append((name.strip().lower(), idx))

        if rule.get("enabled", True) is False:
            warning_messages.append(f"Rule '{name}' is disabled and will be skipped")

        if all(rule.get(key) is None for key in ("set_interest", "set_suitability", "set_is_remote")):
            warning_messages.append(f"Rule '{name}' sets no outputs; matches only update its trigger count")

        for condition in _conditions(rule):
            operator = str(condition.get("operator", "contains"))
            field = str(condition.get("field", "title"))
            value = condition.get("value")
            value = "" if value is None else str(value)

            if operator == "regex":
                try:
                    regex.compile(value)
                except regex.error as e:
                    warning_messages.append(
                        f"Rule '{name}' has an invalid regex '{value}' ({e}); it will never match"
                    )

            if field == "suitability_score" and operator in _SCORE_OPERATORS:
                try:
                    int(value.strip())
                except ValueError:
                    warning_messages.append(
                        f"Rule '{name}' compares suitability_score with non-integer '{value}'; "
                        "it will never match"
                    )

    seen = set()
    duplicates = set()
    for name, _ in names:
        if name in seen:
            duplicates.add(name)
        seen.add(name)
    if duplicates:
        warning_messages.append(
            f"Duplicate rule names make match logs ambiguous: {', '.join(sorted(duplicates))}"
        )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Report each message as a UserWarning."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
