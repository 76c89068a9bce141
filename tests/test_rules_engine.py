"""Unit tests for rule evaluation, trigger bookkeeping and write-back modes."""

from datetime import datetime, timezone

import pytest

from jobtracker.domain.models import ChangeSource, InterestStatus, SuitabilityStatus
from jobtracker.persistence.memory import InMemoryRuleStore
from jobtracker.rules import (
    ConditionLogic,
    ReevaluationMode,
    Rule,
    RuleCondition,
    RuleEngine,
    RuleField,
    RuleOperator,
    RuleSettings,
    preset_rules,
)
from jobtracker.rules import engine as engine_module

FIXED_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def engine():
    return RuleEngine(clock=lambda: FIXED_NOW)


def title_rule(name, value, **kwargs):
    return Rule(name=name, owner_id="user-1", field=RuleField.TITLE, value=value, **kwargs)


class TestRuleSelection:
    def test_disabled_and_foreign_rules_are_skipped(self, engine, make_listing):
        rules = [
            title_rule("disabled", "python", enabled=False, set_interest=InterestStatus.INTERESTED),
            Rule(name="foreign", owner_id="user-2", value="python", set_interest=InterestStatus.INTERESTED),
            Rule(name="global", owner_id=None, value="python", set_suitability=SuitabilityStatus.POSSIBLE),
        ]

        result = engine.evaluate(make_listing(), rules)

        assert result.matched_rule_names == ["global"]
        assert result.interest is None
        assert result.suitability == SuitabilityStatus.POSSIBLE

    def test_order_is_priority_then_name(self, engine):
        rules = [
            title_rule("b", "x", priority=1),
            title_rule("a", "x", priority=1),
            title_rule("c", "x", priority=5),
        ]
        ordered = engine.applicable_rules(rules, "user-1")
        assert [rule.name for rule in ordered] == ["c", "a", "b"]

    def test_auto_rules_disabled(self, engine, make_listing):
        rules = [title_rule("match", "python", set_interest=InterestStatus.INTERESTED)]

        result = engine.evaluate(make_listing(), rules, RuleSettings(enable_auto_rules=False))

        assert not result.has_matches
        assert rules[0].times_triggered == 0


class TestOutputResolution:
    def test_first_match_per_field_wins(self, engine, make_listing):
        rules = [
            title_rule("high", "python", priority=10, set_interest=InterestStatus.NOT_INTERESTED),
            title_rule(
                "low",
                "senior",
                priority=1,
                set_interest=InterestStatus.INTERESTED,
                set_suitability=SuitabilityStatus.POSSIBLE,
            ),
        ]

        result = engine.evaluate(make_listing(), rules)

        assert result.matched_rule_names == ["high", "low"]
        assert result.interest == InterestStatus.NOT_INTERESTED
        assert result.interest_rule_name == "high"
        assert result.suitability == SuitabilityStatus.POSSIBLE
        assert result.suitability_rule_name == "low"

    def test_stop_on_first_match(self, engine, make_listing):
        rules = [
            title_rule("first", "python", priority=2, set_interest=InterestStatus.INTERESTED),
            title_rule("second", "senior", priority=1, set_suitability=SuitabilityStatus.POSSIBLE),
        ]

        result = engine.evaluate(make_listing(), rules, RuleSettings(stop_on_first_match=True))

        assert result.matched_rule_names == ["first"]
        assert result.suitability is None
        assert rules[1].times_triggered == 0

    def test_rule_without_outputs_still_matches(self, engine, make_listing):
        rule = title_rule("watch", "python")
        result = engine.evaluate(make_listing(), [rule])
        assert result.matched_rule_names == ["watch"]
        assert rule.times_triggered == 1


class TestTriggerBookkeeping:
    def test_trigger_recorded_on_rule_and_store(self, make_listing):
        rule = title_rule("match", "python")
        store = InMemoryRuleStore([rule])
        engine = RuleEngine(trigger_sink=store, clock=lambda: FIXED_NOW)

        engine.evaluate(make_listing(), store.rules_for_owner("user-1"))
        engine.evaluate(make_listing(), store.rules_for_owner("user-1"))

        stored = store.get_rule(rule.id)
        assert stored.times_triggered == 2
        assert stored.last_triggered == FIXED_NOW

    def test_non_matching_rule_is_untouched(self, engine, make_listing):
        rule = title_rule("nope", "cobol")
        engine.evaluate(make_listing(), [rule])
        assert rule.times_triggered == 0
        assert rule.last_triggered is None


class TestConditions:
    @pytest.mark.parametrize(
        "operator,value,expected",
        [
            (RuleOperator.CONTAINS, "python", True),
            (RuleOperator.NOT_CONTAINS, "python", False),
            (RuleOperator.EQUALS, "senior python developer", True),
            (RuleOperator.NOT_EQUALS, "senior python developer", False),
            (RuleOperator.STARTS_WITH, "senior", True),
            (RuleOperator.ENDS_WITH, "developer", True),
            (RuleOperator.ENDS_WITH, "senior", False),
            (RuleOperator.REGEX, r"^senior\s+\w+", True),
        ],
    )
    def test_text_operators(self, engine, make_listing, operator, value, expected):
        rule = title_rule("r", value, operator=operator)
        assert engine.evaluate(make_listing(), [rule]).has_matches is expected

    def test_case_sensitive(self, engine, make_listing):
        rule = title_rule("r", "python", case_sensitive=True)
        assert not engine.evaluate(make_listing(), [rule]).has_matches

    def test_any_field_searches_text_fields(self, engine, make_listing):
        rule = Rule(name="r", field=RuleField.ANY, value="pipelines")
        assert engine.evaluate(make_listing(), [rule]).has_matches

    def test_skills_field(self, engine, make_listing):
        rule = Rule(name="r", field=RuleField.SKILLS, value="django")
        assert engine.evaluate(make_listing(skills=["Python", "Django"]), [rule]).has_matches
        assert not engine.evaluate(make_listing(skills=[]), [rule]).has_matches

    @pytest.mark.parametrize(
        "operator,is_remote,expected",
        [
            (RuleOperator.IS_TRUE, True, True),
            (RuleOperator.IS_TRUE, False, False),
            (RuleOperator.IS_FALSE, False, True),
            (RuleOperator.CONTAINS, True, False),
        ],
    )
    def test_is_remote(self, engine, make_listing, operator, is_remote, expected):
        rule = Rule(name="r", field=RuleField.IS_REMOTE, operator=operator, value="true")
        assert engine.evaluate(make_listing(is_remote=is_remote), [rule]).has_matches is expected

    @pytest.mark.parametrize(
        "operator,value,expected",
        [
            (RuleOperator.GREATER_THAN, "70", True),
            (RuleOperator.GREATER_THAN, "75", False),
            (RuleOperator.GREATER_THAN_OR_EQUAL, "75", True),
            (RuleOperator.LESS_THAN, "75", False),
            (RuleOperator.LESS_THAN_OR_EQUAL, "75", True),
            (RuleOperator.EQUALS, "75", True),
            (RuleOperator.NOT_EQUALS, "75", False),
        ],
    )
    def test_score_comparisons(self, engine, make_listing, operator, value, expected):
        rule = Rule(name="r", field=RuleField.SUITABILITY_SCORE, operator=operator, value=value)
        listing = make_listing(suitability_score=75)
        assert engine.evaluate(listing, [rule]).has_matches is expected

    def test_non_integer_threshold_is_no_match(self, engine, make_listing):
        rule = Rule(
            name="r",
            field=RuleField.SUITABILITY_SCORE,
            operator=RuleOperator.GREATER_THAN,
            value="high",
        )

        result = engine.evaluate(make_listing(suitability_score=90), [rule])

        assert not result.has_matches
        assert [d.reason for d in result.diagnostics] == ["invalid_threshold"]

    def test_numeric_operator_on_text_field_is_no_match(self, engine, make_listing):
        rule = title_rule("r", "1", operator=RuleOperator.GREATER_THAN)
        assert not engine.evaluate(make_listing(), [rule]).has_matches

    def test_invalid_regex_is_no_match(self, engine, make_listing):
        rule = title_rule("r", "([unclosed", operator=RuleOperator.REGEX)

        result = engine.evaluate(make_listing(), [rule])

        assert not result.has_matches
        assert result.diagnostics[0].reason == "invalid_regex"
        assert result.diagnostics[0].rule_name == "r"

    def test_regex_timeout_is_no_match(self, engine, make_listing, monkeypatch):
        class SlowPattern:
            def search(self, text, timeout=None):
                raise TimeoutError("regex timed out")

        monkeypatch.setattr(engine_module.regex, "compile", lambda *args, **kwargs: SlowPattern())
        rule = title_rule("slow", "(a+)+$", operator=RuleOperator.REGEX)

        result = engine.evaluate(make_listing(), [rule])

        assert not result.has_matches
        assert result.diagnostics[0].reason == "regex_timeout"

    def test_compound_and(self, engine, make_listing):
        rule = Rule(
            name="r",
            logic=ConditionLogic.AND,
            conditions=[
                RuleCondition(field=RuleField.TITLE, value="python"),
                RuleCondition(field=RuleField.LOCATION, value="glasgow"),
            ],
        )
        assert not engine.evaluate(make_listing(), [rule]).has_matches
        assert engine.evaluate(make_listing(location="Glasgow"), [rule]).has_matches

    def test_compound_or(self, engine, make_listing):
        rule = Rule(
            name="r",
            logic=ConditionLogic.OR,
            conditions=[
                RuleCondition(field=RuleField.TITLE, value="cobol"),
                RuleCondition(field=RuleField.COMPANY, value="acme"),
            ],
        )
        assert engine.evaluate(make_listing(), [rule]).has_matches

    def test_compound_ignores_simple_fields(self, engine, make_listing):
        rule = Rule(
            name="r",
            field=RuleField.TITLE,
            value="python",
            conditions=[RuleCondition(field=RuleField.TITLE, value="cobol")],
        )
        assert not engine.evaluate(make_listing(), [rule]).has_matches

    def test_simple_rule_ignores_logic(self, engine, make_listing):
        matching = title_rule("r", "python", logic=ConditionLogic.OR)
        missing = title_rule("r", "cobol", logic=ConditionLogic.OR)

        assert engine.evaluate(make_listing(), [matching]).has_matches
        assert not engine.evaluate(make_listing(), [missing]).has_matches

    def test_all_conditions(self):
        simple = title_rule("r", "python", operator=RuleOperator.STARTS_WITH)
        compound = Rule(
            name="c",
            conditions=[
                RuleCondition(field=RuleField.TITLE, value="python"),
                RuleCondition(field=RuleField.COMPANY, value="acme"),
            ],
        )

        assert simple.all_conditions() == [
            RuleCondition(field=RuleField.TITLE, operator=RuleOperator.STARTS_WITH, value="python")
        ]
        assert [c.field for c in compound.all_conditions()] == [RuleField.TITLE, RuleField.COMPANY]


class TestApplyModes:
    @pytest.fixture
    def result(self, engine, make_listing):
        rules = [
            title_rule(
                "classify",
                "python",
                set_interest=InterestStatus.INTERESTED,
                set_suitability=SuitabilityStatus.POSSIBLE,
                set_is_remote=True,
            )
        ]
        return engine.evaluate(make_listing(), rules)

    def test_initial_intake_writes_everything(self, engine, make_listing, result):
        listing = make_listing()

        updated, changes = engine.apply(listing, result, ReevaluationMode.INITIAL_INTAKE)

        assert updated.interest == InterestStatus.INTERESTED
        assert updated.suitability == SuitabilityStatus.POSSIBLE
        assert updated.is_remote is True
        assert [c.field_name for c in changes] == ["interest", "suitability", "is_remote"]
        assert all(c.change_source == ChangeSource.RULE for c in changes)
        assert all(c.rule_name == "classify" for c in changes)
        assert listing.interest == InterestStatus.NOT_RATED

    def test_bulk_reconcile_only_fills_defaults(self, engine, make_listing, result):
        listing = make_listing(interest=InterestStatus.NOT_INTERESTED)

        updated, changes = engine.apply(listing, result, ReevaluationMode.BULK_RECONCILE)

        assert updated.interest == InterestStatus.NOT_INTERESTED
        assert updated.suitability == SuitabilityStatus.POSSIBLE
        assert {c.field_name for c in changes} == {"suitability", "is_remote"}

    def test_targeted_override_replaces_values(self, engine, make_listing, result):
        listing = make_listing(
            interest=InterestStatus.NOT_INTERESTED,
            suitability=SuitabilityStatus.POSSIBLE,
        )

        updated, changes = engine.apply(listing, result, ReevaluationMode.TARGETED_OVERRIDE)

        assert updated.interest == InterestStatus.INTERESTED
        assert {c.field_name for c in changes} == {"interest", "is_remote"}
        interest_change = next(c for c in changes if c.field_name == "interest")
        assert interest_change.old_value == "not_interested"
        assert interest_change.new_value == "interested"

    def test_no_changes_when_values_already_match(self, engine, make_listing, result):
        listing = make_listing(
            interest=InterestStatus.INTERESTED,
            suitability=SuitabilityStatus.POSSIBLE,
            is_remote=True,
        )

        updated, changes = engine.apply(listing, result, ReevaluationMode.TARGETED_OVERRIDE)

        assert changes == []
        assert updated is listing


class TestPresetRules:
    def test_presets_are_owned_and_enabled(self):
        rules = preset_rules("user-1")
        assert len(rules) == 10
        assert all(rule.owner_id == "user-1" and rule.enabled for rule in rules)

    def test_presets_are_fresh_copies(self):
        first = preset_rules()
        second = preset_rules()
        assert first[0].id != second[0].id

    def test_junior_role_is_unsuitable(self, engine, make_listing):
        listing = make_listing(title="Junior Python Developer")

        result = engine.evaluate(listing, preset_rules("user-1"))

        assert result.suitability == SuitabilityStatus.UNSUITABLE
        assert result.suitability_rule_name == "Ignore junior roles"

    def test_remote_description_sets_remote_flag(self, engine, make_listing):
        listing = make_listing(description="This is a fully remote position.")

        result = engine.evaluate(listing, preset_rules("user-1"))

        assert result.is_remote is True
        assert result.is_remote_rule_name == "Flag remote jobs from description"
