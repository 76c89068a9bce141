"""Tests for configuration loading and validation."""

import textwrap
from decimal import Decimal

import pytest

from jobtracker.config import ConfigurationError, load_config
from jobtracker.config.environment import load_environment_config
from jobtracker.config.loader import parse_config
from jobtracker.config.models import AppConfig, DedupConfig
from jobtracker.config.validators import check_for_warnings
from jobtracker.rules.models import RuleField, RuleOperator


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("LOG_LEVEL", "LOG_FORMAT", "ENVIRONMENT"):
        monkeypatch.delenv(name, raising=False)


def write_config(tmp_path, body):
    path = tmp_path / "config.yaml"
    path.write_text(textwrap.dedent(body), encoding="utf-8")
    return path


class TestLoadConfig:
    def test_full_config(self, tmp_path):
        path = write_config(
            tmp_path,
            """
            owner_id: user-1
            rule_settings:
              stop_on_first_match: true
            rules:
              - name: Remote roles
                field: description
                operator: regex
                value: '\\bremote\\b'
                set_is_remote: true
                priority: 5
              - name: Remote senior roles
                logic: and
                conditions:
                  - field: is_remote
                    operator: is_true
                  - field: title
                    value: senior
                set_interest: interested
            scoring:
              preferred_skills: [python, django]
              min_desired_salary: 50000
              remote_weight: 2
            dedup:
              query_id_sites:
                www.Jobs.Example.org: id
            logging:
              level: DEBUG
              format: json
            advanced:
              regex_timeout_seconds: 0.5
            """,
        )

        app_config, env_config = load_config(path)

        assert app_config.owner_id == "user-1"
        assert app_config.rule_settings.stop_on_first_match is True
        assert [rule.name for rule in app_config.rules] == ["Remote roles", "Remote senior roles"]
        assert app_config.rules[0].operator == RuleOperator.REGEX
        assert app_config.rules[1].conditions[0].field == RuleField.IS_REMOTE
        assert app_config.scoring.min_desired_salary == Decimal(50000)
        assert app_config.scoring.remote_weight == 2.0
        assert app_config.dedup.query_id_sites == {"jobs.example.org": "id"}
        assert app_config.logging.level == "DEBUG"
        assert app_config.logging.format == "json"
        assert app_config.advanced.regex_timeout_seconds == 0.5
        assert env_config.environment == "local"

    def test_empty_file_gives_defaults(self, tmp_path):
        app_config, _ = load_config(write_config(tmp_path, ""))

        assert app_config.owner_id == "default"
        assert app_config.rules == []
        assert app_config.dedup.query_id_sites == {"indeed.com": "jk"}
        assert app_config.logging.level == "INFO"

    def test_preset_rules_included(self, tmp_path):
        app_config, _ = load_config(write_config(tmp_path, "include_preset_rules: true\n"))
        assert len(app_config.all_rules()) == 10

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "missing.yaml")

    def test_fallback_search(self, tmp_path, monkeypatch):
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "config.yaml").write_text("owner_id: found\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)

        app_config, _ = load_config()

        assert app_config.owner_id == "found"

    def test_no_file_anywhere(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(ConfigurationError) as exc_info:
            load_config()
        assert "Tried: config.yaml" in str(exc_info.value)

    def test_invalid_yaml(self, tmp_path):
        path = write_config(tmp_path, "rules: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Failed to parse YAML"):
            load_config(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(write_config(tmp_path, "- a\n- b\n"))

    def test_unknown_operator(self, tmp_path):
        path = write_config(
            tmp_path,
            """
            rules:
              - name: Bad
                operator: fuzzy
            """,
        )
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)
        assert any("rules -> 0 -> operator" in error for error in exc_info.value.errors)

    def test_rule_without_name(self, tmp_path):
        path = write_config(tmp_path, "rules:\n  - field: title\n")
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)
        assert "Missing required field: rules -> 0 -> name" in exc_info.value.errors

    def test_invalid_regex_warns_but_loads(self, tmp_path):
        path = write_config(
            tmp_path,
            """
            rules:
              - name: Broken
                operator: regex
                value: '([a-z'
                set_interest: interested
            """,
        )
        with pytest.warns(UserWarning, match="invalid regex"):
            app_config, _ = load_config(path)
        assert app_config.rules[0].name == "Broken"

    def test_environment_overrides_are_read(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")
        monkeypatch.setenv("ENVIRONMENT", "staging")

        _, env_config = load_config(write_config(tmp_path, ""))

        assert env_config.log_level == "WARNING"
        assert env_config.environment == "staging"


class TestAppConfigValidation:
    def test_blank_owner_rejected(self):
        with pytest.raises(ConfigurationError):
            parse_config({"owner_id": "   "})

    def test_duplicate_rule_ids_rejected(self):
        rule = {"id": "r1", "name": "a"}
        with pytest.raises(ConfigurationError, match="validation failed"):
            parse_config({"rules": [rule, dict(rule, name="b")]})

    def test_regex_timeout_bounds(self):
        with pytest.raises(ConfigurationError):
            parse_config({"advanced": {"regex_timeout_seconds": 60}})

    def test_salary_range_checked(self):
        with pytest.raises(ConfigurationError):
            parse_config({"scoring": {"min_desired_salary": 60000, "max_desired_salary": 50000}})

    def test_dedup_hosts_normalized(self):
        config = DedupConfig(slug_sites={"WWW.Example.com": r"/job/(\w+)"})
        assert config.slug_sites == {"example.com": r"/job/(\w+)"}

    def test_dedup_empty_value_rejected(self):
        with pytest.raises(ValueError):
            DedupConfig(query_id_sites={"example.com": " "})

    def test_defaults(self):
        config = AppConfig()
        assert config.include_preset_rules is False
        assert config.all_rules() == []


class TestConfigWarnings:
    def test_clean_config_has_no_warnings(self):
        rules = [{"name": "Remote", "field": "is_remote", "operator": "is_true", "set_interest": "interested"}]
        assert check_for_warnings({"rules": rules}) == []

    def test_disabled_rule(self):
        warnings = check_for_warnings({"rules": [{"name": "Off", "enabled": False, "set_is_remote": True}]})
        assert warnings == ["Rule 'Off' is disabled and will be skipped"]

    def test_rule_without_outputs(self):
        warnings = check_for_warnings({"rules": [{"name": "Watch"}]})
        assert "sets no outputs" in warnings[0]

    def test_non_integer_score_threshold(self):
        rule = {
            "name": "High",
            "field": "suitability_score",
            "operator": "greater_than",
            "value": "high",
            "set_interest": "interested",
        }
        warnings = check_for_warnings({"rules": [rule]})
        assert "non-integer 'high'" in warnings[0]

    def test_compound_conditions_are_checked(self):
        rule = {
            "name": "Compound",
            "conditions": [{"field": "title", "operator": "regex", "value": "(unclosed"}],
            "set_interest": "interested",
        }
        warnings = check_for_warnings({"rules": [rule]})
        assert len(warnings) == 1
        assert "invalid regex" in warnings[0]

    def test_duplicate_names(self):
        rules = [
            {"name": "Same", "set_is_remote": True},
            {"name": "same ", "set_is_remote": True},
        ]
        warnings = check_for_warnings({"rules": rules})
        assert warnings == ["Duplicate rule names make match logs ambiguous: same"]

    def test_non_list_rules_ignored(self):
        assert check_for_warnings({"rules": "nope"}) == []


class TestEnvironmentConfig:
    def test_defaults(self):
        env_config = load_environment_config()
        assert env_config.log_level is None
        assert env_config.log_format is None
        assert env_config.environment == "local"

    def test_invalid_values(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        monkeypatch.setenv("LOG_FORMAT", "xml")

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        assert len(exc_info.value.errors) == 2
