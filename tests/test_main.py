"""Tests for the command line entry point."""

import json
import textwrap
from unittest.mock import patch

import pytest

from jobtracker.config.exceptions import ConfigurationError
from jobtracker.domain.models import Listing
from jobtracker.main import format_summary, load_listings_file, load_runtime_config, main
from jobtracker.pipeline import IntakeResult
from jobtracker.rules.models import RuleEvaluationResult

CONFIG = """
owner_id: user-1
rules:
  - name: Remote in description
    field: description
    value: remote
    set_is_remote: true
scoring:
  skills_weight: 0
  salary_weight: 0
  location_weight: 0
  keyword_weight: 0
  company_weight: 0
  learning_weight: 0
logging:
  level: WARNING
"""

LISTINGS = """
- title: Senior Python Developer
  company: Acme Ltd
  url: https://www.linkedin.com/jobs/view/1001/
  description: Fully remote team
- title: Senior Python Developer
  company: Acme Ltd
  url: https://www.linkedin.com/jobs/view/1001/?trk=abc
- title: Data Engineer
  company: Globex
  url: https://uk.indeed.com/viewjob?jk=abc123
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("LOG_LEVEL", "LOG_FORMAT", "ENVIRONMENT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG, encoding="utf-8")
    return path


@pytest.fixture
def listings_file(tmp_path):
    path = tmp_path / "listings.yaml"
    path.write_text(LISTINGS, encoding="utf-8")
    return path


class TestParseSalaryFlag:
    def test_prints_range(self, capsys):
        assert main(["--parse-salary", "£40,000 - £60,000"]) == 0
        assert capsys.readouterr().out.strip() == "min=40000 max=60000"

    def test_prints_dashes_when_unknown(self, capsys):
        assert main(["--parse-salary", "Competitive"]) == 0
        assert capsys.readouterr().out.strip() == "min=- max=-"


class TestLoadRuntimeConfig:
    def test_log_level_priority(self, config_file, monkeypatch):
        _, env_config = load_runtime_config(config_file, None)
        assert env_config.log_level == "WARNING"
        assert env_config.log_format == "key-value"

        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        _, env_config = load_runtime_config(config_file, None)
        assert env_config.log_level == "ERROR"

        _, env_config = load_runtime_config(config_file, "DEBUG")
        assert env_config.log_level == "DEBUG"


class TestLoadListingsFile:
    def test_yaml(self, listings_file):
        assert len(load_listings_file(listings_file)) == 3

    def test_json(self, tmp_path):
        path = tmp_path / "listings.json"
        path.write_text(json.dumps([{"title": "Developer"}]), encoding="utf-8")
        assert load_listings_file(path) == [{"title": "Developer"}]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_listings_file(path) == []

    def test_missing(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_listings_file(tmp_path / "nope.yaml")

    def test_not_a_list(self, tmp_path):
        path = tmp_path / "listing.yaml"
        path.write_text("title: Developer\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="list"):
            load_listings_file(path)

    def test_unparsable_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("[{", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Failed to parse"):
            load_listings_file(path)


class TestMain:
    def test_intake_summary(self, config_file, listings_file, capsys):
        exit_code = main(["--config", str(config_file), "--listings", str(listings_file)])

        out = capsys.readouterr().out
        assert exit_code == 0
        lines = out.strip().splitlines()
        assert lines[0].startswith("STATUS")
        assert lines[1].startswith("accepted")
        assert "100" in lines[1]
        assert lines[2].startswith("duplicate")
        assert lines[3].startswith("accepted")
        assert "Data Engineer @ Globex" in lines[3]

    def test_reconcile_and_purge(self, config_file, listings_file, capsys):
        exit_code = main(
            [
                "--config", str(config_file),
                "--listings", str(listings_file),
                "--reconcile",
                "--purge-duplicates",
            ]
        )

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "Reconciled: 2 evaluated, 0 updated, 0 skipped" in out
        assert "Purged: 0 duplicates" in out

    def test_invalid_listing_sets_exit_code(self, config_file, tmp_path, capsys):
        path = tmp_path / "listings.yaml"
        path.write_text(
            textwrap.dedent(
                """
                - title: Developer
                  suitability_score: 500
                - title: Tester
                  company: Initech
                """
            ),
            encoding="utf-8",
        )

        exit_code = main(["--config", str(config_file), "--listings", str(path)])

        assert exit_code == 1
        assert "Tester @ Initech" in capsys.readouterr().out

    def test_missing_config(self, tmp_path, capsys):
        exit_code = main(["--config", str(tmp_path / "missing.yaml")])
        assert exit_code == 1
        assert "Configuration Error" in capsys.readouterr().err

    def test_bad_listings_file(self, config_file, tmp_path, capsys):
        exit_code = main(["--config", str(config_file), "--listings", str(tmp_path / "none.yaml")])
        assert exit_code == 1
        assert "Listings file not found" in capsys.readouterr().err

    @patch("jobtracker.main.load_runtime_config")
    def test_keyboard_interrupt(self, mock_load, capsys):
        mock_load.side_effect = KeyboardInterrupt()
        assert main([]) == 130
        assert "Interrupted" in capsys.readouterr().err

    @patch("jobtracker.main.load_runtime_config")
    def test_unexpected_error(self, mock_load, capsys):
        mock_load.side_effect = RuntimeError("boom")
        assert main([]) == 1
        assert "Fatal error: boom" in capsys.readouterr().err


class TestFormatSummary:
    def test_statuses(self):
        listing = Listing(title="Developer", company="Acme")
        results = [
            IntakeResult(False, RuleEvaluationResult(), 42, listing, accepted=True),
            IntakeResult(True, RuleEvaluationResult(), 0, listing),
            IntakeResult(False, RuleEvaluationResult(), 0, listing, skipped_reason="missing_owner"),
        ]

        lines = format_summary(results).splitlines()

        assert [line.split()[0] for line in lines[1:]] == ["accepted", "duplicate", "skipped"]
        assert "42" in lines[1]
        assert lines[1].endswith("Developer @ Acme")
