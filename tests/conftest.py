"""Shared fixtures for the job tracker test suite."""

import logging

import pytest

from jobtracker.domain.models import Listing
from jobtracker.logging.context import clear_log_context
from jobtracker.persistence.memory import (
    CollectingChangeSink,
    InMemoryListingStore,
    InMemoryPreferencesStore,
    InMemoryRuleStore,
)
from jobtracker.pipeline import ListingPipeline
from jobtracker.scoring.models import ScoringPreferences


@pytest.fixture(autouse=True)
def clean_log_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo handler changes made by configure_logging."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def make_listing():
    """Factory for listings owned by user-1 unless told otherwise."""

    def _make(**overrides) -> Listing:
        fields = {
            "owner_id": "user-1",
            "title": "Senior Python Developer",
            "company": "Acme Ltd",
            "description": "Build data pipelines in Python.",
            "location": "Edinburgh",
            "url": "https://www.linkedin.com/jobs/view/1001/",
        }
        fields.update(overrides)
        return Listing(**fields)

    return _make


@pytest.fixture
def listing_store():
    return InMemoryListingStore()


@pytest.fixture
def rule_store():
    return InMemoryRuleStore()


@pytest.fixture
def preferences_store():
    """Preferences with only the remote factor active, so scores are predictable."""
    return InMemoryPreferencesStore(
        ScoringPreferences(
            skills_weight=0,
            salary_weight=0,
            location_weight=0,
            keyword_weight=0,
            company_weight=0,
            learning_weight=0,
            remote_weight=1,
            prefer_remote=True,
        )
    )


@pytest.fixture
def change_sink():
    return CollectingChangeSink()


@pytest.fixture
def pipeline(listing_store, rule_store, preferences_store, change_sink):
    return ListingPipeline(
        listing_store=listing_store,
        rule_store=rule_store,
        preferences_store=preferences_store,
        change_sink=change_sink,
    )
