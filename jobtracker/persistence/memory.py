"""In-memory store implementations.

Used by the command line and the test suite. Every store guards its state
with its own lock and hands out copies of stored models.
"""

import logging
import threading
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from jobtracker.dedup.service import Deduplicator
from jobtracker.domain.models import ChangeRecord, Listing
from jobtracker.logging import get_logger
from jobtracker.rules.models import Rule, RuleSettings
from jobtracker.scoring.models import ScoringPreferences

from .base import ChangeSink, ListingStore, PreferencesStore, RuleStore
from .exceptions import DataIntegrityError, RecordNotFoundError

logger = get_logger(__name__, component="persistence")


class InMemoryListingStore(ListingStore):
    """Listings keyed by owner, then by listing id, in insertion order.

    ``add`` enforces the owner invariant: no two listings of one owner may
    share a canonical url or a title+company pair.
    """

    def __init__(
        self,
        deduplicator: Optional[Deduplicator] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.deduplicator = deduplicator or Deduplicator()
        self.logger = logger_instance or logger
        self._listings: Dict[str, Dict[str, Listing]] = {}
        self._lock = threading.Lock()

    def list_for_owner(self, owner_id: str) -> List[Listing]:
        with self._lock:
            return [item.model_copy(deep=True) for item in self._listings.get(owner_id, {}).values()]

    def get(self, owner_id: str, listing_id: str) -> Optional[Listing]:
        with self._lock:
            item = self._listings.get(owner_id, {}).get(listing_id)
            return item.model_copy(deep=True) if item is not None else None

    def add(self, listing: Listing) -> None:
        if listing.owner_id is None:
            raise DataIntegrityError(f"Listing {listing.id} has no owner")

        with self._lock:
            owned = self._listings.setdefault(listing.owner_id, {})
            if listing.id in owned:
                raise DataIntegrityError(f"Listing {listing.id} already exists")

            duplicate = self.deduplicator.find_duplicate(listing, owned.values())
            if duplicate is not None:
                raise DataIntegrityError(
                    f"Listing {listing.id} duplicates {duplicate.listing_id} "
                    f"(matched on {duplicate.reason})"
                )

            owned[listing.id] = listing.model_copy(deep=True)

        self.logger.debug(
            "Listing stored",
            extra={"event": "persistence.listing.added", "listing_id": listing.id},
        )

    def save(self, listing: Listing) -> None:
        with self._lock:
            owned = self._listings.get(listing.owner_id or "", {})
            if listing.id not in owned:
                raise RecordNotFoundError(f"Listing {listing.id} not found")
            owned[listing.id] = listing.model_copy(deep=True)

    def delete(self, owner_id: str, listing_id: str) -> bool:
        with self._lock:
            owned = self._listings.get(owner_id, {})
            return owned.pop(listing_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return sum(len(owned) for owned in self._listings.values())


class InMemoryRuleStore(RuleStore):
    """Rules keyed by id, plus per-owner rule settings."""

    def __init__(
        self,
        rules: Optional[Iterable[Rule]] = None,
        default_settings: Optional[RuleSettings] = None,
    ):
        self._rules: Dict[str, Rule] = {}
        self._settings: Dict[str, RuleSettings] = {}
        self._default_settings = default_settings or RuleSettings()
        self._lock = threading.Lock()
        for rule in rules or []:
            self.add_rule(rule)

    def add_rule(self, rule: Rule) -> None:
        with self._lock:
            self._rules[rule.id] = rule.model_copy(deep=True)

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        with self._lock:
            rule = self._rules.get(rule_id)
            return rule.model_copy(deep=True) if rule is not None else None

    def set_settings(self, owner_id: str, settings: RuleSettings) -> None:
        with self._lock:
            self._settings[owner_id] = settings.model_copy()

    def rules_for_owner(self, owner_id: str) -> List[Rule]:
        with self._lock:
            return [
                rule.model_copy(deep=True)
                for rule in self._rules.values()
                if rule.owner_id is None or rule.owner_id == owner_id
            ]

    def settings_for_owner(self, owner_id: str) -> RuleSettings:
        with self._lock:
            return self._settings.get(owner_id, self._default_settings).model_copy()

    def record_trigger(self, rule_id: str, triggered_at: datetime) -> None:
        with self._lock:
            rule = self._rules.get(rule_id)
            if rule is None:
                raise RecordNotFoundError(f"Rule {rule_id} not found")
            rule.times_triggered += 1
            rule.last_triggered = triggered_at


class InMemoryPreferencesStore(PreferencesStore):
    """Per-owner scoring preferences with a shared default."""

    def __init__(self, default: Optional[ScoringPreferences] = None):
        self._default = default or ScoringPreferences()
        self._preferences: Dict[str, ScoringPreferences] = {}
        self._lock = threading.Lock()

    def set_preferences(self, owner_id: str, preferences: ScoringPreferences) -> None:
        with self._lock:
            self._preferences[owner_id] = preferences.model_copy(deep=True)

    def preferences_for_owner(self, owner_id: str) -> ScoringPreferences:
        with self._lock:
            return self._preferences.get(owner_id, self._default).model_copy(deep=True)


class CollectingChangeSink(ChangeSink):
    """Keeps every change record it receives, in arrival order."""

    def __init__(self):
        self._records: List[ChangeRecord] = []
        self._lock = threading.Lock()

    def record(self, changes: Iterable[ChangeRecord]) -> None:
        with self._lock:
            self._records.extend(changes)

    @property
    def records(self) -> List[ChangeRecord]:
        with self._lock:
            return list(self._records)

    def for_listing(self, listing_id: str) -> List[ChangeRecord]:
        return [record for record in self.records if record.listing_id == listing_id]
