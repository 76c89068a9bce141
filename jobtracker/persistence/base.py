"""Store interfaces the decision core depends on.

Implementations own storage and caching; the pipeline only talks to these
narrow per-owner interfaces. Reads return copies, so mutating a returned
model never changes stored state without an explicit ``save``.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, List, Optional

from jobtracker.domain.models import ChangeRecord, Listing
from jobtracker.rules.models import Rule, RuleSettings
from jobtracker.scoring.models import ScoringPreferences


class ListingStore(ABC):
    """Per-owner listing storage."""

    @abstractmethod
    def list_for_owner(self, owner_id: str) -> List[Listing]:
        """Return all listings owned by ``owner_id``."""

    @abstractmethod
    def get(self, owner_id: str, listing_id: str) -> Optional[Listing]:
        """Return one listing, or None if the owner has no such listing."""

    @abstractmethod
    def add(self, listing: Listing) -> None:
        """Insert a new listing.

        Raises:
            DataIntegrityError: If the insert would break the owner invariant
        """

    @abstractmethod
    def save(self, listing: Listing) -> None:
        """Replace a stored listing.

        Raises:
            RecordNotFoundError: If the listing is not stored
        """

    @abstractmethod
    def delete(self, owner_id: str, listing_id: str) -> bool:
        """Delete a listing; returns False if it was not stored."""


class RuleStore(ABC):
    """Rule definitions, global rule settings and trigger bookkeeping."""

    @abstractmethod
    def rules_for_owner(self, owner_id: str) -> List[Rule]:
        """Rules owned by ``owner_id`` plus unowned rules."""

    @abstractmethod
    def settings_for_owner(self, owner_id: str) -> RuleSettings:
        """Global rule policy for ``owner_id``."""

    @abstractmethod
    def record_trigger(self, rule_id: str, triggered_at: datetime) -> None:
        """Increment a rule's trigger count and set its last-triggered time."""


class PreferencesStore(ABC):
    @abstractmethod
    def preferences_for_owner(self, owner_id: str) -> ScoringPreferences:
        """Scoring preferences for ``owner_id`` (defaults if none stored)."""


class ChangeSink(ABC):
    """Receives structured change records for audit/history."""

    @abstractmethod
    def record(self, changes: Iterable[ChangeRecord]) -> None:
        """Accept a batch of change records."""
