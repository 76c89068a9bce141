"""Store interfaces and in-memory implementations.

Public API:
    # Interfaces
    - ListingStore: per-owner listing reads and writes
    - RuleStore: rules, rule settings and trigger bookkeeping
    - PreferencesStore: scoring preferences
    - ChangeSink: receives change records

    # In-memory implementations
    - InMemoryListingStore, InMemoryRuleStore, InMemoryPreferencesStore,
      CollectingChangeSink

    # Exceptions
    - PersistenceError: Base exception for all persistence errors
    - RecordNotFoundError: Required record not found
    - DataIntegrityError: Store invariant violations

Example usage:
    >>> from jobtracker.persistence import InMemoryListingStore
    >>> store = InMemoryListingStore()
    >>> store.list_for_owner("user-1")
    []
"""

from .base import ChangeSink, ListingStore, PreferencesStore, RuleStore
from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .memory import (
    CollectingChangeSink,
    InMemoryListingStore,
    InMemoryPreferencesStore,
    InMemoryRuleStore,
)

__all__ = [
    # Interfaces
    "ListingStore",
    "RuleStore",
    "PreferencesStore",
    "ChangeSink",
    # In-memory implementations
    "InMemoryListingStore",
    "InMemoryRuleStore",
    "InMemoryPreferencesStore",
    "CollectingChangeSink",
    # Exceptions
    "PersistenceError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
