"""Persistence layer exceptions.

All store exceptions inherit from PersistenceError so callers can catch them
with a single except clause.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class RecordNotFoundError(PersistenceError):
    """Raised when an operation needs a record that does not exist.

    Optional lookups (``get``) return None instead of raising this.
    """

    pass


class DataIntegrityError(PersistenceError):
    """Raised when a write would break a store invariant.

    Examples:
    - Adding a listing whose id is already stored
    - Adding a listing with no owner
    - Adding a listing that duplicates one the owner already has
    """

    pass
