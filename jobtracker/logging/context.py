"""Scoped logging context.

Fields pushed here (owner_id, listing_id, mode, ...) are copied onto every log
record emitted inside the scope by :class:`~jobtracker.logging.config.ContextualFilter`.
Backed by ``contextvars`` so concurrent intake threads never see each other's
fields.
"""

from contextvars import ContextVar, Token
from typing import Any, Dict, Optional

_LOG_CONTEXT: ContextVar[Dict[str, Any]] = ContextVar("jobtracker_log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the fields active in the current scope."""
    return dict(_LOG_CONTEXT.get())


def push_log_context(**fields: Any) -> Token:
    """Layer ``fields`` over the current context.

    Returns:
        Token to hand back to :func:`pop_log_context`
    """
    merged = {**_LOG_CONTEXT.get(), **fields}
    return _LOG_CONTEXT.set(merged)


def pop_log_context(token: Token) -> None:
    """Restore the context that was active before the matching push."""
    _LOG_CONTEXT.reset(token)


def clear_log_context() -> None:
    """Drop every context field (used by tests)."""
    _LOG_CONTEXT.set({})


class log_context:
    """Context manager that pushes fields on entry and restores on exit.

    Example:
        >>> with log_context(owner_id="u-1", listing_id="abc"):
        ...     logger.info("Listing accepted")
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self._token: Optional[Token] = None

    def __enter__(self) -> "log_context":
        self._token = push_log_context(**self.fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if self._token is not None:
            pop_log_context(self._token)
            self._token = None
        return False
