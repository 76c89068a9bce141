"""Structured logging helpers.

Modules obtain loggers through :func:`get_logger`, optionally tagging every
record with the component that emitted it. Formatting and handler setup live
in :mod:`jobtracker.logging.config`; scoped context fields (owner, listing)
live in :mod:`jobtracker.logging.context`.
"""

import logging
from typing import Optional, Union


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that stamps a fixed ``component`` onto each record.

    Fields passed through ``extra=`` at the call site are merged on top of the
    adapter's own fields, so a call may still override ``component``.
    """

    def process(self, msg, kwargs):
        call_extra = kwargs.get("extra") or {}
        kwargs["extra"] = {**self.extra, **call_extra}
        return msg, kwargs


def get_logger(
    name: str, component: Optional[str] = None
) -> Union[logging.Logger, ComponentLoggerAdapter]:
    """Return a logger, wrapped with a component tag when one is given.

    Args:
        name: Logger name (normally ``__name__``)
        component: Component label such as "rules" or "pipeline"

    Returns:
        Plain logger, or a ComponentLoggerAdapter when ``component`` is set

    Example:
        >>> logger = get_logger(__name__, component="scoring")
        >>> logger.debug("Score computed", extra={"event": "scoring.listing.scored"})
    """
    base = logging.getLogger(name)
    if component:
        return ComponentLoggerAdapter(base, {"component": component})
    return base


__all__ = ["ComponentLoggerAdapter", "get_logger"]
