"""Settings read from environment variables (and ``.env`` via python-dotenv)."""

import os
from typing import Optional

from .exceptions import ConfigurationError

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
VALID_LOG_FORMATS = ("json", "key-value")


class EnvironmentConfig:
    """Process-level overrides; None means "use the config file value"."""

    def __init__(
        self,
        log_level: Optional[str] = None,
        log_format: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        self.log_level = log_level
        self.log_format = log_format
        self.environment = environment or "local"


def _read(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    return value.strip() or None


def load_environment_config() -> EnvironmentConfig:
    """
    Read LOG_LEVEL, LOG_FORMAT and ENVIRONMENT.

    All three are optional. LOG_LEVEL is upper-cased and LOG_FORMAT
    lower-cased before checking; ENVIRONMENT is a free-form label stamped on
    every log record (default "local").

    Raises:
        ConfigurationError: If LOG_LEVEL or LOG_FORMAT holds an unknown value
    """
    log_level = _read("LOG_LEVEL")
    log_format = _read("LOG_FORMAT")
    problems = []

    if log_level is not None:
        log_level = log_level.upper()
        if log_level not in VALID_LOG_LEVELS:
            problems.append(f"LOG_LEVEL '{log_level}' is not one of {', '.join(VALID_LOG_LEVELS)}")

    if log_format is not None:
        log_format = log_format.lower()
        if log_format not in VALID_LOG_FORMATS:
            problems.append(f"LOG_FORMAT '{log_format}' is not one of {', '.join(VALID_LOG_FORMATS)}")

    if problems:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=problems,
            suggestions=[
                "Check the values in your .env file",
                "Unset the variable to fall back to the config file setting",
            ],
        )

    return EnvironmentConfig(
        log_level=log_level,
        log_format=log_format,
        environment=_read("ENVIRONMENT"),
    )
