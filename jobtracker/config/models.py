"""Pydantic schema for config.yaml."""

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, Field, field_validator, model_validator

from jobtracker.dedup.urls import DEFAULT_QUERY_ID_SITES, DEFAULT_SLUG_SITES
from jobtracker.rules.models import Rule, RuleSettings
from jobtracker.rules.presets import preset_rules
from jobtracker.scoring.models import ScoringPreferences


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class DedupConfig(BaseModel):
    """Site tables used for url canonicalization."""

    query_id_sites: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_QUERY_ID_SITES),
        description="Host -> query parameter carrying the job id",
    )
    slug_sites: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_SLUG_SITES),
        description="Host -> regex whose first group is the job slug",
    )

    @field_validator("query_id_sites", "slug_sites")
    @classmethod
    def normalize_hosts(cls, v: Dict[str, str]) -> Dict[str, str]:
        """Lower-case hosts and drop a leading 'www.'."""
        normalized = {}
        for host, value in v.items():
            host = host.strip().lower()
            if host.startswith("www."):
                host = host[4:]
            if not host:
                raise ValueError("Site host cannot be empty")
            if not value or not value.strip():
                raise ValueError(f"Site '{host}' has an empty value")
            normalized[host] = value.strip()
        return normalized


class AdvancedConfig(BaseModel):
    """Tuning knobs most installations leave alone."""

    regex_timeout_seconds: float = Field(
        1.0, ge=0.1, le=10.0, description="Time limit for a single rule regex search"
    )


class AppConfig(BaseModel):
    """Root configuration object for the job tracker decision core."""

    owner_id: str = Field("default", min_length=1, description="Owner listings are filed under")
    rule_settings: RuleSettings = Field(default_factory=RuleSettings)
    include_preset_rules: bool = Field(False, description="Add the starter rule set")
    rules: List[Rule] = Field(default_factory=list, description="Classification rules")
    scoring: ScoringPreferences = Field(default_factory=ScoringPreferences)
    dedup: DedupConfig = Field(default_factory=DedupConfig)
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    advanced: AdvancedConfig = Field(
        default_factory=AdvancedConfig, description="Advanced runtime settings"
    )

    @field_validator("owner_id")
    @classmethod
    def strip_owner(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("owner_id cannot be empty or whitespace-only")
        return stripped

    @model_validator(mode="after")
    def validate_rules(self):
        """Reject rules sharing an id."""
        seen = set()
        for rule in self.rules:
            if rule.id in seen:
                raise ValueError(f"Duplicate rule id: {rule.id}")
            seen.add(rule.id)
        return self

    def all_rules(self) -> List[Rule]:
        """Configured rules, plus the preset rules when enabled."""
        rules = list(self.rules)
        if self.include_preset_rules:
            rules.extend(preset_rules())
        return rules
