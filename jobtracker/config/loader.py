"""Load the job tracker configuration from YAML and the environment."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import ValidationError

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .models import AppConfig
from .validators import check_for_warnings, emit_warnings

# Searched in order when no path is given.
DEFAULT_CONFIG_LOCATIONS = (
    Path("config.yaml"),
    Path("config") / "config.yaml",
)

_SCALAR_TYPES = {
    "string_type": "a string",
    "int_type": "an integer",
    "int_parsing": "an integer",
    "float_type": "a number",
    "float_parsing": "a number",
    "bool_type": "true or false",
    "bool_parsing": "true or false",
    "list_type": "a list",
    "dict_type": "a mapping",
    "decimal_parsing": "a number",
}


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load and validate configuration from a YAML file and environment variables.

    When ``config_path`` is not given, ``config.yaml`` and then
    ``config/config.yaml`` are tried. An empty file yields the defaults.
    Non-fatal problems in the rules are emitted as ``UserWarning`` before the
    file is validated.

    Args:
        config_path: Optional path to configuration file

    Returns:
        Tuple of (AppConfig, EnvironmentConfig)

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid,
            or an environment variable holds an invalid value
    """
    config_file = _find_config_file(config_path)
    raw = _read_yaml(config_file)

    warnings = check_for_warnings(raw)
    if warnings:
        emit_warnings(warnings)

    return parse_config(raw), load_environment_config()


def parse_config(config_dict: Dict[str, Any]) -> AppConfig:
    """
    Validate a raw configuration mapping.

    Raises:
        ConfigurationError: With one readable entry per validation error
    """
    try:
        return AppConfig.model_validate(config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            "Configuration validation failed",
            errors=[_describe_error(error, config_dict) for error in e.errors()],
            suggestions=[
                "Compare your file with config.example.yaml",
                "Rule fields, operators and labels are lower-case names such as "
                "'title', 'regex' or 'not_interested'",
            ],
        )


def _read_yaml(config_file: Path) -> Dict[str, Any]:
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML configuration: {e}",
            suggestions=[
                "Ensure proper indentation (use spaces, not tabs)",
                "Quote regex patterns containing ':' or '#'",
            ],
        )
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read configuration file {config_file}: {e}",
            suggestions=["Check file permissions"],
        )

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigurationError(
            "Configuration file must contain a mapping at the top level",
            suggestions=["Start the file with keys such as 'owner_id:' or 'rules:'"],
        )
    return raw


def _describe_error(error: Dict[str, Any], config_dict: Dict[str, Any]) -> str:
    """One line per pydantic error, naming the rule where one is involved."""
    loc = error["loc"]
    field_path = " -> ".join(str(part) for part in loc)
    error_type = error["type"]

    where = field_path
    rule_name = _rule_name_at(loc, config_dict)
    if rule_name:
        where = f"{field_path} (rule '{rule_name}')"

    if error_type == "missing":
        return f"Missing required field: {where}"
    if error_type in _SCALAR_TYPES:
        return f"Invalid type for '{where}': expected {_SCALAR_TYPES[error_type]}, got {error.get('input')!r}"
    if error_type == "enum":
        expected = (error.get("ctx") or {}).get("expected", "")
        return f"Invalid value {error.get('input')!r} for '{where}': expected {expected}"
    if not field_path:
        return error["msg"]
    return f"{where}: {error['msg']}"


def _rule_name_at(loc: Tuple[Any, ...], config_dict: Dict[str, Any]) -> Optional[str]:
    if len(loc) < 2 or loc[0] != "rules" or not isinstance(loc[1], int):
        return None
    rules = config_dict.get("rules")
    if not isinstance(rules, list) or loc[1] >= len(rules):
        return None
    rule = rules[loc[1]]
    if isinstance(rule, dict) and rule.get("name"):
        return str(rule["name"])
    return None


def _find_config_file(config_path: Optional[Path] = None) -> Path:
    """
    Resolve the configuration file to load.

    Raises:
        ConfigurationError: If no config file is found
    """
    if config_path:
        config_path = Path(config_path)
        if not config_path.exists():
            raise ConfigurationError(
                f"Specified configuration file not found: {config_path}",
                suggestions=["Check the --config path"],
            )
        return config_path

    tried: List[str] = []
    for candidate in DEFAULT_CONFIG_LOCATIONS:
        if candidate.exists():
            return candidate
        tried.append(f"Tried: {candidate.as_posix()}")

    raise ConfigurationError(
        "Configuration file not found",
        errors=tried,
        suggestions=[
            "Copy config.example.yaml to config.yaml",
            "Use --config flag to specify a custom location",
        ],
    )
