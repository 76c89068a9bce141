"""Command line entry point for the job tracker decision core."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import yaml
from pydantic import ValidationError

from jobtracker.config.environment import EnvironmentConfig
from jobtracker.config.exceptions import ConfigurationError
from jobtracker.config.loader import load_config
from jobtracker.config.models import AppConfig
from jobtracker.dedup.service import Deduplicator
from jobtracker.dedup.urls import UrlCanonicalizer
from jobtracker.domain.models import Listing
from jobtracker.logging import get_logger
from jobtracker.logging.config import configure_logging
from jobtracker.normalization.salary import parse_salary
from jobtracker.persistence.memory import (
    CollectingChangeSink,
    InMemoryListingStore,
    InMemoryPreferencesStore,
    InMemoryRuleStore,
)
from jobtracker.pipeline import IntakeResult, ListingPipeline
from jobtracker.rules.engine import RuleEngine

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and resolve the effective log settings.

    Log level priority: CLI > environment > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level or "INFO"

    if not env_config.log_format:
        env_config.log_format = app_config.logging.format or "key-value"

    return app_config, env_config


def load_listings_file(path: Path) -> List[dict]:
    """
    Read a list of listing mappings from a YAML or JSON file.

    Raises:
        ConfigurationError: If the file is missing, unparsable or not a list
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(
            f"Listings file not found: {path}",
            suggestions=["Check the --listings path"],
        )
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Failed to parse listings file: {e}",
            suggestions=["The file must hold a list of listing objects"],
        )

    if data is None:
        return []
    if not isinstance(data, list):
        raise ConfigurationError(
            "Listings file must contain a list at the top level",
            suggestions=["Wrap the listings in a YAML sequence or JSON array"],
        )
    return data


def build_pipeline(app_config: AppConfig) -> Tuple[ListingPipeline, CollectingChangeSink]:
    """Wire the in-memory stores and engines from configuration."""
    canonicalizer = UrlCanonicalizer(
        query_id_sites=app_config.dedup.query_id_sites,
        slug_sites=app_config.dedup.slug_sites,
    )
    deduplicator = Deduplicator(canonicalizer)

    rule_store = InMemoryRuleStore(app_config.all_rules())
    rule_store.set_settings(app_config.owner_id, app_config.rule_settings)

    change_sink = CollectingChangeSink()
    pipeline = ListingPipeline(
        listing_store=InMemoryListingStore(deduplicator),
        rule_store=rule_store,
        preferences_store=InMemoryPreferencesStore(app_config.scoring),
        change_sink=change_sink,
        deduplicator=deduplicator,
        rule_engine=RuleEngine(
            trigger_sink=rule_store,
            regex_timeout=app_config.advanced.regex_timeout_seconds,
        ),
    )
    return pipeline, change_sink


def format_summary(results: List[IntakeResult]) -> str:
    """Render intake results as a fixed-width table."""
    lines = [f"{'STATUS':<10} {'SCORE':>5}  {'INTEREST':<14} {'SUITABILITY':<12} TITLE"]
    for result in results:
        if result.skipped_reason:
            status = "skipped"
        elif result.deduped:
            status = "duplicate"
        else:
            status = "accepted"
        listing = result.listing
        title = f"{listing.title} @ {listing.company}" if listing.company else listing.title
        lines.append(
            f"{status:<10} {result.score:>5}  {listing.interest.value:<14} "
            f"{listing.suitability.value:<12} {title}"
        )
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parser = argparse.ArgumentParser(
        description="Job tracker - dedupe, classify and score job listings"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml, then config/config.yaml)",
    )
    parser.add_argument(
        "--listings",
        type=Path,
        default=None,
        help="YAML or JSON file holding a list of listings to run through intake",
    )
    parser.add_argument(
        "--reconcile",
        action="store_true",
        help="Bulk-reconcile the owner's listings against the rules after intake",
    )
    parser.add_argument(
        "--purge-duplicates",
        action="store_true",
        help="Remove duplicate listings after intake",
    )
    parser.add_argument(
        "--parse-salary",
        metavar="TEXT",
        default=None,
        help="Print the annualised salary range for TEXT and exit",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )

    args = parser.parse_args(argv)

    if args.parse_salary is not None:
        salary_min, salary_max = parse_salary(args.parse_salary)
        print(f"min={salary_min if salary_min is not None else '-'} "
              f"max={salary_max if salary_max is not None else '-'}")
        return 0

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)
        configure_logging(
            level=env_config.log_level,
            format_type=env_config.log_format,
            environment=env_config.environment,
        )

        logger.info(
            "Configuration loaded",
            extra={
                "event": "config.loaded",
                "owner_id": app_config.owner_id,
                "rule_count": len(app_config.all_rules()),
                "log_level": env_config.log_level,
            },
        )

        pipeline, change_sink = build_pipeline(app_config)

        results: List[IntakeResult] = []
        invalid = 0
        if args.listings is not None:
            for idx, item in enumerate(load_listings_file(args.listings)):
                try:
                    listing = Listing.model_validate(item)
                except ValidationError as e:
                    invalid += 1
                    logger.error(
                        f"Skipping invalid listing at index {idx}: {e.error_count()} errors",
                        extra={"event": "cli.listing.invalid", "index": idx},
                    )
                    continue
                results.append(pipeline.classify_and_score(listing, app_config.owner_id))

        if args.reconcile:
            reconcile = pipeline.reconcile_owner(app_config.owner_id)
            print(f"Reconciled: {reconcile.evaluated} evaluated, {reconcile.updated} updated, "
                  f"{reconcile.skipped} skipped")

        if args.purge_duplicates:
            purge = pipeline.purge_duplicates(app_config.owner_id)
            print(f"Purged: {purge.removed_count} duplicates")

        if results:
            print(format_summary(results))

        accepted = sum(1 for r in results if r.accepted)
        logger.info(
            f"Intake completed: {accepted} accepted, {len(results) - accepted} rejected, {invalid} invalid",
            extra={
                "event": "cli.intake.completed",
                "accepted": accepted,
                "rejected": len(results) - accepted,
                "invalid": invalid,
                "changes": len(change_sink.records),
            },
        )
        return 1 if invalid else 0

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error",
            extra={
                "event": "cli.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
