"""Pipeline orchestration for listing intake and re-evaluation."""

import threading
from typing import Dict, List, Optional
from uuid import uuid4

from jobtracker.dedup.service import Deduplicator
from jobtracker.dedup.urls import infer_source_from_url
from jobtracker.domain.models import (
    ChangeRecord,
    ChangeSource,
    ChangeType,
    InterestStatus,
    Listing,
    SuitabilityStatus,
)
from jobtracker.logging import get_logger
from jobtracker.logging.context import log_context
from jobtracker.normalization.salary import parse_salary
from jobtracker.normalization.text import clean_listing
from jobtracker.persistence.base import ChangeSink, ListingStore, PreferencesStore, RuleStore
from jobtracker.persistence.exceptions import PersistenceError, RecordNotFoundError
from jobtracker.rules.engine import RuleEngine
from jobtracker.rules.models import ReevaluationMode, RuleEvaluationResult
from jobtracker.scoring.engine import ScoringEngine
from jobtracker.utils.timestamps import utc_now

from .models import (
    SKIPPED_MISSING_OWNER,
    IntakeResult,
    PurgeResult,
    ReconcileResult,
    ReevaluationResult,
)

logger = get_logger(__name__, component="pipeline")

# A stored description shorter than this is treated as a stub worth replacing.
SUBSTANTIAL_DESCRIPTION_LENGTH = 100


class ListingPipeline:
    """
    Orchestrates the decision sequence for incoming and existing listings.

    Intake runs clean → dedup → source inference → salary parsing → rules →
    scoring → insert, holding the owner's lock from the duplicate check to the
    insert so two submissions of the same listing cannot both be accepted.
    Change records are returned and also handed to the change sink; the
    pipeline never persists history itself.
    """

    def __init__(
        self,
        listing_store: ListingStore,
        rule_store: RuleStore,
        preferences_store: PreferencesStore,
        change_sink: Optional[ChangeSink] = None,
        deduplicator: Optional[Deduplicator] = None,
        rule_engine: Optional[RuleEngine] = None,
        scoring_engine: Optional[ScoringEngine] = None,
    ):
        """
        Initialize the listing pipeline.

        Args:
            listing_store: Per-owner listing storage
            rule_store: Rules, rule settings and trigger bookkeeping
            preferences_store: Scoring preferences
            change_sink: Receives change records (optional)
            deduplicator: Duplicate detector (defaults to Deduplicator())
            rule_engine: Rule engine (defaults to one recording triggers in rule_store)
            scoring_engine: Scoring engine (defaults to ScoringEngine())
        """
        self.listing_store = listing_store
        self.rule_store = rule_store
        self.preferences_store = preferences_store
        self.change_sink = change_sink
        self.deduplicator = deduplicator or Deduplicator()
        self.rule_engine = rule_engine or RuleEngine(trigger_sink=rule_store)
        self.scoring_engine = scoring_engine or ScoringEngine()
        self._owner_locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    @staticmethod
    def parse_salary(text: Optional[str]):
        """Annualised (min, max) salary range; see jobtracker.normalization.salary."""
        return parse_salary(text)

    def classify_and_score(self, listing: Listing, owner_id: Optional[str] = None) -> IntakeResult:
        """
        Run an incoming listing through intake.

        Sequence:
        1. Resolve the owner (argument, else the listing's own owner_id)
        2. Assign a fresh id; clean title, company and location
        3. Reject duplicates of the owner's existing listings
        4. Infer the source tag from the url when missing
        5. Parse the free-text salary when no parsed range is present
        6. Evaluate rules and write outputs (initial intake mode)
        7. Score against the owner's preferences and history
        8. Insert and emit change records

        Args:
            listing: Incoming listing
            owner_id: Owner to file it under; overrides listing.owner_id

        Returns:
            IntakeResult describing the decision

        Raises:
            PersistenceError: If the listing store fails; logged and re-raised
        """
        owner = (owner_id or listing.owner_id or "").strip() or None
        if owner is None:
            logger.warning(
                "Listing has no owner, skipping rules and scoring",
                extra={
                    "event": "pipeline.intake.missing_owner",
                    "listing_id": listing.id,
                    "title": listing.title,
                },
            )
            return IntakeResult(
                deduped=False,
                rule_result=RuleEvaluationResult(),
                score=0,
                listing=listing,
                skipped_reason=SKIPPED_MISSING_OWNER,
            )

        # Stored listings always get their own id, so a resubmitted record is
        # checked against its earlier copy like any other listing.
        candidate = clean_listing(
            listing.model_copy(update={"owner_id": owner, "id": uuid4().hex})
        )

        with log_context(owner_id=owner, listing_id=candidate.id):
            with self._owner_lock(owner):
                try:
                    existing = self.listing_store.list_for_owner(owner)

                    duplicate = self.deduplicator.find_duplicate(candidate, existing)
                    if duplicate is not None:
                        logger.info(
                            "Duplicate listing rejected",
                            extra={
                                "event": "pipeline.intake.duplicate",
                                "reason": duplicate.reason,
                                "existing_listing_id": duplicate.listing_id,
                            },
                        )
                        return IntakeResult(
                            deduped=True,
                            rule_result=RuleEvaluationResult(),
                            score=0,
                            listing=candidate,
                            duplicate=duplicate,
                        )

                    candidate = self._decorate(candidate)

                    rule_result = self.rule_engine.evaluate(
                        candidate,
                        self.rule_store.rules_for_owner(owner),
                        self.rule_store.settings_for_owner(owner),
                    )
                    candidate, rule_changes = self.rule_engine.apply(
                        candidate, rule_result, ReevaluationMode.INITIAL_INTAKE
                    )

                    score = self.scoring_engine.score(
                        candidate, self.preferences_store.preferences_for_owner(owner), existing
                    )
                    candidate = candidate.model_copy(
                        update={
                            "suitability_score": score,
                            "date_added": candidate.date_added or utc_now(),
                        }
                    )

                    self.listing_store.add(candidate)

                except PersistenceError as e:
                    logger.error(
                        f"Listing store failed during intake: {e}",
                        extra={"event": "pipeline.intake.failed", "error": str(e)},
                        exc_info=True,
                    )
                    raise

            changes = [_added_record(candidate)] + rule_changes
            self._emit(changes)

            logger.info(
                "Listing accepted",
                extra={
                    "event": "pipeline.intake.accepted",
                    "score": score,
                    "matched_rules": rule_result.matched_rule_names,
                    "source": candidate.source,
                },
            )

        return IntakeResult(
            deduped=False,
            rule_result=rule_result,
            score=score,
            listing=candidate,
            changes=changes,
            accepted=True,
        )

    def reevaluate_rules(
        self,
        listing: Listing,
        mode: ReevaluationMode = ReevaluationMode.TARGETED_OVERRIDE,
    ) -> ReevaluationResult:
        """
        Re-run the owner's rules over an existing listing.

        Write-back follows ``mode`` (see ReevaluationMode). The listing is saved
        and change records are emitted only when something changed.

        Args:
            listing: Stored listing to re-evaluate
            mode: Write-back policy

        Returns:
            ReevaluationResult; an empty result when the listing has no owner
        """
        owner = listing.owner_id
        if owner is None:
            logger.warning(
                "Listing has no owner, skipping re-evaluation",
                extra={"event": "pipeline.reevaluate.missing_owner", "listing_id": listing.id},
            )
            return ReevaluationResult(rule_result=RuleEvaluationResult(), listing=listing)

        with log_context(owner_id=owner, listing_id=listing.id, mode=mode.value):
            with self._owner_lock(owner):
                result = self._reevaluate(listing, mode)
            self._emit(result.changes)
        return result

    def reconcile_owner(self, owner_id: str) -> ReconcileResult:
        """
        Bulk-reconcile one owner's listings against their current rules.

        Listings already fully classified (interest rated, suitability checked,
        marked remote) are skipped. Other listings only have fields still at
        their default filled in.

        Args:
            owner_id: Owner whose listings to reconcile

        Returns:
            ReconcileResult with counts and change records
        """
        summary = ReconcileResult(owner_id=owner_id)

        with log_context(owner_id=owner_id, mode=ReevaluationMode.BULK_RECONCILE.value):
            with self._owner_lock(owner_id):
                for listing in self.listing_store.list_for_owner(owner_id):
                    if _fully_classified(listing):
                        summary.skipped += 1
                        continue

                    summary.evaluated += 1
                    with log_context(listing_id=listing.id):
                        result = self._reevaluate(listing, ReevaluationMode.BULK_RECONCILE)
                    if result.modified:
                        summary.updated += 1
                        summary.changes.extend(result.changes)

            self._emit(summary.changes)

            logger.info(
                f"Reconciled {summary.evaluated} listings, {summary.updated} updated",
                extra={
                    "event": "pipeline.reconcile.completed",
                    "evaluated": summary.evaluated,
                    "skipped": summary.skipped,
                    "updated": summary.updated,
                },
            )

        return summary

    def apply_listing_details(
        self,
        owner_id: str,
        listing_id: str,
        description: Optional[str] = None,
        company: Optional[str] = None,
    ) -> ReevaluationResult:
        """
        Merge newly fetched details into a stored listing and re-run rules.

        The description is replaced when the stored one is a stub (shorter than
        100 characters) or the new one is substantial and different. The company
        is only filled in when missing. When either changed, rules run in
        targeted override mode so new data can correct earlier rule outputs.

        Args:
            owner_id: Listing owner
            listing_id: Stored listing to update
            description: Newly fetched description, if any
            company: Newly fetched company name, if any

        Returns:
            ReevaluationResult; ``changes`` include the detail updates

        Raises:
            RecordNotFoundError: If the owner has no such listing
        """
        with log_context(owner_id=owner_id, listing_id=listing_id):
            with self._owner_lock(owner_id):
                listing = self.listing_store.get(owner_id, listing_id)
                if listing is None:
                    raise RecordNotFoundError(f"Listing {listing_id} not found for owner {owner_id}")

                updates = {}
                detail_changes: List[ChangeRecord] = []

                if description is not None and _should_replace_description(listing.description, description):
                    updates["description"] = description
                    detail_changes.append(
                        ChangeRecord(
                            listing_id=listing.id,
                            owner_id=owner_id,
                            field_name="description",
                            old_value=str(len(listing.description)),
                            new_value=str(len(description)),
                            change_source=ChangeSource.AUTO_FETCH,
                            description=(
                                f"Description updated ({len(listing.description)} -> "
                                f"{len(description)} chars)"
                            ),
                        )
                    )

                if company and company.strip() and not listing.company.strip():
                    updates["company"] = company.strip()
                    detail_changes.append(
                        ChangeRecord(
                            listing_id=listing.id,
                            owner_id=owner_id,
                            field_name="company",
                            old_value=listing.company,
                            new_value=company.strip(),
                            change_source=ChangeSource.AUTO_FETCH,
                            description=f"Company set to '{company.strip()}'",
                        )
                    )

                if not updates:
                    logger.debug(
                        "No new details to apply",
                        extra={"event": "pipeline.details.unchanged"},
                    )
                    return ReevaluationResult(rule_result=RuleEvaluationResult(), listing=listing)

                updates["last_checked"] = utc_now()
                listing = listing.model_copy(update=updates)
                self.listing_store.save(listing)

                result = self._reevaluate(listing, ReevaluationMode.TARGETED_OVERRIDE)

            result.changes = detail_changes + result.changes
            result.modified = True
            self._emit(result.changes)

            logger.info(
                "Listing details applied",
                extra={
                    "event": "pipeline.details.applied",
                    "fields": sorted(k for k in updates if k != "last_checked"),
                    "rule_changes": len(result.changes) - len(detail_changes),
                },
            )

        return result

    def purge_duplicates(self, owner_id: str) -> PurgeResult:
        """
        Delete listings that duplicate an earlier listing of the same owner.

        The first occurrence of each canonical url (or, for listings without a
        url, each title+company) is kept.

        Args:
            owner_id: Owner whose listings to purge

        Returns:
            PurgeResult with the removed listings and their removal records
        """
        result = PurgeResult(owner_id=owner_id)

        with log_context(owner_id=owner_id):
            with self._owner_lock(owner_id):
                _, duplicates = self.deduplicator.partition_duplicates(
                    self.listing_store.list_for_owner(owner_id)
                )
                for listing in duplicates:
                    if self.listing_store.delete(owner_id, listing.id):
                        result.removed.append(listing)
                        result.changes.append(
                            ChangeRecord(
                                listing_id=listing.id,
                                owner_id=owner_id,
                                field_name="listing",
                                old_value=listing.title,
                                change_type=ChangeType.REMOVED,
                                change_source=ChangeSource.SYSTEM,
                                description=f"Removed duplicate listing '{listing.title}'",
                            )
                        )

            self._emit(result.changes)

            if result.removed:
                logger.info(
                    f"Removed {result.removed_count} duplicate listings",
                    extra={"event": "pipeline.purge.completed", "removed": result.removed_count},
                )

        return result

    def _reevaluate(self, listing: Listing, mode: ReevaluationMode) -> ReevaluationResult:
        """Evaluate and write back; caller holds the owner's lock."""
        rule_result = self.rule_engine.evaluate(
            listing,
            self.rule_store.rules_for_owner(listing.owner_id),
            self.rule_store.settings_for_owner(listing.owner_id),
        )
        updated, changes = self.rule_engine.apply(listing, rule_result, mode)

        if changes:
            try:
                self.listing_store.save(updated)
            except PersistenceError as e:
                logger.error(
                    f"Failed to save re-evaluated listing: {e}",
                    extra={"event": "pipeline.reevaluate.failed", "error": str(e)},
                    exc_info=True,
                )
                raise

        return ReevaluationResult(
            rule_result=rule_result,
            listing=updated,
            changes=changes,
            modified=bool(changes),
        )

    def _decorate(self, listing: Listing) -> Listing:
        updates = {}
        if not listing.source.strip():
            source = infer_source_from_url(listing.url)
            if source:
                updates["source"] = source
        if listing.salary_min is None and listing.salary_max is None and listing.salary.strip():
            salary_min, salary_max = parse_salary(listing.salary)
            updates["salary_min"] = salary_min
            updates["salary_max"] = salary_max
        return listing.model_copy(update=updates) if updates else listing

    def _owner_lock(self, owner_id: str) -> threading.Lock:
        # One lock per owner seen, never evicted; the owner count stays small.
        with self._guard:
            lock = self._owner_locks.get(owner_id)
            if lock is None:
                lock = threading.Lock()
                self._owner_locks[owner_id] = lock
            return lock

    def _emit(self, changes: List[ChangeRecord]) -> None:
        if changes and self.change_sink is not None:
            self.change_sink.record(changes)


def _fully_classified(listing: Listing) -> bool:
    return (
        listing.interest != InterestStatus.NOT_RATED
        and listing.suitability != SuitabilityStatus.NOT_CHECKED
        and listing.is_remote
    )


def _should_replace_description(current: str, new: str) -> bool:
    if len(current.strip()) < SUBSTANTIAL_DESCRIPTION_LENGTH:
        return bool(new.strip()) and new != current
    return len(new.strip()) >= SUBSTANTIAL_DESCRIPTION_LENGTH and new != current


def _added_record(listing: Listing) -> ChangeRecord:
    return ChangeRecord(
        listing_id=listing.id,
        owner_id=listing.owner_id,
        field_name="listing",
        new_value=listing.title,
        change_type=ChangeType.ADDED,
        change_source=ChangeSource.INTAKE,
        description=f"Added '{listing.title}' at {listing.company or 'unknown company'}",
    )
