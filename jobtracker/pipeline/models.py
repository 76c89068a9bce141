"""Result types returned by the listing pipeline."""

from dataclasses import dataclass, field
from typing import List, Optional

from jobtracker.dedup.service import DuplicateMatch
from jobtracker.domain.models import ChangeRecord, Listing
from jobtracker.rules.models import RuleEvaluationResult

SKIPPED_MISSING_OWNER = "missing_owner"


@dataclass
class IntakeResult:
    """
    Outcome of running one incoming listing through intake.

    Attributes:
        deduped: True if the listing was rejected as a duplicate
        rule_result: Rule evaluation outcome (empty when rules did not run)
        score: 0-100 desirability score (0 when scoring did not run)
        listing: The decorated listing as stored, or as cleaned when rejected
        changes: Change records produced, already handed to the change sink
        duplicate: Which listing it duplicated and why, when deduped
        accepted: True if the listing was stored
        skipped_reason: Why intake stopped early, e.g. "missing_owner"
    """

    deduped: bool
    rule_result: RuleEvaluationResult
    score: int
    listing: Listing
    changes: List[ChangeRecord] = field(default_factory=list)
    duplicate: Optional[DuplicateMatch] = None
    accepted: bool = False
    skipped_reason: Optional[str] = None


@dataclass
class ReevaluationResult:
    """
    Outcome of re-running rules over an existing listing.

    Attributes:
        rule_result: Rule evaluation outcome
        listing: Listing after write-back
        changes: One record per field that changed
        modified: True if any field changed (and the listing was saved)
    """

    rule_result: RuleEvaluationResult
    listing: Listing
    changes: List[ChangeRecord] = field(default_factory=list)
    modified: bool = False


@dataclass
class ReconcileResult:
    """
    Totals from a bulk reconcile over one owner's listings.

    Attributes:
        owner_id: Owner reconciled
        evaluated: Listings the rules ran over
        skipped: Listings skipped because they were already fully classified
        updated: Listings that changed
        changes: All change records produced
    """

    owner_id: str
    evaluated: int = 0
    skipped: int = 0
    updated: int = 0
    changes: List[ChangeRecord] = field(default_factory=list)


@dataclass
class PurgeResult:
    """Listings removed as duplicates of an earlier listing, with their removal records."""

    owner_id: str
    removed: List[Listing] = field(default_factory=list)
    changes: List[ChangeRecord] = field(default_factory=list)

    @property
    def removed_count(self) -> int:
        return len(self.removed)
