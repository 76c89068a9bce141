"""Duplicate detection for incoming listings.

A candidate is a duplicate of an existing listing owned by the same user when
their canonical urls agree, or, failing that, when their trimmed
case-insensitive title and company both agree.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, Tuple

from jobtracker.domain.models import Listing
from jobtracker.logging import get_logger

from .urls import UrlCanonicalizer

logger = get_logger(__name__, component="dedup")

REASON_URL = "url"
REASON_TITLE_COMPANY = "title_company"


@dataclass(frozen=True)
class DuplicateMatch:
    """Why a candidate was judged a duplicate, and of which listing.

    Attributes:
        reason: "url" or "title_company"
        listing_id: Identifier of the existing listing it duplicates
    """

    reason: str
    listing_id: str


def _title_company_key(listing: Listing) -> Optional[Tuple[str, str]]:
    title = listing.title.strip().casefold()
    company = listing.company.strip().casefold()
    if not title or not company:
        return None
    return title, company


class Deduplicator:
    """Detects listings that are already tracked for their owner."""

    def __init__(
        self,
        canonicalizer: Optional[UrlCanonicalizer] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.canonicalizer = canonicalizer or UrlCanonicalizer()
        self.logger = logger_instance or logger

    def canonical_url(self, listing: Listing) -> str:
        return self.canonicalizer.canonicalize(listing.url)

    def find_duplicate(
        self, candidate: Listing, existing: Iterable[Listing]
    ) -> Optional[DuplicateMatch]:
        """Return the first existing listing the candidate duplicates, if any.

        Existing listings owned by someone else are ignored. The url check runs
        over all of them before the title+company fallback is tried.

        Args:
            candidate: Incoming listing (text already cleaned)
            existing: Listings already tracked, normally the owner's own

        Returns:
            DuplicateMatch, or None when the candidate is new
        """
        same_owner = [item for item in existing if item.owner_id == candidate.owner_id]

        candidate_url = self.canonical_url(candidate)
        if candidate_url:
            for item in same_owner:
                if item.id != candidate.id and self.canonical_url(item) == candidate_url:
                    self._log_duplicate(candidate, item, REASON_URL)
                    return DuplicateMatch(REASON_URL, item.id)

        key = _title_company_key(candidate)
        if key is not None:
            for item in same_owner:
                if item.id != candidate.id and _title_company_key(item) == key:
                    self._log_duplicate(candidate, item, REASON_TITLE_COMPANY)
                    return DuplicateMatch(REASON_TITLE_COMPANY, item.id)

        return None

    def is_duplicate(self, candidate: Listing, existing: Iterable[Listing]) -> bool:
        return self.find_duplicate(candidate, existing) is not None

    def partition_duplicates(self, listings: Iterable[Listing]) -> Tuple[List[Listing], List[Listing]]:
        """Split listings into (unique, duplicates), keeping first occurrences.

        Listings with a url are keyed on (owner, canonical url); those without
        on (owner, title, company). Listings with neither are always unique.
        """
        seen_urls: Set[Tuple[Optional[str], str]] = set()
        seen_pairs: Set[Tuple[Optional[str], Tuple[str, str]]] = set()
        unique: List[Listing] = []
        duplicates: List[Listing] = []

        for listing in listings:
            url = self.canonical_url(listing)
            if url:
                key = (listing.owner_id, url)
                if key in seen_urls:
                    duplicates.append(listing)
                    continue
                seen_urls.add(key)
            else:
                pair = _title_company_key(listing)
                if pair is not None:
                    pair_key = (listing.owner_id, pair)
                    if pair_key in seen_pairs:
                        duplicates.append(listing)
                        continue
                    seen_pairs.add(pair_key)
            unique.append(listing)

        return unique, duplicates

    def _log_duplicate(self, candidate: Listing, existing: Listing, reason: str) -> None:
        self.logger.debug(
            "Duplicate listing detected",
            extra={
                "event": "dedup.listing.duplicate",
                "reason": reason,
                "existing_listing_id": existing.id,
                "title": candidate.title,
                "company": candidate.company,
            },
        )
