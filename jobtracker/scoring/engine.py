"""Weighted multi-factor desirability scoring.

Seven factors each earn points up to a fixed maximum. A factor's points and
maximum are both multiplied by its weight and summed; the final score is
``round(total / max_possible * 100)`` clamped to 0-100. A factor whose weight
is 0, or whose triggering preference is empty, is left out of both sums so it
does not dilute the score.

| factor    | max | trigger                                 |
|-----------|-----|-----------------------------------------|
| skills    | 25  | preferred_skills                        |
| salary    | 20  | min_desired_salary > 0                  |
| remote    | 15  | always                                  |
| location  | 10  | preferred_locations                     |
| keywords  | 15  | must_have_keywords or avoid_keywords    |
| company   | 10  | preferred_companies or avoid_companies  |
| learning  | 15  | always                                  |
"""

import logging
import re
from collections import Counter
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from jobtracker.domain.models import InterestStatus, Listing
from jobtracker.logging import get_logger
from jobtracker.normalization.salary import first_salary_figure

from .models import FactorScore, ScoreResult, ScoringPreferences

logger = get_logger(__name__, component="scoring")

SKILLS_MAX = 25.0
SALARY_MAX = 20.0
REMOTE_MAX = 15.0
LOCATION_MAX = 10.0
KEYWORDS_MAX = 15.0
COMPANY_MAX = 10.0
LEARNING_MAX = 15.0

TOP_TITLE_KEYWORDS = 5

STOP_WORDS = frozenset(
    {
        "the", "and", "for", "with", "from", "this", "that", "will", "your", "our",
        "you", "are", "have", "has", "been", "who", "what", "where", "when", "which",
    }
)

_NON_WORD = re.compile(r"\W+")


def skills_points(listing: Listing, preferred_skills: Sequence[str]) -> float:
    """Fraction of preferred skills found in skill tags, title or description, times 25."""
    if not preferred_skills:
        return 0.0

    tags = [skill.casefold() for skill in listing.skills]
    title = listing.title.casefold()
    description = listing.description.casefold()

    found = 0
    for skill in preferred_skills:
        wanted = skill.casefold()
        if any(wanted in tag for tag in tags) or wanted in title or wanted in description:
            found += 1

    return found / len(preferred_skills) * SKILLS_MAX


def effective_salary(listing: Listing) -> Optional[Decimal]:
    """Parsed minimum, else parsed maximum, else the first figure in the free text."""
    if listing.salary_min is not None:
        return listing.salary_min
    if listing.salary_max is not None:
        return listing.salary_max
    if listing.salary:
        return first_salary_figure(listing.salary)
    return None


def salary_points(listing: Listing, min_desired: Decimal, max_desired: Decimal) -> float:
    salary = effective_salary(listing)
    if salary is None:
        return 10.0

    if salary >= min_desired:
        if max_desired > 0 and salary <= max_desired:
            return 20.0
        return 15.0

    return max(0.0, float(salary) / float(min_desired) * 10)


def remote_points(listing: Listing, prefer_remote: bool) -> float:
    if prefer_remote == listing.is_remote:
        return 15.0
    if prefer_remote and not listing.is_remote:
        return 3.0
    return 10.0


def location_points(listing: Listing, preferred_locations: Sequence[str]) -> float:
    if not preferred_locations or not listing.location:
        return 5.0

    location = listing.location.casefold()
    if any(preferred.casefold() in location for preferred in preferred_locations):
        return 10.0
    return 0.0


def keyword_points(listing: Listing, must_have: Sequence[str], avoid: Sequence[str]) -> float:
    text = f"{listing.title} {listing.description}".casefold()
    points = 0.0

    if must_have:
        found = sum(1 for keyword in must_have if keyword.casefold() in text)
        points += found / len(must_have) * 12
    else:
        points += 6

    if avoid:
        hit = any(keyword.casefold() in text for keyword in avoid)
        points += -5 if hit else 3
    else:
        points += 3

    return max(0.0, points)


def company_points(listing: Listing, preferred: Sequence[str], avoid: Sequence[str]) -> float:
    company = listing.company.casefold()

    for name in avoid:
        if name.casefold() in company:
            return -5.0

    for name in preferred:
        if name.casefold() in company:
            return 10.0

    return 5.0


def title_keywords(title: str) -> List[str]:
    """Significant lower-cased words of a title: longer than 3 characters, no stop words."""
    return [
        word
        for word in _NON_WORD.split(title.lower())
        if len(word) > 3 and word not in STOP_WORDS
    ]


def top_title_keywords(history: Iterable[Listing], limit: int = TOP_TITLE_KEYWORDS) -> List[str]:
    """Most frequent title keywords across history; ties broken alphabetically."""
    counts = Counter()
    for listing in history:
        counts.update(title_keywords(listing.title))
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [word for word, _ in ranked[:limit]]


def is_positive_signal(listing: Listing) -> bool:
    """Listing the owner was interested in or applied to."""
    return listing.interest == InterestStatus.INTERESTED or listing.has_applied


def learning_points(listing: Listing, history: Sequence[Listing]) -> float:
    """Similarity to listings the owner was interested in or applied to.

    - up to 5 for title keywords shared with the top 5 history keywords (1.5 each)
    - +3 same company, +2 same job type, +1 same source
    - +3 when most of the history is remote and so is this listing

    Capped at 15; 7.5 when there is no such history.
    """
    liked = [item for item in history if item.id != listing.id and is_positive_signal(item)]
    if not liked:
        return 7.5

    points = 0.0

    overlap = set(title_keywords(listing.title)) & set(top_title_keywords(liked))
    points += min(5.0, len(overlap) * 1.5)

    company = listing.company.strip().casefold()
    if company and any(item.company.strip().casefold() == company for item in liked):
        points += 3

    if any(item.job_type == listing.job_type for item in liked):
        points += 2

    source = listing.source.strip().casefold()
    if source and any(item.source.strip().casefold() == source for item in liked):
        points += 1

    remote_count = sum(1 for item in liked if item.is_remote)
    if remote_count * 2 > len(liked) and listing.is_remote:
        points += 3

    return min(LEARNING_MAX, points)


class ScoringEngine:
    """Computes a 0-100 desirability score for a listing."""

    def __init__(self, logger_instance: Optional[logging.Logger] = None):
        self.logger = logger_instance or logger

    def score(
        self,
        listing: Listing,
        preferences: ScoringPreferences,
        history: Optional[Sequence[Listing]] = None,
    ) -> int:
        """Score a listing. See :meth:`evaluate` for the factor breakdown."""
        return self.evaluate(listing, preferences, history).score

    def evaluate(
        self,
        listing: Listing,
        preferences: ScoringPreferences,
        history: Optional[Sequence[Listing]] = None,
    ) -> ScoreResult:
        """Score a listing and report each factor's contribution.

        Args:
            listing: Listing to score
            preferences: Owner's weights and preference lists
            history: Owner's other listings, for the learning factor

        Returns:
            ScoreResult; score is 0 when scoring is disabled or no factor applies
        """
        if not preferences.enable_scoring:
            return ScoreResult(score=0)

        history = history or []
        prefs = preferences
        factors: List[FactorScore] = []

        def add(name: str, weight: float, points: float, maximum: float) -> None:
            factors.append(FactorScore(name, points * weight, maximum * weight, weight))

        if prefs.skills_weight > 0 and prefs.preferred_skills:
            add("skills", prefs.skills_weight, skills_points(listing, prefs.preferred_skills), SKILLS_MAX)

        if prefs.salary_weight > 0 and prefs.min_desired_salary > 0:
            add(
                "salary",
                prefs.salary_weight,
                salary_points(listing, prefs.min_desired_salary, prefs.max_desired_salary),
                SALARY_MAX,
            )

        if prefs.remote_weight > 0:
            add("remote", prefs.remote_weight, remote_points(listing, prefs.prefer_remote), REMOTE_MAX)

        if prefs.location_weight > 0 and prefs.preferred_locations:
            add(
                "location",
                prefs.location_weight,
                location_points(listing, prefs.preferred_locations),
                LOCATION_MAX,
            )

        if prefs.keyword_weight > 0 and (prefs.must_have_keywords or prefs.avoid_keywords):
            add(
                "keywords",
                prefs.keyword_weight,
                keyword_points(listing, prefs.must_have_keywords, prefs.avoid_keywords),
                KEYWORDS_MAX,
            )

        if prefs.company_weight > 0 and (prefs.preferred_companies or prefs.avoid_companies):
            add(
                "company",
                prefs.company_weight,
                company_points(listing, prefs.preferred_companies, prefs.avoid_companies),
                COMPANY_MAX,
            )

        if prefs.learning_weight > 0:
            add("learning", prefs.learning_weight, learning_points(listing, history), LEARNING_MAX)

        result = ScoreResult(factors=factors)
        max_possible = result.max_possible
        if max_possible == 0:
            return result

        score = round(result.total / max_possible * 100)
        result.score = max(0, min(100, score))

        self.logger.debug(
            "Listing scored",
            extra={
                "event": "scoring.listing.scored",
                "listing_id": listing.id,
                "score": result.score,
                "factors": [f.name for f in factors],
            },
        )
        return result
