"""Text cleaning for scraped listing fields.

Scraped titles and company names often arrive with the same text rendered
twice (an accessible label plus a visible label), or with a trailing
"with verification" badge. ``clean_text`` undoes those artefacts.
"""

import re
from typing import Optional

from jobtracker.domain.models import Listing

_SEGMENT_BREAK = re.compile(r"\s{2,}|\n+")
_WHITESPACE = re.compile(r"\s+")
_VERIFICATION_SUFFIX = re.compile(r"\s*with verification\s*$", re.IGNORECASE)


def clean_text(text: Optional[str]) -> str:
    """Clean a scraped text field.

    Applied in order:
    1. segment check on the raw text: if the first and last segments
       (split on runs of 2+ whitespace or newlines, verification suffix
       removed from the last) are equal or one prefixes the other, keep
       the longer one
    2. collapse whitespace runs to single spaces and trim
    3. strip a trailing "with verification" (any case)
    4. character halves: an even-length string of 6+ characters whose
       halves are equal ignoring case keeps its first half
    5. word halves: an even word count whose halves match keeps the first half

    Blank or missing input gives the empty string.

    Example:
        >>> clean_text("Software EngineerSoftware Engineer")
        'Software Engineer'
    """
    if text is None or not text.strip():
        return ""

    text = _collapse_segments(text)

    text = _WHITESPACE.sub(" ", text).strip()
    text = _VERIFICATION_SUFFIX.sub("", text).strip()

    length = len(text)
    if length >= 6 and length % 2 == 0:
        half = length // 2
        if text[:half].casefold() == text[half:].casefold():
            text = text[:half].strip()

    words = text.split(" ")
    if len(words) >= 2 and len(words) % 2 == 0:
        half = len(words) // 2
        if " ".join(words[:half]).casefold() == " ".join(words[half:]).casefold():
            text = " ".join(words[:half])

    return text


def _collapse_segments(text: str) -> str:
    segments = [s.strip() for s in _SEGMENT_BREAK.split(text.strip()) if s.strip()]
    if len(segments) < 2:
        return text

    first = segments[0]
    last = _VERIFICATION_SUFFIX.sub("", segments[-1]).strip()
    if not first or not last:
        return text

    first_key, last_key = first.casefold(), last.casefold()
    if first_key == last_key or last_key.startswith(first_key) or first_key.startswith(last_key):
        return first if len(first) >= len(last) else last
    return text


def clean_listing(listing: Listing) -> Listing:
    """Return a copy of the listing with title, company and location cleaned."""
    return listing.model_copy(
        update={
            "title": clean_text(listing.title),
            "company": clean_text(listing.company),
            "location": clean_text(listing.location),
        }
    )
