"""Salary normalizer.

Turns advertised compensation ("£40,000 - £60,000", "$80-90k", "£500 a day")
into an annualised ``(min, max)`` pair of Decimals in whatever currency the
text implies. No currency conversion and no locale-aware parsing: commas are
thousands separators, dots are decimal points.

Period conversion uses 230 working days and 1840 working hours per year.
"""

import re
from decimal import ROUND_HALF_EVEN, Decimal, DecimalException, InvalidOperation
from typing import List, Optional, Tuple

SalaryRange = Tuple[Optional[Decimal], Optional[Decimal]]

WORKING_DAYS_PER_YEAR = Decimal(230)
WORKING_HOURS_PER_YEAR = Decimal(1840)
MONTHS_PER_YEAR = Decimal(12)

_NOT_A_FIGURE = re.compile(
    r"salary\s+not\s+provided|not\s+specified|competitive|negotiable", re.IGNORECASE
)

# Checked in order; the first period that matches wins.
_PERIODS = (
    (re.compile(r"\b(a\s+day|daily|per\s+day|/day)\b", re.IGNORECASE), WORKING_DAYS_PER_YEAR),
    (
        re.compile(r"\b(an?\s+hour|hourly|per\s+hour|/hour|/hr|p/h)\b", re.IGNORECASE),
        WORKING_HOURS_PER_YEAR,
    ),
    (
        re.compile(r"\b(a\s+month|monthly|per\s+month|/month|pcm)\b", re.IGNORECASE),
        MONTHS_PER_YEAR,
    ),
)

_UP_TO = re.compile(r"^up\s+to\b", re.IGNORECASE)
_FROM = re.compile(r"^from\b", re.IGNORECASE)

# Optional currency marker, the figure (commas, decimals, exponent), optional k suffix.
# The suffix must not run into a following word ("50 key skills" is not 50k).
_FIGURE = re.compile(
    r"(?:[£$€]|EUR|USD|GBP)?\s*(\d[\d,]*\.?\d*(?:[eE][+\-]?\d+)?)\s*([kK](?![a-zA-Z]))?"
)

_LOOSE_FIGURE = re.compile(r"\d{1,3}(?:,\d{3})*(?:\.\d{2})?|\d+")

_THOUSAND = Decimal(1000)
_WHOLE = Decimal(1)


def parse_salary(text: Optional[str]) -> SalaryRange:
    """Parse free-text compensation into an annualised (min, max) range.

    Rules:
    - blank text or a descriptor ("Competitive", "Negotiable", "Not specified",
      "Salary not provided") gives (None, None)
    - one figure gives (v, v); "Up to v" gives (None, v); "From v" gives (v, None)
    - two or more figures: the first two, ordered so that min <= max
    - daily, hourly and monthly rates are annualised
    - in "80-90k" the trailing k applies to the whole range

    Values are rounded to whole units. Never raises.

    Args:
        text: Advertised salary text

    Returns:
        Tuple of (min, max), either of which may be None

    Example:
        >>> parse_salary("$80-90k")
        (Decimal('80000'), Decimal('90000'))
    """
    if text is None or not text.strip():
        return None, None

    text = text.strip()
    if _NOT_A_FIGURE.search(text):
        return None, None

    multiplier = _period_multiplier(text)

    try:
        figures = _extract_figures(text)
        if not figures:
            return None, None

        if len(figures) == 1:
            value = _annualise(figures[0], multiplier)
            if _UP_TO.search(text):
                return None, value
            if _FROM.search(text):
                return value, None
            return value, value

        first = _annualise(figures[0], multiplier)
        second = _annualise(figures[1], multiplier)
    except DecimalException:
        # Exponent beyond what Decimal arithmetic can represent.
        return None, None

    return min(first, second), max(first, second)


def first_salary_figure(text: Optional[str]) -> Optional[Decimal]:
    """Pull a single salary figure out of text that was never normalized.

    Takes the first number; a figure under 1000 in text mentioning "k" is
    read as thousands. No period conversion.

    Example:
        >>> first_salary_figure("50k DOE")
        Decimal('50000')
    """
    if not text:
        return None
    match = _LOOSE_FIGURE.search(text)
    if match is None:
        return None
    try:
        amount = Decimal(match.group(0).replace(",", ""))
    except InvalidOperation:
        return None
    if amount < _THOUSAND and "k" in text.lower():
        return amount * _THOUSAND
    return amount


def _period_multiplier(text: str) -> Decimal:
    for pattern, multiplier in _PERIODS:
        if pattern.search(text):
            return multiplier
    return _WHOLE


def _extract_figures(text: str) -> List[Decimal]:
    figures: List[Decimal] = []
    suffixed: List[bool] = []

    for match in _FIGURE.finditer(text):
        try:
            value = Decimal(match.group(1).replace(",", ""))
        except InvalidOperation:
            continue
        has_k = match.group(2) is not None
        if has_k:
            value *= _THOUSAND
        figures.append(value)
        suffixed.append(has_k)

    # "80-90k": the k written once covers the whole range.
    if len(figures) >= 2 and suffixed[-1]:
        for i in range(len(figures) - 1):
            if not suffixed[i] and figures[i] < _THOUSAND:
                figures[i] *= _THOUSAND

    return figures


def _annualise(value: Decimal, multiplier: Decimal) -> Decimal:
    return (value * multiplier).quantize(_WHOLE, rounding=ROUND_HALF_EVEN)
