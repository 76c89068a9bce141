"""Normalization of free-text listing fields.

This module provides:
- parse_salary: free-text compensation to an annualised (min, max) range
- first_salary_figure: lenient single-figure extraction used by scoring
- clean_text / clean_listing: repair of doubled or padded scraped text
"""

from .salary import first_salary_figure, parse_salary
from .text import clean_listing, clean_text

__all__ = [
    "parse_salary",
    "first_salary_figure",
    "clean_text",
    "clean_listing",
]
