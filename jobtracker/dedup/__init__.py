"""Duplicate detection for incoming listings.

This module provides:
- UrlCanonicalizer / canonicalize_url: site-aware url canonical forms
- infer_source_from_url: host to source tag mapping
- Deduplicator: per-owner duplicate checks and batch partitioning
"""

from .service import DuplicateMatch, Deduplicator
from .urls import UrlCanonicalizer, canonicalize_url, infer_source_from_url

__all__ = [
    "Deduplicator",
    "DuplicateMatch",
    "UrlCanonicalizer",
    "canonicalize_url",
    "infer_source_from_url",
]
