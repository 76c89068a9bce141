"""Desirability scoring for listings.

This module provides:
- ScoringPreferences: per-owner weights and preference lists
- ScoringEngine: weighted seven-factor 0-100 score
- ScoreResult / FactorScore: score breakdown
"""

from .engine import ScoringEngine, effective_salary, top_title_keywords
from .models import FactorScore, ScoreResult, ScoringPreferences

__all__ = [
    "ScoringEngine",
    "ScoringPreferences",
    "ScoreResult",
    "FactorScore",
    "effective_salary",
    "top_title_keywords",
]
