"""Pipeline orchestration for listing intake and re-evaluation."""

from jobtracker.normalization.salary import parse_salary

from .models import IntakeResult, PurgeResult, ReconcileResult, ReevaluationResult
from .runner import ListingPipeline

__all__ = [
    "ListingPipeline",
    "IntakeResult",
    "ReevaluationResult",
    "ReconcileResult",
    "PurgeResult",
    "parse_salary",
]
