"""Domain models shared by every stage of the decision pipeline."""

from .models import (
    ApplicationStage,
    ChangeRecord,
    ChangeSource,
    ChangeType,
    InterestStatus,
    JobType,
    Listing,
    SuitabilityStatus,
)

__all__ = [
    "Listing",
    "ChangeRecord",
    "InterestStatus",
    "SuitabilityStatus",
    "JobType",
    "ApplicationStage",
    "ChangeType",
    "ChangeSource",
]
