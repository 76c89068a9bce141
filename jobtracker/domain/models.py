"""Core domain models: job listings and the change records produced about them.

- Listing: one tracked job posting belonging to one owner
- ChangeRecord: a structured "what changed" entry for the audit/history collaborator
- Label enums: interest, suitability, job type, application stage
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from jobtracker.utils.timestamps import ensure_utc, utc_now


class InterestStatus(str, Enum):
    """User's subjective attraction to a listing."""

    NOT_RATED = "not_rated"
    INTERESTED = "interested"
    NOT_INTERESTED = "not_interested"


class SuitabilityStatus(str, Enum):
    """Fit/viability label for a listing."""

    NOT_CHECKED = "not_checked"
    POSSIBLE = "possible"
    UNSUITABLE = "unsuitable"


class JobType(str, Enum):
    FULL_TIME = "full_time"
    PART_TIME = "part_time"
    CONTRACT = "contract"
    TEMPORARY = "temporary"
    INTERNSHIP = "internship"
    VOLUNTEER = "volunteer"
    OTHER = "other"


class ApplicationStage(str, Enum):
    """Application progress. Owned by collaborators; the core only reads it."""

    NONE = "none"
    APPLIED = "applied"
    NO_REPLY = "no_reply"
    PENDING = "pending"
    GHOSTED = "ghosted"
    REJECTED = "rejected"
    TECH_TEST = "tech_test"
    INTERVIEW = "interview"
    OFFER = "offer"


class ChangeType(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


class ChangeSource(str, Enum):
    """What caused a change."""

    INTAKE = "intake"
    RULE = "rule"
    AUTO_FETCH = "auto_fetch"
    SYSTEM = "system"


class Listing(BaseModel):
    """A tracked job posting.

    Text fields default to the empty string rather than None so that rule
    conditions and scoring factors can treat "absent" and "blank" alike.
    ``salary_min``/``salary_max`` are annualised amounts derived from the
    free-text ``salary`` by the salary normalizer.

    Within one owner's listings, no two may share a canonical url or a
    (trimmed, case-insensitive) title+company pair.
    """

    id: str = Field(default_factory=lambda: uuid4().hex, description="Listing identifier")
    owner_id: Optional[str] = Field(None, description="Owning user; None means unresolved")
    title: str = Field("", description="Job title")
    company: str = Field("", description="Hiring company")
    description: str = Field("", description="Full description text")
    location: str = Field("", description="Free-text location")
    url: str = Field("", description="Link to the posting")
    source: str = Field("", description="Source site tag, e.g. LinkedIn")
    salary: str = Field("", description="Free-text compensation as advertised")
    salary_min: Optional[Decimal] = Field(None, description="Annualised minimum")
    salary_max: Optional[Decimal] = Field(None, description="Annualised maximum")
    is_remote: bool = Field(False, description="Remote-work flag")
    skills: List[str] = Field(default_factory=list, description="Skill tags")
    job_type: JobType = Field(JobType.FULL_TIME, description="Employment type")
    interest: InterestStatus = Field(InterestStatus.NOT_RATED)
    suitability: SuitabilityStatus = Field(SuitabilityStatus.NOT_CHECKED)
    suitability_score: int = Field(0, ge=0, le=100, description="Desirability score 0-100")
    has_applied: bool = Field(False)
    application_stage: ApplicationStage = Field(ApplicationStage.NONE)
    date_added: Optional[datetime] = Field(None, description="When intake accepted it (UTC)")
    last_checked: Optional[datetime] = Field(None, description="Last time details were refreshed (UTC)")

    @field_validator(
        "title", "company", "description", "location", "url", "source", "salary", mode="before"
    )
    @classmethod
    def none_to_empty(cls, v: Optional[str]) -> str:
        """Collaborators may send null text; store it as an empty string."""
        return "" if v is None else v

    @field_validator("owner_id")
    @classmethod
    def blank_owner_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        stripped = v.strip()
        return stripped or None

    @field_validator("skills")
    @classmethod
    def drop_blank_skills(cls, v: List[str]) -> List[str]:
        return [skill.strip() for skill in v if skill and skill.strip()]

    @field_validator("date_added", "last_checked")
    @classmethod
    def to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    model_config = {"json_schema_extra": {"example": {
        "id": "4f1c2b9e0d8a4c6b9a7e3d2f1b0c9a8e",
        "owner_id": "user-1",
        "title": "Senior Python Developer",
        "company": "Example Ltd",
        "location": "Edinburgh",
        "url": "https://www.linkedin.com/jobs/view/4331453808/",
        "source": "LinkedIn",
        "salary": "£60,000 - £70,000",
        "is_remote": True,
        "skills": ["python", "django"],
    }}}


class ChangeRecord(BaseModel):
    """One "what changed" entry for the audit/history collaborator.

    The core produces these; persisting them is the caller's concern.
    """

    listing_id: str = Field(..., description="Listing the change applies to")
    owner_id: Optional[str] = Field(None)
    field_name: str = Field(..., description="Changed attribute, e.g. interest")
    old_value: Optional[str] = Field(None)
    new_value: Optional[str] = Field(None)
    change_type: ChangeType = Field(ChangeType.MODIFIED)
    change_source: ChangeSource = Field(ChangeSource.RULE)
    rule_name: Optional[str] = Field(None, description="Rule responsible, if any")
    description: str = Field("", description="Human-readable summary")
    changed_at: datetime = Field(default_factory=utc_now)

    @field_validator("changed_at")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)
