"""Scoring preferences and score breakdown models."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List

from pydantic import BaseModel, Field, field_validator, model_validator


class ScoringPreferences(BaseModel):
    """Per-owner weights and preference lists for the scoring engine.

    Each weight multiplies one factor's points; 0 disables the factor.
    Weights must be finite.
    """

    model_config = {"allow_inf_nan": False}

    enable_scoring: bool = Field(True)

    skills_weight: float = Field(1.0, ge=0)
    salary_weight: float = Field(1.0, ge=0)
    remote_weight: float = Field(1.0, ge=0)
    location_weight: float = Field(1.0, ge=0)
    keyword_weight: float = Field(1.0, ge=0)
    company_weight: float = Field(1.0, ge=0)
    learning_weight: float = Field(1.0, ge=0)

    preferred_skills: List[str] = Field(default_factory=list)
    must_have_keywords: List[str] = Field(default_factory=list)
    avoid_keywords: List[str] = Field(default_factory=list)
    preferred_companies: List[str] = Field(default_factory=list)
    avoid_companies: List[str] = Field(default_factory=list)
    preferred_locations: List[str] = Field(default_factory=list)

    min_desired_salary: Decimal = Field(Decimal(0), ge=0)
    max_desired_salary: Decimal = Field(Decimal(0), ge=0, description="0 means no upper bound")
    prefer_remote: bool = Field(True)

    @field_validator(
        "preferred_skills",
        "must_have_keywords",
        "avoid_keywords",
        "preferred_companies",
        "avoid_companies",
        "preferred_locations",
    )
    @classmethod
    def drop_blank_terms(cls, v: List[str]) -> List[str]:
        """Strip whitespace and remove empty entries."""
        return [term.strip() for term in v if term and term.strip()]

    @model_validator(mode="after")
    def validate_salary_range(self):
        if (
            self.min_desired_salary > 0
            and self.max_desired_salary > 0
            and self.max_desired_salary < self.min_desired_salary
        ):
            raise ValueError(
                f"max_desired_salary ({self.max_desired_salary}) must not be below "
                f"min_desired_salary ({self.min_desired_salary})"
            )
        return self


@dataclass(frozen=True)
class FactorScore:
    """One factor's contribution, already multiplied by its weight.

    Attributes:
        name: Factor name (skills, salary, remote, location, keywords, company, learning)
        points: Weighted points earned
        max_points: Weighted maximum achievable
        weight: Multiplier applied
    """

    name: str
    points: float
    max_points: float
    weight: float


@dataclass
class ScoreResult:
    """Final 0-100 score plus the factors that produced it."""

    score: int = 0
    factors: List[FactorScore] = field(default_factory=list)

    @property
    def total(self) -> float:
        return sum(f.points for f in self.factors)

    @property
    def max_possible(self) -> float:
        return sum(f.max_points for f in self.factors)
