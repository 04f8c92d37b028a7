"""Pydantic schemas for resume analysis.

This module defines the fixed Analysis schema that every AI payload is
normalized into, the stored record and summary projections returned by the
API, and the success envelopes wrapping them.
"""

import json
from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field, field_validator

from resume_analyzer.models import LIST_FIELDS

NOT_SPECIFIED = "Not specified"
NO_DESCRIPTION = "No description provided"
NO_IMPROVEMENT_AREAS = "No specific improvement areas identified."

SUMMARY_MAX_LENGTH = 1000
IMPROVEMENT_AREAS_MAX_LENGTH = 2000


class WorkExperience(BaseModel):
    """A single work-history entry."""

    role: str = NOT_SPECIFIED
    company: str = NOT_SPECIFIED
    duration: str = NOT_SPECIFIED
    description: list[str] = Field(default_factory=lambda: [NO_DESCRIPTION])


class Education(BaseModel):
    """A single education entry."""

    degree: str = NOT_SPECIFIED
    institution: str = NOT_SPECIFIED
    graduation_year: str = NOT_SPECIFIED


class Project(BaseModel):
    """A personal or professional project."""

    name: str = "Unnamed Project"
    description: str = NO_DESCRIPTION
    technologies: list[str] = Field(default_factory=list)


class Certification(BaseModel):
    """A certification or licence."""

    name: str = NOT_SPECIFIED
    issuer: str = NOT_SPECIFIED
    year: str = NOT_SPECIFIED


class AnalysisPayload(BaseModel):
    """The fixed analysis schema produced by the sanitizer.

    Every list field is always present, rating is always within 1-10 and the
    free-text fields never exceed their caps.
    """

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    linkedin_url: str | None = None
    portfolio_url: str | None = None
    summary: str | None = Field(None, max_length=SUMMARY_MAX_LENGTH)
    work_experience: list[WorkExperience] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    technical_skills: list[str] = Field(default_factory=list)
    soft_skills: list[str] = Field(default_factory=list)
    projects: list[Project] = Field(default_factory=list)
    certifications: list[Certification] = Field(default_factory=list)
    resume_rating: int = Field(1, ge=1, le=10)
    improvement_areas: str = Field(
        NO_IMPROVEMENT_AREAS, max_length=IMPROVEMENT_AREAS_MAX_LENGTH
    )
    upskill_suggestions: list[str] = Field(default_factory=list)


class AnalysisResult(AnalysisPayload):
    """Sanitized analysis annotated with processing metadata (not persisted)."""

    processed_at: datetime
    file_name: str
    text_length: int


def _decode_list(value: Any) -> Any:
    """Decode a stored list column; NULL and malformed text become []."""
    if value is None:
        return []
    if isinstance(value, (str, bytes)):
        try:
            value = json.loads(value)
        except ValueError:
            return []
        return value if isinstance(value, list) else []
    return value


class ResumeRecord(AnalysisPayload):
    """Full stored record returned by upload and get-by-id."""

    id: int
    file_name: str
    uploaded_at: datetime
    created_at: datetime
    updated_at: datetime
    improvement_areas: str | None = None

    @field_validator(*LIST_FIELDS, mode="before")
    @classmethod
    def decode_list_columns(cls, value: Any) -> Any:
        return _decode_list(value)

    class Config:
        from_attributes = True


class ResumeSummary(BaseModel):
    """Reduced projection returned by the list endpoint."""

    id: int
    file_name: str
    uploaded_at: datetime
    name: str | None = None
    email: str | None = None
    resume_rating: int
    improvement_summary: str | None = None

    class Config:
        from_attributes = True


class DeletedResume(BaseModel):
    """Identity of a deleted record."""

    id: int
    file_name: str


class ResumeStats(BaseModel):
    """Aggregate statistics over all stored records."""

    total_resumes: int = 0
    avg_rating: float = 0
    max_rating: int = 0
    min_rating: int = 0
    high_rated_count: int = 0
    medium_rated_count: int = 0
    low_rated_count: int = 0


T = TypeVar("T")


class SuccessResponse(BaseModel, Generic[T]):
    """Success envelope: ``{success: true, message, data}``."""

    success: bool = True
    message: str
    data: T


class ResumeListResponse(SuccessResponse[list[ResumeSummary]]):
    """List envelope with the number of summaries returned."""

    count: int
