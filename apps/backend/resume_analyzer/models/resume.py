"""Resume model storing one analysed upload."""

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, JSON, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin

# Native JSONB on PostgreSQL, serialized JSON text elsewhere
JSONList = JSON().with_variant(JSONB(), "postgresql")

LIST_FIELDS = (
    "work_experience",
    "education",
    "technical_skills",
    "soft_skills",
    "projects",
    "certifications",
    "upskill_suggestions",
)


class Resume(Base, TimestampMixin):
    """Analysis record for an uploaded resume."""

    __tablename__ = "resumes"

    # Surrogate key, never reused after deletion
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Source metadata
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Contact fields
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    linkedin_url: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    portfolio_url: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Structured lists
    work_experience: Mapped[List[dict[str, Any]]] = mapped_column(JSONList, default=list)
    education: Mapped[List[dict[str, Any]]] = mapped_column(JSONList, default=list)
    technical_skills: Mapped[List[str]] = mapped_column(JSONList, default=list)
    soft_skills: Mapped[List[str]] = mapped_column(JSONList, default=list)
    projects: Mapped[List[dict[str, Any]]] = mapped_column(JSONList, default=list)
    certifications: Mapped[List[dict[str, Any]]] = mapped_column(JSONList, default=list)
    upskill_suggestions: Mapped[List[str]] = mapped_column(JSONList, default=list)

    # Assessment
    resume_rating: Mapped[int] = mapped_column(Integer, nullable=False)
    improvement_areas: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "resume_rating >= 1 AND resume_rating <= 10",
            name="ck_resumes_rating_range",
        ),
        Index("idx_resumes_uploaded_at", "uploaded_at"),
        Index("idx_resumes_rating", "resume_rating"),
        Index("idx_resumes_email", "email"),
        Index("idx_resumes_name", "name"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        return f"<Resume(id={self.id}, file_name='{self.file_name}', rating={self.resume_rating})>"
