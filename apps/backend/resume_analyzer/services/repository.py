"""Persistence gateway for analysis records.

Maps analysis payloads to ``resumes`` rows and back, and runs the aggregate
statistics query. Every operation is a single statement. Driver and pool
failures are translated into typed storage errors here so callers never
see SQLAlchemy exceptions.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import case, delete, func, select
from sqlalchemy.exc import (
    DataError,
    IntegrityError,
    InterfaceError,
    OperationalError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from resume_analyzer.errors import (
    ConstraintViolation,
    DuplicateConflict,
    ResumeNotFound,
    StorageUnavailable,
)
from resume_analyzer.models import Resume
from resume_analyzer.schemas.resume import (
    AnalysisPayload,
    DeletedResume,
    ResumeRecord,
    ResumeStats,
    ResumeSummary,
)

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 100
# Largest value an INTEGER key can hold; anything above cannot exist
MAX_RESUME_ID = 2**31 - 1
UNIQUE_VIOLATION = "23505"


def _sqlstate(exc: IntegrityError) -> str | None:
    orig = exc.orig
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


@contextmanager
def _storage_errors() -> Iterator[None]:
    """Translate driver/pool failures into typed storage errors."""
    try:
        yield
    except IntegrityError as e:
        logger.error(f"Integrity error: {e.orig}")
        if _sqlstate(e) == UNIQUE_VIOLATION:
            raise DuplicateConflict() from e
        raise ConstraintViolation() from e
    except DataError as e:
        logger.error(f"Data error: {e.orig}")
        raise ConstraintViolation() from e
    except (OperationalError, InterfaceError, PoolTimeoutError, OSError) as e:
        logger.error(f"Database unavailable: {e}")
        raise StorageUnavailable() from e


def _preview(text: str | None) -> str | None:
    if text is not None and len(text) > PREVIEW_LENGTH:
        return text[:PREVIEW_LENGTH] + "..."
    return text


class ResumeRepository:
    """Single-statement CRUD and statistics over the resumes table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, file_name: str, analysis: AnalysisPayload) -> ResumeRecord:
        """Insert one analysed resume and return the stored record."""
        data = analysis.model_dump(
            include=set(AnalysisPayload.model_fields),
            mode="json",
        )
        resume = Resume(file_name=file_name, **data)
        with _storage_errors():
            self.session.add(resume)
            await self.session.commit()
            await self.session.refresh(resume)
        logger.info(f"Resume analyzed and saved with ID: {resume.id}")
        return ResumeRecord.model_validate(resume)

    async def list_summaries(self) -> list[ResumeSummary]:
        """Return summary projections, newest upload first."""
        query = select(
            Resume.id,
            Resume.file_name,
            Resume.uploaded_at,
            Resume.name,
            Resume.email,
            Resume.resume_rating,
            Resume.improvement_areas,
        ).order_by(Resume.uploaded_at.desc(), Resume.id.desc())
        with _storage_errors():
            result = await self.session.execute(query)
            rows = result.all()
        return [
            ResumeSummary(
                id=row.id,
                file_name=row.file_name,
                uploaded_at=row.uploaded_at,
                name=row.name,
                email=row.email,
                resume_rating=row.resume_rating,
                improvement_summary=_preview(row.improvement_areas),
            )
            for row in rows
        ]

    async def get(self, resume_id: int) -> ResumeRecord:
        """Fetch one full record.

        Raises:
            ResumeNotFound: No row with this id
        """
        if resume_id > MAX_RESUME_ID:
            raise ResumeNotFound()
        with _storage_errors():
            result = await self.session.execute(
                select(Resume).where(Resume.id == resume_id)
            )
            resume = result.scalar_one_or_none()
        if resume is None:
            raise ResumeNotFound()
        return ResumeRecord.model_validate(resume)

    async def delete(self, resume_id: int) -> DeletedResume:
        """Delete one record by id and return its identity.

        Raises:
            ResumeNotFound: No row with this id
        """
        if resume_id > MAX_RESUME_ID:
            raise ResumeNotFound()
        with _storage_errors():
            result = await self.session.execute(
                delete(Resume)
                .where(Resume.id == resume_id)
                .returning(Resume.id, Resume.file_name)
            )
            row = result.first()
            await self.session.commit()
        if row is None:
            raise ResumeNotFound()
        logger.info(f"Deleted resume {row.id} ({row.file_name})")
        return DeletedResume(id=row.id, file_name=row.file_name)

    async def stats(self) -> ResumeStats:
        """Compute aggregate statistics; an empty table yields zeros."""
        query = select(
            func.count(Resume.id).label("total_resumes"),
            func.avg(Resume.resume_rating).label("avg_rating"),
            func.max(Resume.resume_rating).label("max_rating"),
            func.min(Resume.resume_rating).label("min_rating"),
            func.count(case((Resume.resume_rating >= 8, 1))).label("high_rated_count"),
            func.count(
                case((Resume.resume_rating.between(5, 7), 1))
            ).label("medium_rated_count"),
            func.count(case((Resume.resume_rating < 5, 1))).label("low_rated_count"),
        )
        with _storage_errors():
            result = await self.session.execute(query)
            row = result.one()

        return ResumeStats(
            total_resumes=row.total_resumes or 0,
            avg_rating=round(float(row.avg_rating), 2) if row.avg_rating is not None else 0,
            max_rating=row.max_rating or 0,
            min_rating=row.min_rating or 0,
            high_rated_count=row.high_rated_count or 0,
            medium_rated_count=row.medium_rated_count or 0,
            low_rated_count=row.low_rated_count or 0,
        )
