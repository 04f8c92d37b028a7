"""Tests for the persistence gateway against SQLite."""

import pytest
from sqlalchemy import text

from resume_analyzer.errors import ConstraintViolation, ResumeNotFound
from resume_analyzer.schemas.resume import (
    AnalysisPayload,
    Certification,
    Education,
    Project,
    WorkExperience,
)
from resume_analyzer.services.repository import ResumeRepository


def _analysis(**overrides) -> AnalysisPayload:
    values = {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "resume_rating": 7,
        "technical_skills": ["Python"],
        "work_experience": [WorkExperience(role="Engineer", company="Acme")],
        "improvement_areas": "Add metrics.",
    }
    values.update(overrides)
    return AnalysisPayload(**values)


@pytest.fixture
def repository(session) -> ResumeRepository:
    return ResumeRepository(session)


class TestCreateAndGet:
    async def test_create_returns_stored_record(self, repository):
        record = await repository.create("jane.pdf", _analysis())

        assert record.id > 0
        assert record.file_name == "jane.pdf"
        assert record.resume_rating == 7
        assert record.technical_skills == ["Python"]
        assert record.work_experience[0].role == "Engineer"
        assert record.uploaded_at is not None
        assert record.created_at is not None

    async def test_get_round_trips_record(self, repository):
        created = await repository.create("jane.pdf", _analysis())

        fetched = await repository.get(created.id)

        assert fetched.id == created.id
        assert fetched.email == "jane@example.com"
        assert fetched.education == []

    async def test_nested_lists_keep_content_and_order(self, repository, session):
        work = [
            WorkExperience(
                role="Lead",
                company="Beta",
                duration="2022-2024",
                description=["Led team", "Shipped v2"],
            ),
            WorkExperience(role="Engineer", company="Acme", duration="2019-2022"),
        ]
        projects = [
            Project(name="Parser", description="PDF parsing", technologies=["Python", "Rust"]),
            Project(name="Dashboard", technologies=["TypeScript"]),
        ]
        education = [
            Education(degree="MSc", institution="Tech U", graduation_year="2019"),
            Education(degree="BSc", institution="State U", graduation_year="2017"),
        ]
        certifications = [
            Certification(name="CKA", issuer="CNCF", year="2023"),
            Certification(name="AWS SA", issuer="Amazon", year="2021"),
        ]
        analysis = _analysis(
            work_experience=work,
            projects=projects,
            education=education,
            certifications=certifications,
            technical_skills=["Python", "SQL", "Go"],
            soft_skills=["Mentoring", "Writing"],
            upskill_suggestions=["Kubernetes", "Rust"],
        )
        created = await repository.create("full.pdf", analysis)
        session.expunge_all()

        fetched = await repository.get(created.id)

        assert fetched.work_experience == work
        assert fetched.projects == projects
        assert fetched.education == education
        assert fetched.certifications == certifications
        assert fetched.technical_skills == ["Python", "SQL", "Go"]
        assert fetched.soft_skills == ["Mentoring", "Writing"]
        assert fetched.upskill_suggestions == ["Kubernetes", "Rust"]
        assert fetched.work_experience == created.work_experience

    async def test_get_unknown_id(self, repository):
        with pytest.raises(ResumeNotFound):
            await repository.get(999)

    async def test_get_id_beyond_integer_range(self, repository):
        with pytest.raises(ResumeNotFound):
            await repository.get(2**40)

    async def test_ids_are_distinct(self, repository):
        first = await repository.create("a.pdf", _analysis())
        second = await repository.create("b.pdf", _analysis())
        assert first.id != second.id

    async def test_ids_not_reused_after_delete(self, repository):
        first = await repository.create("a.pdf", _analysis())
        await repository.delete(first.id)

        second = await repository.create("b.pdf", _analysis())

        assert second.id > first.id

    async def test_null_list_columns_read_as_empty(self, repository, session):
        created = await repository.create("a.pdf", _analysis())
        await session.execute(
            text("UPDATE resumes SET technical_skills = NULL WHERE id = :id"),
            {"id": created.id},
        )
        await session.commit()
        session.expunge_all()

        fetched = await repository.get(created.id)

        assert fetched.technical_skills == []

    async def test_rating_constraint(self, repository, session):
        analysis = AnalysisPayload.model_construct(resume_rating=11)
        with pytest.raises(ConstraintViolation):
            await repository.create("bad.pdf", analysis)
        await session.rollback()


class TestListAndDelete:
    async def test_list_is_newest_first_with_preview(self, repository):
        await repository.create("old.pdf", _analysis(improvement_areas="z" * 150))
        await repository.create("new.pdf", _analysis())

        summaries = await repository.list_summaries()

        assert [s.file_name for s in summaries] == ["new.pdf", "old.pdf"]
        old = summaries[1]
        assert old.improvement_summary == "z" * 100 + "..."
        assert summaries[0].improvement_summary == "Add metrics."

    async def test_list_empty(self, repository):
        assert await repository.list_summaries() == []

    async def test_delete_returns_identity_and_removes(self, repository):
        created = await repository.create("gone.pdf", _analysis())

        deleted = await repository.delete(created.id)

        assert deleted.id == created.id
        assert deleted.file_name == "gone.pdf"
        with pytest.raises(ResumeNotFound):
            await repository.get(created.id)

    async def test_delete_twice_is_not_found(self, repository):
        created = await repository.create("gone.pdf", _analysis())
        await repository.delete(created.id)

        with pytest.raises(ResumeNotFound):
            await repository.delete(created.id)


class TestStats:
    async def test_empty_table_is_zeros(self, repository):
        stats = await repository.stats()

        assert stats.total_resumes == 0
        assert stats.avg_rating == 0
        assert stats.max_rating == 0
        assert stats.min_rating == 0
        assert stats.high_rated_count == 0

    async def test_bands_and_average(self, repository):
        for rating in (9, 8, 6, 5, 2):
            await repository.create(f"{rating}.pdf", _analysis(resume_rating=rating))

        stats = await repository.stats()

        assert stats.total_resumes == 5
        assert stats.avg_rating == 6.0
        assert stats.max_rating == 9
        assert stats.min_rating == 2
        assert stats.high_rated_count == 2
        assert stats.medium_rated_count == 2
        assert stats.low_rated_count == 1
        assert (
            stats.high_rated_count + stats.medium_rated_count + stats.low_rated_count
            == stats.total_resumes
        )

    async def test_average_is_rounded(self, repository):
        for rating in (7, 7, 8):
            await repository.create(f"{rating}.pdf", _analysis(resume_rating=rating))

        assert (await repository.stats()).avg_rating == 7.33
