"""Shared fixtures: SQLite-backed app, fake AI client and generated PDFs."""

import json

import fitz
import pytest
from fastapi.testclient import TestClient

from main import create_app
from resume_analyzer.config import Settings
from resume_analyzer.database import Database
from resume_analyzer.dependencies import get_ai_client

RESUME_TEXT = """Jane Doe
jane.doe@example.com | +1 555 0100
Senior Software Engineer with eight years of experience building APIs.
Experience: Acme Corp, Backend Engineer, 2018-2024
Designed payment services handling millions of requests per day.
Education: BSc Computer Science, State University, 2016
Skills: Python, PostgreSQL, Docker, Kubernetes"""

ANALYSIS = {
    "name": "Jane Doe",
    "email": "jane.doe@example.com",
    "phone": "+1 555 0100",
    "linkedin_url": None,
    "portfolio_url": "",
    "summary": "Senior engineer focused on backend systems.",
    "work_experience": [
        {
            "role": "Backend Engineer",
            "company": "Acme Corp",
            "duration": "2018-2024",
            "description": ["Designed payment services"],
        }
    ],
    "education": [
        {
            "degree": "BSc Computer Science",
            "institution": "State University",
            "graduation_year": "2016",
        }
    ],
    "technical_skills": ["Python", "PostgreSQL"],
    "soft_skills": ["Communication"],
    "projects": [],
    "certifications": [],
    "resume_rating": 8,
    "improvement_areas": "Quantify impact with metrics.",
    "upskill_suggestions": ["Learn Rust"],
}


def make_pdf(lines: list[str] | str = RESUME_TEXT, **save_options) -> bytes:
    """Build a one-page PDF with each line drawn as text."""
    if isinstance(lines, str):
        lines = lines.splitlines()
    doc = fitz.open()
    page = doc.new_page()
    y = 72
    for line in lines:
        page.insert_text((72, y), line, fontsize=10)
        y += 14
    data = doc.tobytes(**save_options)
    doc.close()
    return data


class FakeAIClient:
    """Stands in for GeminiClient; returns a canned reply or raises."""

    is_configured = True

    def __init__(self, reply: str | None = None, error: Exception | None = None):
        self.reply = reply if reply is not None else json.dumps(ANALYSIS)
        self.error = error
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply

    async def health(self) -> dict:
        return {"status": "configured", "model": "fake"}


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'resumes.db'}",
        google_api_key="test-key",
        environment="development",
        db_pool_size=5,
        ui_retry_attempts=1,
        ui_retry_delay=0.0,
    )


@pytest.fixture
def ai_client() -> FakeAIClient:
    return FakeAIClient()


@pytest.fixture
def app(settings, ai_client):
    app = create_app(settings)
    app.dependency_overrides[get_ai_client] = lambda: ai_client
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
async def database(settings):
    database = Database(settings)
    await database.connect()
    yield database
    await database.dispose()


@pytest.fixture
async def session(database):
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def resume_pdf() -> bytes:
    return make_pdf()


def upload(client: TestClient, data: bytes, file_name: str = "resume.pdf",
           content_type: str = "application/pdf", field: str = "resume"):
    return client.post(
        "/api/resumes/upload",
        files={field: (file_name, data, content_type)},
    )
