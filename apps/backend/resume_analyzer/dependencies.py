"""FastAPI dependencies resolving per-app collaborators from ``app.state``."""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings
from .database import get_db
from .services.gemini import GeminiClient
from .services.repository import ResumeRepository


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_ai_client(request: Request) -> GeminiClient:
    return request.app.state.ai_client


def get_repository(db: AsyncSession = Depends(get_db)) -> ResumeRepository:
    return ResumeRepository(db)
