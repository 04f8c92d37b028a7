"""Database models for the resume analyzer."""

from .base import Base
from .resume import LIST_FIELDS, Resume

__all__ = [
    "Base",
    "Resume",
    "LIST_FIELDS",
]
