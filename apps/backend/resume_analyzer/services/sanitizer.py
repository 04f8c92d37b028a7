"""Normalization of untrusted AI payloads into the fixed analysis schema.

The AI service returns free-form JSON whose shape cannot be trusted.
``sanitize_analysis`` is a total function: it never raises, and whatever it is
given comes out as a complete ``AnalysisPayload`` with defaults applied,
lists never null, rating clamped to 1-10 and long text truncated.
"""

import logging
import math
import re
from typing import Any

from resume_analyzer.schemas.resume import (
    IMPROVEMENT_AREAS_MAX_LENGTH,
    NO_DESCRIPTION,
    NO_IMPROVEMENT_AREAS,
    NOT_SPECIFIED,
    SUMMARY_MAX_LENGTH,
    AnalysisPayload,
    Certification,
    Education,
    Project,
    WorkExperience,
)

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class UntrustedPayload:
    """Decoded JSON from the AI service that has not been validated yet.

    The only way into the typed domain is ``sanitize_analysis``.
    """

    __slots__ = ("raw",)

    def __init__(self, raw: Any):
        self.raw = raw

    def __repr__(self) -> str:
        return f"<UntrustedPayload({type(self.raw).__name__})>"


def _text(value: Any) -> str | None:
    """Return a usable string or None for empty/missing/non-scalar values."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, int):
        return str(value) if value else None
    if isinstance(value, float):
        if not value or not math.isfinite(value):
            return None
        return str(value)
    return None


def _text_or(value: Any, default: str) -> str:
    text = _text(value)
    return text if text is not None else default


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [text for text in (_text(item) for item in value) if text is not None]


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _truncate(text: str | None, limit: int) -> str | None:
    if text is not None and len(text) > limit:
        return text[: limit - 3] + "..."
    return text


def parse_rating(value: Any) -> int:
    """Parse a rating the way a lenient integer parse would, clamped to 1-10.

    Floats truncate toward zero, strings use their leading integer
    ("8/10" -> 8), and anything unparseable becomes 1.
    """
    rating: int | None = None
    if isinstance(value, bool):
        rating = None
    elif isinstance(value, int):
        rating = value
    elif isinstance(value, float):
        rating = int(value) if math.isfinite(value) else None
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        rating = int(match.group(1)) if match else None

    if rating is None or rating < 1:
        return 1
    if rating > 10:
        return 10
    return rating


def _work_experience(item: Any) -> WorkExperience:
    data = _mapping(item)
    raw_description = data.get("description")
    if isinstance(raw_description, list):
        description = _string_list(raw_description)
    elif _text(raw_description) is not None:
        description = [_text(raw_description)]
    else:
        description = [NO_DESCRIPTION]
    return WorkExperience(
        role=_text_or(data.get("role"), NOT_SPECIFIED),
        company=_text_or(data.get("company"), NOT_SPECIFIED),
        duration=_text_or(data.get("duration"), NOT_SPECIFIED),
        description=description,
    )


def _education(item: Any) -> Education:
    data = _mapping(item)
    return Education(
        degree=_text_or(data.get("degree"), NOT_SPECIFIED),
        institution=_text_or(data.get("institution"), NOT_SPECIFIED),
        graduation_year=_text_or(data.get("graduation_year"), NOT_SPECIFIED),
    )


def _project(item: Any) -> Project:
    data = _mapping(item)
    return Project(
        name=_text_or(data.get("name"), "Unnamed Project"),
        description=_text_or(data.get("description"), NO_DESCRIPTION),
        technologies=_string_list(data.get("technologies")),
    )


def _certification(item: Any) -> Certification:
    data = _mapping(item)
    return Certification(
        name=_text_or(data.get("name"), NOT_SPECIFIED),
        issuer=_text_or(data.get("issuer"), NOT_SPECIFIED),
        year=_text_or(data.get("year"), NOT_SPECIFIED),
    )


def _records(value: Any, build) -> list:
    if not isinstance(value, list):
        return []
    return [build(item) for item in value]


def sanitize_analysis(payload: UntrustedPayload) -> AnalysisPayload:
    """Coerce an untrusted AI payload into a complete ``AnalysisPayload``.

    Args:
        payload: Decoded JSON of unknown shape

    Returns:
        AnalysisPayload with every field present and within bounds
    """
    data = _mapping(payload.raw)

    return AnalysisPayload(
        name=_text(data.get("name")),
        email=_text(data.get("email")),
        phone=_text(data.get("phone")),
        linkedin_url=_text(data.get("linkedin_url")),
        portfolio_url=_text(data.get("portfolio_url")),
        summary=_truncate(_text(data.get("summary")), SUMMARY_MAX_LENGTH),
        work_experience=_records(data.get("work_experience"), _work_experience),
        education=_records(data.get("education"), _education),
        technical_skills=_string_list(data.get("technical_skills")),
        soft_skills=_string_list(data.get("soft_skills")),
        projects=_records(data.get("projects"), _project),
        certifications=_records(data.get("certifications"), _certification),
        resume_rating=parse_rating(data.get("resume_rating")),
        improvement_areas=_truncate(
            _text_or(data.get("improvement_areas"), NO_IMPROVEMENT_AREAS),
            IMPROVEMENT_AREAS_MAX_LENGTH,
        ),
        upskill_suggestions=_string_list(data.get("upskill_suggestions")),
    )
