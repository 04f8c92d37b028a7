"""Tests for PDF text extraction with real PyMuPDF documents."""

import fitz
import pytest

from conftest import RESUME_TEXT, make_pdf
from resume_analyzer.errors import (
    CorruptOrEncrypted,
    EmptyDocument,
    InsufficientContent,
)
from resume_analyzer.services.extractor import extract_text


async def test_extracts_text_from_pdf():
    text = await extract_text(make_pdf(), "resume.pdf")

    assert "Jane Doe" in text
    assert "Kubernetes" in text


async def test_blank_pdf_is_empty_document():
    with pytest.raises(EmptyDocument) as exc_info:
        await extract_text(make_pdf([]), "blank.pdf")
    assert exc_info.value.status_code == 400


async def test_short_text_is_insufficient():
    with pytest.raises(InsufficientContent) as exc_info:
        await extract_text(make_pdf(["Jane Doe"]), "short.pdf")
    assert "very little text" in exc_info.value.message


async def test_garbage_bytes_are_corrupt():
    with pytest.raises(CorruptOrEncrypted):
        await extract_text(b"this is not a pdf at all", "fake.pdf")


async def test_password_protected_pdf_is_rejected():
    data = make_pdf(
        RESUME_TEXT,
        encryption=fitz.PDF_ENCRYPT_AES_256,
        user_pw="secret",
        owner_pw="owner-secret",
    )

    with pytest.raises(CorruptOrEncrypted) as exc_info:
        await extract_text(data, "locked.pdf")
    assert "password protected" in exc_info.value.message
