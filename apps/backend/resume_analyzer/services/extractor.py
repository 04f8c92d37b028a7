"""PDF text extraction using PyMuPDF."""

import asyncio
import logging

import fitz  # PyMuPDF

from resume_analyzer.errors import (
    CorruptOrEncrypted,
    EmptyDocument,
    ExtractionFailed,
    InsufficientContent,
)

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 50


def _read_pdf_text(pdf_bytes: bytes) -> str:
    try:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    except (fitz.FileDataError, fitz.EmptyFileError) as e:
        raise CorruptOrEncrypted() from e
    except Exception as e:
        raise ExtractionFailed() from e

    try:
        if doc.needs_pass:
            raise CorruptOrEncrypted(
                "PDF is password protected. Please upload an unprotected PDF."
            )
        logger.info(f"PDF info: {doc.page_count} pages, {(doc.metadata or {}).get('title') or 'No title'}")
        return "\n".join(page.get_text() for page in doc)
    except CorruptOrEncrypted:
        raise
    except Exception as e:
        raise ExtractionFailed() from e
    finally:
        doc.close()


async def extract_text(pdf_bytes: bytes, file_name: str) -> str:
    """Extract text content from a PDF upload.

    PyMuPDF is blocking, so parsing runs in a worker thread.

    Args:
        pdf_bytes: Raw PDF file content
        file_name: Original file name, used for logging

    Returns:
        Extracted text

    Raises:
        EmptyDocument: No text at all (blank or image-only PDF)
        InsufficientContent: Fewer than 50 non-whitespace-padded characters
        CorruptOrEncrypted: Invalid, corrupted or password-protected file
        ExtractionFailed: Any other extraction failure
    """
    logger.info(f"Extracting text from PDF: {file_name}")
    text = await asyncio.to_thread(_read_pdf_text, pdf_bytes)

    stripped = text.strip()
    if not stripped:
        raise EmptyDocument()
    if len(stripped) < MIN_TEXT_LENGTH:
        raise InsufficientContent()

    logger.info(f"Successfully extracted {len(text)} characters from {file_name}")
    return text
