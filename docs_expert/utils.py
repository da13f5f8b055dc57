"""
================================================================================
FILE: docs_expert/utils.py
================================================================================

PURPOSE:
    Shared helpers with no dependencies on the pipeline: logging setup,
    request ids, and text extraction for uploaded files.

WORKFLOW:
    1. SECTION 1: Logging - one root handler, text or JSON lines
    2. SECTION 2: Common helpers - request ids, truncation
    3. SECTION 3: File utilities - bytes -> text per file type

KEY FACTS:
    - Only imports docs_expert.config and docs_expert.core.exceptions
    - File extraction is in-memory (no temp files)
    - Markdown/text line breaks are preserved; the chunker needs headers
"""

import json
import logging
import os
import sys
import uuid
from io import BytesIO
from typing import Optional

from docx import Document
from PyPDF2 import PdfReader

from docs_expert.config import constants
from docs_expert.core.exceptions import UnsupportedFileTypeError, ValidationError

logger = logging.getLogger(__name__)

TEXT_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s - %(message)s"

# LogRecord attributes that are not user-supplied `extra` fields
_RESERVED_RECORD_FIELDS = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


# ============================================================================
# SECTION 1: LOGGING
# ============================================================================

class JSONFormatter(logging.Formatter):
    """One JSON object per line; `extra` fields are merged in."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_FIELDS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: str = "INFO", log_format: str = "text") -> None:
    """
    Install a single stderr handler on the root logger.

    Safe to call more than once (CLI then app startup); existing root
    handlers are replaced.
    """
    handler = logging.StreamHandler(sys.stderr)
    if log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_LOG_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level.upper())

    # Per-request access lines are noise next to our own request logs
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ============================================================================
# SECTION 2: COMMON HELPERS
# ============================================================================

def generate_request_id() -> str:
    """Generate unique request ID (UUID v4)."""
    return str(uuid.uuid4())


def truncate_text(text: str, max_length: int) -> str:
    if len(text) > max_length:
        return text[:max_length]
    return text


def file_extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


# ============================================================================
# SECTION 3: FILE UTILITIES
# ============================================================================

def decode_text(content: bytes) -> str:
    """UTF-8 with a Latin-1 fallback (never fails)."""
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def extract_text_from_pdf(content: bytes) -> str:
    try:
        reader = PdfReader(BytesIO(content))
        pages = [page.extract_text() or "" for page in reader.pages]
    except Exception as e:
        raise ValidationError(
            "Could not read PDF file",
            context={"reason": str(e), "hint": "Upload a text-based (not scanned) PDF"},
        )
    return "\n\n".join(p.strip() for p in pages if p.strip())


def extract_text_from_docx(content: bytes) -> str:
    try:
        doc = Document(BytesIO(content))
    except Exception as e:
        raise ValidationError(
            "Could not read DOCX file",
            context={"reason": str(e), "hint": "Re-save the document as .docx"},
        )

    parts = [p.text for p in doc.paragraphs if p.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                parts.append(" | ".join(cells))
    return "\n\n".join(parts)


def extract_text_from_json(content: bytes) -> str:
    """Pretty-printed JSON when parseable, raw text otherwise."""
    text = decode_text(content)
    try:
        return json.dumps(json.loads(text), indent=2, ensure_ascii=False)
    except json.JSONDecodeError:
        return text


def extract_text_from_file(
    content: bytes,
    filename: str,
    content_type: Optional[str] = None,
) -> str:
    """
    Route an upload to the right extractor.

    ROUTING:
        .md / .markdown / .txt / text/*  -> decoded as-is
        .json                            -> pretty-printed
        .pdf                             -> PyPDF2
        .docx                            -> python-docx

    Raises:
        UnsupportedFileTypeError: anything else
        ValidationError: file could not be parsed
    """
    extension = file_extension(filename)
    logger.debug(f"Extracting text from {filename} ({extension or content_type})")

    if extension in constants.JSON_UPLOAD_EXTENSIONS:
        return extract_text_from_json(content)
    if extension == ".pdf":
        return extract_text_from_pdf(content)
    if extension == ".docx":
        return extract_text_from_docx(content)
    if extension in constants.TEXT_UPLOAD_EXTENSIONS or (
        content_type or ""
    ).startswith("text/"):
        return decode_text(content)

    raise UnsupportedFileTypeError(
        f"Unsupported file type: {extension or content_type or 'unknown'}",
        context={
            "filename": filename,
            "hint": "Supported formats: " + ", ".join(constants.SUPPORTED_UPLOAD_EXTENSIONS),
        },
    )
