"""
Plain-text extraction for uploaded CVs.

- PDF: pypdf, page by page
- DOCX: python-docx paragraphs
- anything else (TXT, legacy DOC): lossy UTF-8 decode
"""
import io
import logging
import re
import zipfile

import docx
from docx.opc.exceptions import PackageNotFoundError
from pypdf import PdfReader
from pypdf.errors import PdfReadError

logger = logging.getLogger(__name__)

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")
_MULTISPACE_RE = re.compile(r"[ \t]{2,}")
_MULTINEWLINE_RE = re.compile(r"\n{3,}")
_HYPHEN_LINEBREAK_RE = re.compile(r"([A-Za-z])-\n([A-Za-z])")

# Enough to keep a prompt well inside the model's context window.
MAX_CV_TEXT_CHARS = 30000


def clean_text(text: str) -> str:
    text = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    text = _CONTROL_CHARS_RE.sub("", text)
    # "devel-\nopment" -> "development"
    text = _HYPHEN_LINEBREAK_RE.sub(r"\1\2", text)
    text = _MULTISPACE_RE.sub(" ", text)
    text = _MULTINEWLINE_RE.sub("\n\n", text)
    return text.strip()


def _pdf_text(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    parts: list[str] = []
    for page in reader.pages:
        try:
            parts.append(page.extract_text() or "")
        except Exception as e:  # pypdf raises assorted errors on damaged pages
            logger.debug("Skipping unreadable PDF page: %s", e)
    return "\n".join(parts)


def _docx_text(data: bytes) -> str:
    d = docx.Document(io.BytesIO(data))
    return "\n".join(p.text for p in d.paragraphs if p.text)


def extract_cv_text(data: bytes, *, ext: str | None) -> str:
    """Best-effort text for ``data``; falls back to a raw decode when a parser fails."""
    ext_norm = (ext or "").lower()
    text = ""

    if ext_norm == ".pdf":
        try:
            text = _pdf_text(data)
        except (PdfReadError, ValueError, OSError) as e:
            logger.warning("PDF text extraction failed: %s", e)
    elif ext_norm == ".docx":
        try:
            text = _docx_text(data)
        except (PackageNotFoundError, zipfile.BadZipFile, ValueError, KeyError) as e:
            logger.warning("DOCX text extraction failed: %s", e)

    if not text.strip():
        text = data.decode("utf-8", errors="ignore")

    return clean_text(text)[:MAX_CV_TEXT_CHARS]
