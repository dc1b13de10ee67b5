"""Document text extraction for summary requests.

Plain text and markdown are decoded as UTF-8; PDFs go through pypdf.
"""

import io
import logging
from pathlib import PurePath

from pydantic import BaseModel, Field
from pypdf import PdfReader
from pypdf.errors import PdfReadError

logger = logging.getLogger(__name__)

# Constants
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
PDF_MAGIC_BYTES = b"%PDF"
TEXT_EXTENSIONS = frozenset({".txt", ".md"})
SUPPORTED_EXTENSIONS = TEXT_EXTENSIONS | {".pdf"}


class DocumentContent(BaseModel):
    """Text extracted from an uploaded document.

    Attributes:
        text: Full document text.
        pages: Page count for PDFs, 1 for text files.
    """

    text: str
    pages: int = Field(ge=0)


class DocumentParseError(Exception):
    """Raised when a document cannot be turned into text."""


def _extension(filename: str) -> str:
    suffix = PurePath(filename).suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        allowed = ", ".join(sorted(SUPPORTED_EXTENSIONS))
        raise DocumentParseError(f"Unsupported file type '{suffix or filename}' (allowed: {allowed})")
    return suffix


def _decode_text(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise DocumentParseError(f"File is not valid UTF-8 text: {e}") from e


def _extract_pdf_text(content: bytes) -> DocumentContent:
    if not content.lstrip()[:10].startswith(PDF_MAGIC_BYTES):
        raise DocumentParseError("Invalid PDF: file does not start with PDF header")

    try:
        reader = PdfReader(io.BytesIO(content))
        pages = len(reader.pages)
    except PdfReadError as e:
        raise DocumentParseError(f"Corrupt or invalid PDF: {e}") from e
    except Exception as e:
        raise DocumentParseError(f"Failed to read PDF: {e}") from e

    if pages == 0:
        raise DocumentParseError("PDF contains no pages")

    text_parts: list[str] = []
    for i, page in enumerate(reader.pages):
        try:
            page_text = page.extract_text()
        except Exception as e:
            logger.warning(f"Failed to extract text from page {i + 1}: {e}")
            continue
        if page_text:
            text_parts.append(page_text)

    return DocumentContent(text="\n\n".join(text_parts), pages=pages)


def parse_document(filename: str, content: bytes) -> DocumentContent:
    """Extract the text of an uploaded document.

    Args:
        filename: Original file name; its extension selects the parser.
        content: Raw file bytes.

    Returns:
        DocumentContent with the document text.

    Raises:
        DocumentParseError: If the file is empty, too large, of an
            unsupported type, or unreadable.
    """
    suffix = _extension(filename)

    if not content:
        raise DocumentParseError("Empty file provided")

    if len(content) > MAX_FILE_SIZE:
        size_mb = len(content) / (1024 * 1024)
        raise DocumentParseError(f"File size ({size_mb:.1f}MB) exceeds maximum allowed (10MB)")

    if suffix in TEXT_EXTENSIONS:
        document = DocumentContent(text=_decode_text(content), pages=1)
    else:
        document = _extract_pdf_text(content)

    if not document.text.strip():
        logger.warning(f"{filename} contains no extractable text")

    return document
