"""Text extraction for PDF attachments.

The model never sees raw PDF bytes: a PDF attachment is sent as the text
pypdf extracts from it, and its page count is stored as attachment metadata.
"""

import io
import logging
from collections.abc import Iterator

from pydantic import BaseModel, Field
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from cerebras_chat.errors import ChatError

logger = logging.getLogger(__name__)

PDF_MAGIC_BYTES = b"%PDF"
PAGE_SEPARATOR = "\n\n"


class PDFContent(BaseModel):
    """What an attachment keeps from a PDF.

    Attributes:
        text: Extracted text, pages joined by blank lines.
        pages: Page count shown in the attachment metadata.
        title: Title from the document info, if present.
    """

    text: str
    pages: int = Field(ge=0)
    title: str | None = None


class PDFParseError(ChatError):
    """Raised when an attachment cannot be read as a PDF."""


def _open(data: bytes) -> PdfReader:
    if not data:
        raise PDFParseError("Empty file provided")
    if not data.lstrip()[:10].startswith(PDF_MAGIC_BYTES):
        raise PDFParseError("Invalid PDF: file does not start with PDF header")

    try:
        reader = PdfReader(io.BytesIO(data))
        # Page tree errors only surface once the pages are counted
        len(reader.pages)
    except PdfReadError as e:
        raise PDFParseError(f"Corrupt or invalid PDF: {e}") from e
    except Exception as e:
        raise PDFParseError(f"Failed to read PDF: {e}") from e
    return reader


def _page_texts(reader: PdfReader) -> Iterator[str]:
    for number, page in enumerate(reader.pages, start=1):
        try:
            text = page.extract_text()
        except Exception as e:
            logger.warning(f"Skipping page {number} of attachment: {e}")
            continue
        if text:
            yield text


def _title(reader: PdfReader) -> str | None:
    try:
        info = reader.metadata
    except Exception as e:
        logger.warning(f"Unreadable PDF document info: {e}")
        return None
    return str(info.title) if info and info.title else None


def parse_pdf(data: bytes) -> PDFContent:
    """Extract the text of a PDF attachment.

    A page whose text cannot be extracted is skipped; a scanned document
    yields empty text rather than an error.

    Raises:
        PDFParseError: If the bytes are empty, lack the PDF header, or
            cannot be opened.
    """
    reader = _open(data)
    text = PAGE_SEPARATOR.join(_page_texts(reader))
    if not text.strip():
        logger.warning("PDF attachment has no extractable text")
    return PDFContent(text=text, pages=len(reader.pages), title=_title(reader))
