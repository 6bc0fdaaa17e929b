"""Attachment ingestion for chat messages.

Transforms uploaded files into attachment records the model can read.

Responsibilities:
    - Size and type validation
    - Text decoding, and data URLs for images
    - Image thumbnails and pre-send compression with Pillow
    - PDF text extraction with pypdf
    - Metadata extraction (dimensions, pages, source language, encoding)
"""

from cerebras_chat.parsing.file_ingestor import (
    MAX_FILE_SIZE,
    FileIngestor,
    RawFile,
    compress_image,
    create_attached_file,
    create_thumbnail,
    detect_file_language,
    format_file_size,
    is_text_file,
    validate_file,
)
from cerebras_chat.parsing.pdf_parser import PDFContent, PDFParseError, parse_pdf

__all__ = [
    "MAX_FILE_SIZE",
    "FileIngestor",
    "PDFContent",
    "PDFParseError",
    "RawFile",
    "compress_image",
    "create_attached_file",
    "create_thumbnail",
    "detect_file_language",
    "format_file_size",
    "is_text_file",
    "parse_pdf",
    "validate_file",
]
