"""Attachment ingestion: validation, reading, thumbnails and metadata.

Turns a raw upload into an immutable AttachedFile. Validation failures are
raised; thumbnail and metadata failures are logged and leave the optional
field empty, so the file is still attached.
"""

import asyncio
import base64
import io
import logging
import mimetypes
from pathlib import Path

from PIL import Image
from pydantic import BaseModel, Field

from cerebras_chat.errors import FileValidationError
from cerebras_chat.models.schemas import AttachedFile, Dimensions, FileMetadata
from cerebras_chat.parsing.pdf_parser import PDFParseError, parse_pdf

logger = logging.getLogger(__name__)

# Constants
MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB
THUMBNAIL_MAX_SIZE = 150
THUMBNAIL_QUALITY = 70
COMPRESS_MAX_WIDTH = 1920
COMPRESS_QUALITY = 80
DEFAULT_ENCODING = "UTF-8"

TEXT_MIME_PREFIXES = (
    "text/",
    "application/json",
    "application/javascript",
    "application/typescript",
    "application/xml",
    "application/csv",
    "application/yaml",
    "application/x-yaml",
)

ALLOWED_MIME_PREFIXES = (*TEXT_MIME_PREFIXES, "image/", "application/pdf")

TEXT_EXTENSIONS = frozenset({
    "txt", "md", "json", "js", "ts", "jsx", "tsx", "css", "html", "xml", "csv",
    "py", "java", "cpp", "c", "h", "php", "rb", "go", "rs", "swift", "kt",
    "scala", "sh", "yml", "yaml", "toml", "ini", "cfg", "conf", "log",
    "sql", "r", "matlab", "pl", "lua", "dart", "vue", "svelte",
})

LANGUAGE_BY_EXTENSION = {
    "js": "javascript",
    "ts": "typescript",
    "jsx": "javascript",
    "tsx": "typescript",
    "py": "python",
    "java": "java",
    "cpp": "cpp",
    "c": "c",
    "h": "c",
    "php": "php",
    "rb": "ruby",
    "go": "go",
    "rs": "rust",
    "swift": "swift",
    "kt": "kotlin",
    "scala": "scala",
    "sh": "bash",
    "sql": "sql",
    "html": "html",
    "css": "css",
    "xml": "xml",
    "json": "json",
    "yaml": "yaml",
    "yml": "yaml",
}

IMAGE_PLACEHOLDER = "Image (text recognition not available)"
UNSUPPORTED_PLACEHOLDER = "Unsupported file type for text extraction"

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


class RawFile(BaseModel):
    """An uploaded file before ingestion.

    Attributes:
        name: Declared file name.
        type: Declared MIME type, possibly empty.
        data: Raw bytes.
    """

    name: str
    type: str = ""
    data: bytes = Field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: Path | str) -> "RawFile":
        """Read a file from disk, guessing its MIME type from the name."""
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(name=path.name, type=mime_type or "", data=path.read_bytes())


def format_file_size(size: int) -> str:
    """Format a byte count for display, e.g. ``1.5 KB``."""
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[unit]}"


def _extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def is_image_file(mime_type: str) -> bool:
    return mime_type.startswith("image/")


def is_pdf_file(mime_type: str) -> bool:
    return mime_type == "application/pdf"


def is_text_file(filename: str, mime_type: str) -> bool:
    """Return True for text-like MIME types or known text extensions."""
    return mime_type.startswith(TEXT_MIME_PREFIXES) or _extension(filename) in TEXT_EXTENSIONS


def detect_file_language(filename: str) -> str:
    """Guess a source-code language tag from the file extension."""
    return LANGUAGE_BY_EXTENSION.get(_extension(filename), "text")


def validate_file(raw: RawFile, max_size: int = MAX_FILE_SIZE) -> None:
    """Check size first, then type.

    Raises:
        FileValidationError: If the file is too large or unsupported.
    """
    if raw.size > max_size:
        raise FileValidationError(
            raw.name,
            f"File is too large. Maximum size: {format_file_size(max_size)}",
        )

    if not (raw.type.startswith(ALLOWED_MIME_PREFIXES) or is_text_file(raw.name, raw.type)):
        raise FileValidationError(raw.name, "Unsupported file type")


def _data_url(mime_type: str, data: bytes) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def create_thumbnail(data: bytes) -> str | None:
    """Downscale an image to fit 150x150 and return it as a JPEG data URL.

    Returns:
        The thumbnail, or None if the image cannot be decoded.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.thumbnail((THUMBNAIL_MAX_SIZE, THUMBNAIL_MAX_SIZE))
            buffer = io.BytesIO()
            img.convert("RGB").save(buffer, format="JPEG", quality=THUMBNAIL_QUALITY)
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        logger.warning(f"Failed to create thumbnail: {e}")
        return None
    return _data_url("image/jpeg", buffer.getvalue())


def image_dimensions(data: bytes) -> Dimensions | None:
    try:
        with Image.open(io.BytesIO(data)) as img:
            return Dimensions(width=img.width, height=img.height)
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        logger.warning(f"Failed to read image dimensions: {e}")
        return None


def compress_image(
    raw: RawFile,
    max_width: int = COMPRESS_MAX_WIDTH,
    quality: int = COMPRESS_QUALITY,
) -> RawFile:
    """Re-encode an image wider than ``max_width`` at reduced quality.

    Non-images, narrow images and undecodable data are returned unchanged.
    """
    if not is_image_file(raw.type):
        return raw

    try:
        with Image.open(io.BytesIO(raw.data)) as img:
            if img.width <= max_width:
                return raw
            image_format = img.format or "JPEG"
            height = round(img.height * max_width / img.width)
            resized = img.resize((max_width, height), Image.Resampling.LANCZOS)
            if image_format == "JPEG" and resized.mode not in ("RGB", "L"):
                resized = resized.convert("RGB")
            buffer = io.BytesIO()
            resized.save(buffer, format=image_format, quality=quality)
    except (OSError, ValueError, KeyError, Image.DecompressionBombError) as e:
        logger.warning(f"Failed to compress {raw.name}: {e}")
        return raw

    logger.info(f"Compressed {raw.name} from {raw.size} to {buffer.tell()} bytes")
    return raw.model_copy(update={"data": buffer.getvalue()})


def extract_metadata(raw: RawFile) -> FileMetadata | None:
    """Collect image dimensions and text-file language and encoding."""
    fields: dict[str, object] = {}

    if is_image_file(raw.type):
        dimensions = image_dimensions(raw.data)
        if dimensions is not None:
            fields["dimensions"] = dimensions

    if is_text_file(raw.name, raw.type):
        fields["encoding"] = DEFAULT_ENCODING
        fields["language"] = detect_file_language(raw.name)

    return FileMetadata(**fields) if fields else None


def read_content(raw: RawFile) -> str:
    """Images become a base64 data URL; everything else is decoded text."""
    if is_image_file(raw.type):
        return _data_url(raw.type, raw.data)
    return raw.data.decode("utf-8", errors="replace")


def _extract_text(raw: RawFile, content: str) -> tuple[str, int | None]:
    if is_pdf_file(raw.type):
        try:
            pdf = parse_pdf(raw.data)
        except PDFParseError as e:
            logger.warning(f"PDF extraction failed for {raw.name}: {e}")
            return content, None
        return pdf.text, pdf.pages

    if is_image_file(raw.type):
        return IMAGE_PLACEHOLDER, None

    if is_text_file(raw.name, raw.type):
        return content, None

    return UNSUPPORTED_PLACEHOLDER, None


def build_attached_file(raw: RawFile) -> AttachedFile:
    """Build an attachment from an already validated file."""
    content = read_content(raw)
    extracted_text, pages = _extract_text(raw, content)

    metadata = extract_metadata(raw)
    if pages is not None:
        metadata = (metadata or FileMetadata()).model_copy(update={"pages": pages})

    image = is_image_file(raw.type)
    return AttachedFile(
        name=raw.name,
        type=raw.type,
        size=raw.size,
        content=content,
        url=content if image else None,
        thumbnail=create_thumbnail(raw.data) if image else None,
        extracted_text=extracted_text if extracted_text != content else None,
        metadata=metadata,
    )


async def create_attached_file(raw: RawFile) -> AttachedFile:
    """Build an attachment off the event loop."""
    return await asyncio.to_thread(build_attached_file, raw)


class FileIngestor:
    """Validates and converts uploads into attachments.

    Rejected files are excluded from the result and reported alongside it.
    """

    def __init__(
        self,
        max_size: int = MAX_FILE_SIZE,
        compress_images: bool = True,
        max_image_width: int = COMPRESS_MAX_WIDTH,
        image_quality: int = COMPRESS_QUALITY,
    ) -> None:
        self.max_size = max_size
        self.compress_images = compress_images
        self.max_image_width = max_image_width
        self.image_quality = image_quality

    async def ingest_one(self, raw: RawFile) -> AttachedFile:
        """Validate and build a single attachment.

        Raises:
            FileValidationError: If the file is rejected.
        """
        validate_file(raw, self.max_size)

        if self.compress_images and is_image_file(raw.type):
            raw = await asyncio.to_thread(
                compress_image, raw, self.max_image_width, self.image_quality
            )

        attached = await create_attached_file(raw)
        logger.info(f"Attached {raw.name} ({format_file_size(raw.size)})")
        return attached

    async def ingest(
        self,
        raws: list[RawFile],
    ) -> tuple[list[AttachedFile], list[FileValidationError]]:
        """Ingest several files, keeping input order.

        Returns:
            The accepted attachments and the rejection errors.
        """
        accepted: list[AttachedFile] = []
        rejected: list[FileValidationError] = []

        for raw in raws:
            try:
                accepted.append(await self.ingest_one(raw))
            except FileValidationError as e:
                logger.warning(f"Rejected {e.filename}: {e.reason}")
                rejected.append(e)

        return accepted, rejected
