"""Text extraction and validation for uploaded exhibits."""

import re
from dataclasses import dataclass

from deposim.core.errors import FileError, ValidationError

# Allowed file extensions; PDFs/DOCX are accepted but read as plain text
ALLOWED_EXTENSIONS = {".txt", ".md", ".pdf", ".docx"}

# Allowed content types when extension is missing or unknown
ALLOWED_CONTENT_TYPE_PREFIXES = ("text/",)

MIN_CONTENT_CHARS = 10
MAX_CONTENT_CHARS = 10 * 1024 * 1024
MIN_LETTER_RATIO = 0.1

SUSPICIOUS_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"<script", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"data:.*base64", re.IGNORECASE),
    re.compile(r"eval\s*\(", re.IGNORECASE),
    re.compile(r"document\.write", re.IGNORECASE),
]


@dataclass
class FileTextResult:
    """Result of text extraction from a file."""

    text: str
    detected_encoding: str


def get_extension(filename: str) -> str:
    """Extract lowercase file extension from filename."""
    if "." in filename:
        return "." + filename.rsplit(".", 1)[-1].lower()
    return ""


def _is_allowed_content_type(content_type: str | None) -> bool:
    if not content_type:
        return False
    return content_type.lower().startswith(ALLOWED_CONTENT_TYPE_PREFIXES)


def _decode_bytes(raw_bytes: bytes) -> tuple[str, str]:
    """
    Attempt to decode bytes using fallback chain.

    Returns:
        Tuple of (decoded_text, encoding_name)

    Raises:
        ValueError: If no encoding works
    """
    # Check for UTF-8 BOM first
    if raw_bytes.startswith(b"\xef\xbb\xbf"):
        try:
            return raw_bytes.decode("utf-8-sig"), "utf-8-sig"
        except UnicodeDecodeError:
            pass

    for encoding in ("utf-8", "latin-1"):
        try:
            return raw_bytes.decode(encoding), encoding
        except UnicodeDecodeError:
            continue

    raise ValueError(
        "Unable to decode file content. Supported encodings: UTF-8, UTF-8-BOM, Latin-1."
    )


def validate_file_name(filename: str, content_type: str | None = None) -> str:
    """
    Check that a file is of a supported type.

    Returns:
        The lowercase extension

    Raises:
        ValidationError: If the extension (or content type) is not supported
    """
    extension = get_extension(filename)
    if extension in ALLOWED_EXTENSIONS:
        return extension
    if not extension and _is_allowed_content_type(content_type):
        return extension

    allowed = ", ".join(sorted(ALLOWED_EXTENSIONS))
    raise ValidationError(
        f"File type {extension or '(none)'} not supported. Allowed types: {allowed}",
        field="file_type",
        value=extension,
    )


def validate_text_content(filename: str, content: str) -> None:
    """
    Reject empty, binary, oversized or script-bearing text.

    Raises:
        FileError: Content is empty, too short, too large, binary or not text
        ValidationError: Content contains script or encoded payloads
    """
    if not content or not isinstance(content, str):
        raise FileError(
            "File appears to be empty or contains no readable text.", filename, "validation"
        )
    if len(content) < MIN_CONTENT_CHARS:
        raise FileError("File content is too short to be meaningful.", filename, "validation")
    if len(content) > MAX_CONTENT_CHARS:
        raise FileError(
            "File content is too large. Maximum text content is 10MB.", filename, "validation"
        )
    if "\x00" in content:
        raise FileError(
            "File appears to contain binary data rather than text.", filename, "validation"
        )

    letters = sum(1 for ch in content if ch.isascii() and ch.isalpha())
    if letters / len(content) < MIN_LETTER_RATIO:
        raise FileError(
            "File does not appear to contain meaningful text content.", filename, "validation"
        )

    for pattern in SUSPICIOUS_PATTERNS:
        if pattern.search(content):
            raise ValidationError(
                "File content contains potentially unsafe elements.",
                field="content",
                value="suspicious_content",
            )


def extract_text_from_upload(
    filename: str,
    content_type: str | None,
    raw_bytes: bytes,
    max_bytes: int | None = None,
) -> FileTextResult:
    """
    Extract text content from an uploaded file.

    Args:
        filename: Original filename
        content_type: MIME content type (may be None)
        raw_bytes: Raw file bytes
        max_bytes: Upload size limit

    Returns:
        FileTextResult with extracted text and detected encoding

    Raises:
        ValidationError: If file type is not supported
        FileError: If the file is too large or cannot be decoded
    """
    validate_file_name(filename, content_type)

    if max_bytes is not None and len(raw_bytes) > max_bytes:
        raise FileError(
            f"File is too large. Maximum file size is {max_bytes // (1024 * 1024)}MB.",
            filename,
            "validation",
        )

    try:
        text, encoding = _decode_bytes(raw_bytes)
    except ValueError as e:
        raise FileError(str(e), filename, "extraction") from e

    return FileTextResult(text=text, detected_encoding=encoding)
