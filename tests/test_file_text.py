"""Tests for file text extraction."""

import pytest

from deposim.core.errors import FileError, ValidationError
from deposim.core.file_text import (
    extract_text_from_upload,
    get_extension,
    validate_file_name,
    validate_text_content,
)


def test_extract_text_txt_utf8():
    """Test extracting text from a UTF-8 .txt file."""
    content = "Hello, world! This is a test file."
    raw_bytes = content.encode("utf-8")

    result = extract_text_from_upload(
        filename="test.txt",
        content_type="text/plain",
        raw_bytes=raw_bytes,
    )

    assert result.text == content
    assert result.detected_encoding == "utf-8"


def test_extract_text_md_utf8():
    """Test extracting text from a UTF-8 .md file."""
    content = "# Markdown Header\n\nThis is **bold** text."
    raw_bytes = content.encode("utf-8")

    result = extract_text_from_upload(
        filename="readme.md",
        content_type="text/markdown",
        raw_bytes=raw_bytes,
    )

    assert result.text == content
    assert result.detected_encoding == "utf-8"


def test_extract_text_utf8_bom():
    """Test that a UTF-8 BOM is stripped."""
    content = "Deposition notes with BOM"
    raw_bytes = b"\xef\xbb\xbf" + content.encode("utf-8")

    result = extract_text_from_upload("notes.txt", "text/plain", raw_bytes)

    assert result.text == content
    assert result.detected_encoding == "utf-8-sig"


def test_extract_text_latin1_fallback():
    """Test fallback to latin-1 for non-UTF-8 bytes."""
    content = "Café résumé naïve"
    raw_bytes = content.encode("latin-1")

    result = extract_text_from_upload("notes.txt", "text/plain", raw_bytes)

    assert result.text == content
    assert result.detected_encoding == "latin-1"


def test_pdf_and_docx_are_accepted_as_text():
    """PDF/DOCX uploads are read as plain text."""
    result = extract_text_from_upload("scan.pdf", "application/pdf", b"Extracted page text")

    assert result.text == "Extracted page text"
    assert validate_file_name("contract.docx") == ".docx"


def test_extension_missing_but_text_content_type():
    """Test that a text/* content type is accepted without an extension."""
    result = extract_text_from_upload("notes", "text/plain", b"Some plain text content")

    assert result.text == "Some plain text content"


def test_unsupported_extension():
    """Test that unsupported file types raise ValidationError."""
    with pytest.raises(ValidationError, match="not supported"):
        extract_text_from_upload("image.png", "image/png", b"\x89PNG")


def test_file_too_large():
    """Test that uploads over the byte limit raise FileError."""
    with pytest.raises(FileError, match="too large"):
        extract_text_from_upload("big.txt", "text/plain", b"x" * 2048, max_bytes=1024)


def test_get_extension():
    assert get_extension("Report.FINAL.TXT") == ".txt"
    assert get_extension("noextension") == ""


@pytest.mark.parametrize(
    "content",
    [
        "javascript:alert(1) in a long enough string",
        "Look at this data:text/html;base64,AAAA payload",
        "Please eval(something) before reading",
        "Then document.write the result here",
    ],
)
def test_suspicious_content_is_rejected(content):
    with pytest.raises(ValidationError, match="unsafe"):
        validate_text_content("notes.txt", content)


def test_plain_text_passes_validation():
    validate_text_content("notes.txt", "The witness arrived at nine in the morning.")
