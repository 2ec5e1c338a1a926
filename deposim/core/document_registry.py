"""Per-session exhibit registry.

Documents are kept in insertion order, lettered A, B, C, ... and evicted
oldest-first when either the document cap or the token ceiling would be
exceeded. A letter is not handed out twice until ``clear_all``; only when
all of A-Z have been used does the sequence restart, skipping letters that
current documents still hold.
"""

import string
import uuid

from deposim.core.config import get_settings
from deposim.core.entity_extraction import create_summary, estimate_token_count, extract_metadata
from deposim.core.errors import FileError
from deposim.core.file_text import extract_text_from_upload, validate_file_name, validate_text_content
from deposim.core.logging import get_logger
from deposim.core.schemas_documents import DocumentMetadata, ReferenceDocument

logger = get_logger(__name__)

EXHIBIT_LETTERS = string.ascii_uppercase


class DocumentRegistry:
    """
    Exhibits available to one deposition session.

    Args:
        max_tokens: Token ceiling across all documents (also the per-document limit)
        max_documents: Document cap, at most 26; reaching it evicts the oldest document
        summary_threshold: Documents above this token count get an extractive summary
        max_upload_bytes: Raw upload size limit
    """

    def __init__(
        self,
        max_tokens: int | None = None,
        max_documents: int | None = None,
        summary_threshold: int | None = None,
        max_upload_bytes: int | None = None,
    ):
        settings = get_settings()
        self.max_tokens = max_tokens or settings.DOCUMENT_MAX_TOKENS
        # One letter per live document
        self.max_documents = min(
            max_documents or settings.DOCUMENT_MAX_COUNT, len(EXHIBIT_LETTERS)
        )
        self.summary_threshold = summary_threshold or settings.DOCUMENT_SUMMARY_THRESHOLD
        self.max_upload_bytes = max_upload_bytes or settings.MAX_UPLOAD_BYTES
        self._documents: dict[str, ReferenceDocument] = {}
        self._used_letters: set[str] = set()
        self._next_letter_index = 0

    # =========================
    # Adding documents
    # =========================

    def add_text_document(self, file_name: str, text: str) -> ReferenceDocument:
        """
        Validate, analyze and register a text exhibit.

        Raises:
            ValidationError: Unsupported file type or unsafe content
            FileError: Unreadable content or oversized document
        """
        validate_file_name(file_name)
        validate_text_content(file_name, text)

        token_count = estimate_token_count(text)
        self._check_size(file_name, token_count)

        metadata = DocumentMetadata(**extract_metadata(file_name, text))
        summary = create_summary(text) if token_count > self.summary_threshold else None

        self._make_room(token_count)
        exhibit_letter = self._assign_exhibit_letter()
        document = ReferenceDocument(
            id=self._generate_id(),
            file_name=file_name,
            exhibit_letter=exhibit_letter,
            text_content=text,
            token_count=token_count,
            summary=summary,
            metadata=metadata,
        )
        self._documents[document.id] = document

        logger.info(
            f"Registered Exhibit {document.exhibit_letter}: {file_name} "
            f"({metadata.document_type}, {token_count} tokens)"
        )
        return document

    def add_upload(
        self, file_name: str, content_type: str | None, raw_bytes: bytes
    ) -> ReferenceDocument:
        """Decode an uploaded file and register it."""
        result = extract_text_from_upload(
            file_name, content_type, raw_bytes, max_bytes=self.max_upload_bytes
        )
        logger.debug(f"Decoded upload {file_name} as {result.detected_encoding}")
        return self.add_text_document(file_name, result.text)

    def add_prebuilt(self, document: ReferenceDocument) -> ReferenceDocument:
        """
        Register a document built elsewhere (scenario manifest), keeping its letter.

        A document whose letter was already handed out since the last
        ``clear_all`` gets the next free letter. Registering the same document
        id again returns the existing entry.

        Raises:
            FileError: Document is larger than the token ceiling
        """
        existing = self._documents.get(document.id)
        if existing is not None:
            logger.debug(f"Exhibit {existing.exhibit_letter} ({document.id}) already registered")
            return existing

        self._check_size(document.file_name, document.token_count)
        self._make_room(document.token_count)

        letter = document.exhibit_letter
        if letter in self._used_letters:
            letter = self._assign_exhibit_letter()
            document = document.model_copy(update={"exhibit_letter": letter})
        else:
            self._take_letter(letter)

        self._documents[document.id] = document
        logger.info(f"Registered pre-built Exhibit {letter}: {document.file_name}")
        return document

    def _check_size(self, file_name: str, token_count: int) -> None:
        if token_count > self.max_tokens:
            raise FileError(
                f"Document is too large ({token_count} tokens). "
                f"Maximum allowed is {self.max_tokens} tokens.",
                file_name,
                "upload",
            )

    # =========================
    # Exhibit letters
    # =========================

    def _assign_exhibit_letter(self) -> str:
        """Next letter in sequence; call after ``_make_room`` so one is free."""
        letter = self._next_free_letter()
        if letter is None:
            # A-Z used up: restart, keeping the letters current documents hold
            logger.info("Exhibit letters A-Z used up; restarting the sequence")
            self._used_letters = {d.exhibit_letter for d in self._documents.values()}
            self._next_letter_index = 0
            letter = self._next_free_letter()
        self._take_letter(letter)
        return letter

    def _next_free_letter(self) -> str | None:
        for letter in EXHIBIT_LETTERS[self._next_letter_index :]:
            if letter not in self._used_letters:
                return letter
        return None

    def _take_letter(self, letter: str) -> None:
        self._used_letters.add(letter)
        # Later uploads continue after the highest letter taken
        self._next_letter_index = max(
            self._next_letter_index, EXHIBIT_LETTERS.index(letter) + 1
        )

    @staticmethod
    def _generate_id() -> str:
        return f"doc_{uuid.uuid4().hex[:12]}"

    # =========================
    # Eviction
    # =========================

    def _oldest_first(self) -> list[ReferenceDocument]:
        return sorted(self._documents.values(), key=lambda d: d.upload_date)

    def _make_room(self, incoming_tokens: int) -> None:
        """Evict oldest documents so the incoming one fits. Never raises."""
        for doc in self._oldest_first():
            if len(self._documents) < self.max_documents:
                break
            self._evict(doc, "document cap reached")

        for doc in self._oldest_first():
            if self.total_tokens() + incoming_tokens <= self.max_tokens:
                break
            self._evict(doc, "token ceiling reached")

    def _evict(self, doc: ReferenceDocument, reason: str) -> None:
        self._documents.pop(doc.id, None)
        logger.info(f"Evicted Exhibit {doc.exhibit_letter} ({doc.file_name}): {reason}")

    # =========================
    # Registry contract
    # =========================

    def list_documents(self) -> list[ReferenceDocument]:
        return list(self._documents.values())

    def get_document(self, document_id: str) -> ReferenceDocument | None:
        return self._documents.get(document_id)

    def get_by_exhibit_letter(self, letter: str) -> ReferenceDocument | None:
        letter = letter.upper()
        for doc in self._documents.values():
            if doc.exhibit_letter == letter:
                return doc
        return None

    def mark_active(self, document_id: str) -> None:
        doc = self._documents.get(document_id)
        if doc is not None:
            doc.is_active = True

    def clear_active(self) -> None:
        for doc in self._documents.values():
            doc.is_active = False

    def remove_document(self, document_id: str) -> bool:
        return self._documents.pop(document_id, None) is not None

    def clear_all(self) -> None:
        logger.info(f"Clearing all {len(self._documents)} documents from registry")
        self._documents.clear()
        self._used_letters.clear()
        self._next_letter_index = 0

    def total_tokens(self) -> int:
        return sum(doc.token_count for doc in self._documents.values())

    def can_upload(self, new_document_tokens: int) -> bool:
        return self.total_tokens() + new_document_tokens <= self.max_tokens

    def get_document_for_context(self, document_id: str) -> str:
        """Exhibit-formatted text for prompt injection; marks the document active."""
        doc = self._documents.get(document_id)
        if doc is None:
            return ""
        doc.is_active = True
        return format_exhibit(doc)

    def __len__(self) -> int:
        return len(self._documents)


def format_exhibit(doc: ReferenceDocument) -> str:
    return (
        f"DEPOSITION EXHIBIT {doc.exhibit_letter} ({doc.metadata.document_type}):\n"
        f"File: {doc.file_name}\n"
        f"{doc.text_content}\n"
        f"[END OF EXHIBIT {doc.exhibit_letter}]"
    )
