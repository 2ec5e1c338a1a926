"""Pydantic schemas for reference documents (exhibits)."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


class DocumentMetadata(BaseModel):
    """Extracted and manifest-supplied facts about a document."""

    file_name: str
    document_type: str = "document"
    dates: list[str] = Field(default_factory=list)
    parties: list[str] = Field(default_factory=list)
    key_topics: list[str] = Field(default_factory=list)
    is_pre_built: bool = False
    case_reference: str | None = None
    # Privileged notes from a manifest overlay; never shown to the examiner
    privileged_notes: dict[str, Any] = Field(default_factory=dict)


class ReferenceDocument(BaseModel):
    """An exhibit available for citation during questioning."""

    id: str
    file_name: str
    exhibit_letter: str = Field(..., pattern=r"^[A-Z]$")
    text_content: str
    token_count: int = Field(..., ge=0)
    summary: str | None = None
    metadata: DocumentMetadata
    upload_date: datetime = Field(default_factory=lambda: datetime.now(UTC))
    is_active: bool = False


class DocumentReferenceMatch(BaseModel):
    """A document the examiner appears to be referring to, with why."""

    document: ReferenceDocument
    score: int
    reasons: list[str] = Field(default_factory=list)


class DocumentSummary(BaseModel):
    """Registry listing entry (no full text)."""

    id: str
    file_name: str
    exhibit_letter: str
    document_type: str
    token_count: int
    is_active: bool
    upload_date: datetime

    @classmethod
    def from_document(cls, doc: ReferenceDocument) -> "DocumentSummary":
        return cls(
            id=doc.id,
            file_name=doc.file_name,
            exhibit_letter=doc.exhibit_letter,
            document_type=doc.metadata.document_type,
            token_count=doc.token_count,
            is_active=doc.is_active,
            upload_date=doc.upload_date,
        )
