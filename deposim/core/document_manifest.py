"""Pre-built scenario exhibits with a public layer and a privileged overlay.

A manifest document's public content is a list of segments: plain text, or a
named redaction slot showing placeholder text. The privileged overlay fills
slots by name and adds appendices. ``merge_document_layers`` combines the two
without any string search-and-replace, so public text that happens to look
like a placeholder is never touched.

Manifest JSON::

    {
      "version": "1.0",
      "scenarios": {
        "CASE-REF": {
          "title": "...",
          "caseReference": "CASE-REF",
          "documents": [
            {
              "fileName": "hotel_receipt.txt",
              "exhibitLetter": "A",
              "documentType": "receipt",
              "publicContent": [
                {"text": "Guest: "},
                {"slot": "guestName", "placeholder": "[REDACTED]"}
              ],
              "privileged": {"revealed": {"guestName": "J. Doe"}},
              "metadata": {"dates": [], "parties": [], "keyTopics": []}
            }
          ]
        }
      }
    }

``publicContent`` may also be a plain string, and the overlay may be given as
``secretData`` (base64-encoded JSON) instead of ``privileged``.
"""

import base64
import binascii
import json
from functools import cached_property
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from deposim.core.config import get_settings
from deposim.core.entity_extraction import create_summary, estimate_token_count
from deposim.core.errors import FileError
from deposim.core.logging import get_logger
from deposim.core.schemas_documents import DocumentMetadata, ReferenceDocument

logger = get_logger(__name__)


# =========================
# Layers
# =========================


class TextSegment(BaseModel):
    text: str


class RedactionSlot(BaseModel):
    slot: str = Field(..., min_length=1)
    placeholder: str = "[REDACTED]"


class Appendix(BaseModel):
    heading: str
    body: str


class PrivilegedOverlay(BaseModel):
    """What the witness (and the model) know but the examiner does not."""

    model_config = ConfigDict(extra="allow")

    revealed: dict[str, str] = Field(default_factory=dict)
    appendices: list[Appendix] = Field(default_factory=list)
    notes: dict[str, Any] = Field(default_factory=dict)


PublicSegment = TextSegment | RedactionSlot


def merge_document_layers(
    public: list[PublicSegment], overlay: PrivilegedOverlay | None = None
) -> str:
    """
    Render a document from its public segments and an optional overlay.

    Revealed slots show their value; unrevealed slots show their placeholder.
    Appendices follow the body under upper-cased headings.
    """
    revealed = overlay.revealed if overlay else {}
    parts = []
    for segment in public:
        if isinstance(segment, RedactionSlot):
            parts.append(revealed.get(segment.slot, segment.placeholder))
        else:
            parts.append(segment.text)
    content = "".join(parts)

    if overlay:
        for appendix in overlay.appendices:
            content += f"\n\n{appendix.heading.upper()}:\n{appendix.body}"
    return content


def decode_secret_data(encoded: str) -> PrivilegedOverlay:
    """Decode a base64 JSON overlay."""
    try:
        decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
        return PrivilegedOverlay.model_validate(json.loads(decoded))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
        raise ValueError(f"secretData is not valid base64 JSON: {e}") from e


# =========================
# Manifest schema
# =========================


class ManifestDocumentMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    dates: list[str]
    parties: list[str]
    key_topics: list[str] = Field(..., alias="keyTopics")


class ManifestDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(..., min_length=1, alias="fileName")
    exhibit_letter: str = Field(..., pattern=r"^[A-Z]$", alias="exhibitLetter")
    document_type: str = Field(..., min_length=1, alias="documentType")
    public_content: list[PublicSegment] = Field(..., min_length=1, alias="publicContent")
    metadata: ManifestDocumentMetadata
    privileged: PrivilegedOverlay | None = None
    secret_data: str | None = Field(default=None, alias="secretData")

    @field_validator("public_content", mode="before")
    @classmethod
    def _string_as_segment(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [{"text": value}] if value else []
        return value

    def overlay(self) -> PrivilegedOverlay | None:
        """The privileged layer; an undecodable ``secretData`` is logged and ignored."""
        if self.privileged is not None:
            return self.privileged
        if self.secret_data:
            try:
                return decode_secret_data(self.secret_data)
            except ValueError as e:
                logger.warning(f"Ignoring privileged layer for {self.file_name}: {e}")
        return None

    def public_text(self) -> str:
        return merge_document_layers(self.public_content)


class Scenario(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1)
    case_reference: str = Field(..., min_length=1, alias="caseReference")
    description: str | None = None
    documents: list[ManifestDocument]


class DocumentManifest(BaseModel):
    version: str = Field(..., min_length=1)
    scenarios: dict[str, Scenario]


# =========================
# Loader
# =========================


class ManifestLoader:
    """
    Loads and caches a scenario manifest.

    Args:
        path: Manifest file (defaults to SCENARIO_MANIFEST_PATH)
        data: Already-parsed manifest, used instead of reading a file
    """

    def __init__(self, path: str | Path | None = None, data: dict[str, Any] | None = None):
        self.path = Path(path or get_settings().SCENARIO_MANIFEST_PATH)
        self._data = data

    @cached_property
    def manifest(self) -> DocumentManifest:
        raw = self._data if self._data is not None else self._read()
        try:
            manifest = DocumentManifest.model_validate(raw)
        except ValidationError as e:
            raise FileError(
                f"Invalid document manifest: {e.error_count()} problem(s), first: "
                f"{e.errors()[0]['loc']} {e.errors()[0]['msg']}",
                str(self.path),
                "manifest",
            ) from e
        logger.info(f"Document manifest loaded. Version: {manifest.version}")
        return manifest

    def _read(self) -> Any:
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as e:
            raise FileError(f"Cannot read document manifest: {e}", str(self.path), "read") from e
        except json.JSONDecodeError as e:
            raise FileError(
                f"Document manifest is not valid JSON: {e}", str(self.path), "parse"
            ) from e

    def clear_cache(self) -> None:
        self.__dict__.pop("manifest", None)
        logger.debug("Document manifest cache cleared")

    def get_documents_for_case(self, case_reference: str) -> list[ReferenceDocument]:
        """Merged exhibits for a case; empty when the case has none."""
        scenario = self.manifest.scenarios.get(case_reference)
        if scenario is None:
            logger.warning(f"No documents found for case: {case_reference}")
            return []

        logger.info(f"Loading {len(scenario.documents)} documents for case: {case_reference}")
        return [self._to_reference_document(doc, case_reference) for doc in scenario.documents]

    @staticmethod
    def _to_reference_document(doc: ManifestDocument, case_reference: str) -> ReferenceDocument:
        overlay = doc.overlay()
        content = merge_document_layers(doc.public_content, overlay)
        token_count = estimate_token_count(content)
        summary_threshold = get_settings().DOCUMENT_SUMMARY_THRESHOLD

        return ReferenceDocument(
            id=f"manifest_{case_reference}_{doc.exhibit_letter}",
            file_name=doc.file_name,
            exhibit_letter=doc.exhibit_letter,
            text_content=content,
            token_count=token_count,
            summary=create_summary(content) if token_count > summary_threshold else None,
            metadata=DocumentMetadata(
                file_name=doc.file_name,
                document_type=doc.document_type,
                dates=doc.metadata.dates,
                parties=doc.metadata.parties,
                key_topics=doc.metadata.key_topics,
                is_pre_built=True,
                case_reference=case_reference,
                privileged_notes=overlay.notes if overlay else {},
            ),
        )

    def get_available_scenarios(self) -> list[dict[str, Any]]:
        return [
            {
                "case_reference": case_ref,
                "title": scenario.title,
                "description": scenario.description,
                "document_count": len(scenario.documents),
            }
            for case_ref, scenario in self.manifest.scenarios.items()
        ]

    def get_statistics(self) -> dict[str, Any]:
        documents = [doc for s in self.manifest.scenarios.values() for doc in s.documents]
        by_type: dict[str, int] = {}
        for doc in documents:
            by_type[doc.document_type] = by_type.get(doc.document_type, 0) + 1

        return {
            "version": self.manifest.version,
            "total_scenarios": len(self.manifest.scenarios),
            "total_documents": len(documents),
            "documents_by_type": by_type,
            "documents_with_privileged_layer": sum(
                1 for doc in documents if doc.privileged is not None or doc.secret_data
            ),
        }
