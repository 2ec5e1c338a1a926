"""API endpoints for exhibits: upload, list, inspect, remove, and scenario documents."""

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel, Field

from deposim.api.dependencies import get_manifest_loader, get_session, to_http_exception
from deposim.core.deposition_session import DepositionSession
from deposim.core.document_manifest import ManifestLoader
from deposim.core.errors import DepositionError
from deposim.core.logging import get_logger
from deposim.core.schemas_documents import DocumentSummary, ReferenceDocument

logger = get_logger(__name__)

router = APIRouter()


class TextDocumentRequest(BaseModel):
    """Paste-in exhibit."""

    file_name: str = Field(..., min_length=1)
    text: str


class DocumentListResponse(BaseModel):
    documents: list[DocumentSummary]
    total: int
    total_tokens: int
    max_tokens: int


def _listing(session: DepositionSession) -> DocumentListResponse:
    registry = session.registry
    documents = [DocumentSummary.from_document(doc) for doc in registry.list_documents()]
    return DocumentListResponse(
        documents=documents,
        total=len(documents),
        total_tokens=registry.total_tokens(),
        max_tokens=registry.max_tokens,
    )


@router.post("/sessions/{session_id}/documents", status_code=201)
async def upload_document(
    file: UploadFile = File(...),
    session: DepositionSession = Depends(get_session),
) -> DocumentSummary:
    """
    Upload a text exhibit (.txt, .md; .pdf/.docx are read as text).

    Raises:
        HTTPException 400: Unreadable, empty or oversized file
        HTTPException 422: Unsupported type or unsafe content
    """
    raw_bytes = await file.read()
    if not raw_bytes:
        raise HTTPException(status_code=400, detail="Empty file")

    try:
        document = session.registry.add_upload(
            file.filename or "document.txt", file.content_type, raw_bytes
        )
    except DepositionError as e:
        raise to_http_exception(e, "upload_document") from e

    return DocumentSummary.from_document(document)


@router.post("/sessions/{session_id}/documents/text", status_code=201)
async def add_text_document(
    body: TextDocumentRequest,
    session: DepositionSession = Depends(get_session),
) -> DocumentSummary:
    try:
        document = session.registry.add_text_document(body.file_name, body.text)
    except DepositionError as e:
        raise to_http_exception(e, "add_text_document") from e
    return DocumentSummary.from_document(document)


@router.get("/sessions/{session_id}/documents")
async def list_documents(session: DepositionSession = Depends(get_session)) -> DocumentListResponse:
    return _listing(session)


@router.get("/sessions/{session_id}/documents/{document_id}")
async def get_document(
    document_id: str,
    session: DepositionSession = Depends(get_session),
) -> ReferenceDocument:
    document = session.registry.get_document(document_id)
    if document is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return document.model_copy(
        update={"metadata": document.metadata.model_copy(update={"privileged_notes": {}})}
    )


@router.delete("/sessions/{session_id}/documents/{document_id}", status_code=204)
async def delete_document(
    document_id: str,
    session: DepositionSession = Depends(get_session),
) -> None:
    if not session.registry.remove_document(document_id):
        raise HTTPException(status_code=404, detail="Document not found")


@router.delete("/sessions/{session_id}/documents", status_code=204)
async def clear_documents(session: DepositionSession = Depends(get_session)) -> None:
    session.registry.clear_all()


@router.post("/sessions/{session_id}/documents/case")
async def load_case_documents(
    session: DepositionSession = Depends(get_session),
    loader: ManifestLoader = Depends(get_manifest_loader),
) -> DocumentListResponse:
    """Register the pre-built exhibits for the active witness's case."""
    try:
        added = session.load_case_documents(loader)
    except DepositionError as e:
        raise to_http_exception(e, "load_case_documents") from e

    logger.info(f"Session {session.session_id}: {added} pre-built exhibit(s) loaded")
    return _listing(session)


@router.get("/scenarios")
async def list_scenarios(loader: ManifestLoader = Depends(get_manifest_loader)) -> dict:
    """Scenarios in the document manifest, with manifest statistics."""
    try:
        return {
            "scenarios": loader.get_available_scenarios(),
            "statistics": loader.get_statistics(),
        }
    except DepositionError as e:
        raise to_http_exception(e, "list_scenarios") from e
