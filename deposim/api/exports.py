"""API endpoints for transcript download and role-instruction export/import."""

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import Response

from deposim.api.dependencies import get_session, to_http_exception
from deposim.core.deposition_session import DepositionSession
from deposim.core.errors import DepositionError
from deposim.core.schemas_session import SessionView
from deposim.core.transcript import (
    ROLE_INSTRUCTIONS_FILE_NAME,
    export_role_instructions,
    import_role_instructions,
    render_transcript,
    transcript_filename,
)

router = APIRouter()


def _attachment(content: str, media_type: str, file_name: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )


@router.get("/{session_id}/transcript")
async def download_transcript(session: DepositionSession = Depends(get_session)) -> Response:
    """Markdown transcript of the deposition so far."""
    witness = session.witness
    if witness is None:
        raise HTTPException(status_code=400, detail="No witness is loaded")

    content = render_transcript(
        session.messages, witness.display_name, session.provider_id, session.model or ""
    )
    return _attachment(content, "text/markdown", transcript_filename(witness.display_name))


@router.get("/{session_id}/roles/export")
async def export_roles(session: DepositionSession = Depends(get_session)) -> Response:
    return _attachment(
        export_role_instructions(session.custom_roles),
        "application/json",
        ROLE_INSTRUCTIONS_FILE_NAME,
    )


@router.post("/{session_id}/roles/import")
async def import_roles(
    file: UploadFile = File(...),
    session: DepositionSession = Depends(get_session),
) -> SessionView:
    """Load role instructions from an exported JSON file; resets the conversation."""
    if session.is_busy:
        raise HTTPException(status_code=409, detail="A turn is in progress for this session")

    raw = await file.read()
    try:
        roles = import_role_instructions(
            raw, current=session.custom_roles, file_name=file.filename or ROLE_INSTRUCTIONS_FILE_NAME
        )
    except DepositionError as e:
        raise to_http_exception(e, "import_roles") from e

    session.set_custom_roles(roles)
    return session.to_view()
