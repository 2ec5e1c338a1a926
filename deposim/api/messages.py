"""API endpoints for examination turns and briefing summaries."""

from typing import Literal

from fastapi import APIRouter, Depends

from deposim.api.dependencies import get_model_gateway, get_session, to_http_exception
from deposim.chains.deposition_turn import run_deposition_turn
from deposim.chains.generate_summaries import generate_summary
from deposim.core.deposition_session import DepositionSession
from deposim.core.errors import DepositionError
from deposim.core.llm import ModelGateway
from deposim.core.schemas_session import (
    SendMessageRequest,
    SendMessageResponse,
    SummaryRequest,
    SummaryResponse,
)

router = APIRouter()


@router.post("/{session_id}/messages")
async def send_message(
    body: SendMessageRequest,
    session: DepositionSession = Depends(get_session),
    gateway: ModelGateway = Depends(get_model_gateway),
) -> SendMessageResponse:
    """
    Ask the witness a question (or the coach, in OOC mode).

    Raises:
        HTTPException 409: A turn is already in flight
        HTTPException 400: Missing API key or bad provider settings
        HTTPException 401 / 429 / 502: Provider rejected, throttled or failed
    """
    try:
        return await run_deposition_turn(session, body.content, gateway)
    except DepositionError as e:
        raise to_http_exception(e, "send_message") from e


@router.post("/{session_id}/summaries/{kind}")
async def create_summary(
    kind: Literal["witness", "case"],
    body: SummaryRequest,
    session: DepositionSession = Depends(get_session),
    gateway: ModelGateway = Depends(get_model_gateway),
) -> SummaryResponse:
    """Generate a witness or case briefing from public witness facts."""
    try:
        return await generate_summary(session, gateway, kind=kind, detail_level=body.detail_level)
    except DepositionError as e:
        raise to_http_exception(e, f"{kind}_summary") from e
