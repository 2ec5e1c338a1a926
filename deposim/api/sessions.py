"""API endpoints for deposition sessions: create, inspect, configure, delete."""

import random

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from deposim.api.dependencies import get_session, get_store, to_http_exception
from deposim.core.deposition_session import DepositionSession
from deposim.core.errors import DepositionError
from deposim.core.logging import get_logger
from deposim.core.schemas_session import (
    BehaviorDebugView,
    CreateSessionRequest,
    SessionSettingsUpdate,
    SessionView,
)
from deposim.core.witness_loader import load_case_data, load_case_file

logger = get_logger(__name__)

router = APIRouter()


@router.post("", status_code=201)
async def create_session(body: CreateSessionRequest, request: Request) -> SessionView:
    """
    Start a deposition from a case file.

    Args:
        body: Case data plus initial judge, provider and role settings

    Returns:
        SessionView of the new session

    Raises:
        HTTPException 400: Unknown provider or model, malformed case file
        HTTPException 422: Witness data failed validation
    """
    try:
        witnesses = load_case_data(body.case_data)
        session = DepositionSession(
            witnesses=witnesses,
            judge_present=body.judge_present,
            provider=body.provider,
            custom_roles=body.custom_roles,
            role_presets=body.role_presets,
            rng=random.Random(body.rng_seed) if body.rng_seed is not None else None,
        )
    except DepositionError as e:
        raise to_http_exception(e, "create_session") from e

    get_store(request).add(session)
    return session.to_view()


@router.get("")
async def list_sessions(request: Request) -> dict:
    ids = get_store(request).list_ids()
    return {"sessions": ids, "count": len(ids)}


@router.get("/{session_id}")
async def get_session_view(session: DepositionSession = Depends(get_session)) -> SessionView:
    return session.to_view()


@router.delete("/{session_id}", status_code=204)
async def delete_session(session_id: str, request: Request) -> None:
    if not get_store(request).remove(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    logger.info(f"Session {session_id} deleted")


@router.patch("/{session_id}/settings")
async def update_settings(
    body: SessionSettingsUpdate,
    session: DepositionSession = Depends(get_session),
) -> SessionView:
    """
    Change witness, judge, coach mode, provider or role instructions.

    Every change except coach mode resets the conversation.

    Raises:
        HTTPException 409: A turn is in flight
        HTTPException 400: Unknown provider or model
        HTTPException 422: Witness index out of range
    """
    if session.is_busy:
        raise HTTPException(status_code=409, detail="A turn is in progress for this session")

    try:
        if body.provider is not None:
            session.set_provider(body.provider)
        if body.active_witness_index is not None:
            session.select_witness(body.active_witness_index)
        if body.judge_present is not None:
            session.set_judge_present(body.judge_present)
        if body.custom_roles is not None:
            session.set_custom_roles(body.custom_roles)
        if body.role_presets is not None:
            session.set_role_presets(body.role_presets)
        if body.ooc_mode is not None:
            session.set_ooc_mode(body.ooc_mode)
    except DepositionError as e:
        raise to_http_exception(e, "update_settings") from e

    return session.to_view()


@router.post("/{session_id}/case-file")
async def upload_case_file(
    file: UploadFile = File(...),
    session: DepositionSession = Depends(get_session),
) -> SessionView:
    """Replace the witness pool from an uploaded JSON case file."""
    if session.is_busy:
        raise HTTPException(status_code=409, detail="A turn is in progress for this session")

    raw = await file.read()
    try:
        witnesses = load_case_file(raw, file.filename or "case.json")
        session.load_witnesses(witnesses)
    except DepositionError as e:
        raise to_http_exception(e, "upload_case_file") from e

    logger.info(f"Session {session.session_id} loaded {len(witnesses)} witness(es)")
    return session.to_view()


@router.post("/{session_id}/reset")
async def reset_session(session: DepositionSession = Depends(get_session)) -> SessionView:
    if session.is_busy:
        raise HTTPException(status_code=409, detail="A turn is in progress for this session")
    session.reset()
    return session.to_view()


@router.get("/{session_id}/debug/behavior")
async def get_behavior_debug(session: DepositionSession = Depends(get_session)) -> BehaviorDebugView:
    """Truthfulness engine statistics and the last decision (debugging aid)."""
    return BehaviorDebugView(
        statistics=session.engine.get_session_statistics(),
        last_decision=session.engine.last_decision,
    )
