"""Shared FastAPI dependencies and error translation for the API routers."""

from functools import lru_cache

from fastapi import HTTPException, Request

from deposim.core.config import get_settings
from deposim.core.deposition_session import DepositionSession, SessionStore
from deposim.core.document_manifest import ManifestLoader
from deposim.core.errors import (
    APIError,
    AuthenticationError,
    ConfigurationError,
    DepositionError,
    ErrorCode,
    FileError,
    RateLimitError,
    SessionBusyError,
    ValidationError,
    handle_error,
)
from deposim.core.llm import ModelGateway, get_gateway

STATUS_BY_ERROR: list[tuple[type[DepositionError], int]] = [
    (SessionBusyError, 409),
    (AuthenticationError, 401),
    (RateLimitError, 429),
    (APIError, 502),
    (ConfigurationError, 400),
    (ValidationError, 422),
    (FileError, 400),
]


def get_store(request: Request) -> SessionStore:
    return request.app.state.sessions


def get_session(session_id: str, request: Request) -> DepositionSession:
    """Look up a session by path id; 404 when unknown."""
    session = get_store(request).get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def get_model_gateway() -> ModelGateway:
    return get_gateway()


@lru_cache
def get_manifest_loader() -> ManifestLoader:
    return ManifestLoader(get_settings().SCENARIO_MANIFEST_PATH)


def to_http_exception(error: DepositionError, context: str) -> HTTPException:
    """
    Translate a simulator error into an HTTPException.

    The detail carries the error code and the sanitized user message only.
    """
    info = handle_error(error, context=context)
    status_code = 500 if info.code == ErrorCode.UNKNOWN_ERROR else 400
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            status_code = status
            break
    return HTTPException(
        status_code=status_code,
        detail={"code": info.code.value, "message": info.user_message, "retryable": info.retryable},
    )
