"""Error taxonomy, sanitization and retry helpers.

Every failure the simulator surfaces to a user is a DepositionError subclass
carrying a stable ErrorCode and a message that is safe to display. Technical
detail is logged after secrets are redacted.
"""

import asyncio
import re
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from enum import Enum
from typing import TypeVar

from pydantic import BaseModel, Field

from deposim.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class ErrorCode(str, Enum):
    """Stable error categories."""

    API_ERROR = "API_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    API_KEY_MISSING = "API_KEY_MISSING"
    INVALID_PROVIDER = "INVALID_PROVIDER"
    INVALID_MODEL = "INVALID_MODEL"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    WITNESS_DATA_INVALID = "WITNESS_DATA_INVALID"
    FILE_ERROR = "FILE_ERROR"
    FILE_PARSE_ERROR = "FILE_PARSE_ERROR"
    SESSION_BUSY = "SESSION_BUSY"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


USER_FRIENDLY_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.API_KEY_MISSING: "Please enter your API key in the settings to continue.",
    ErrorCode.AUTHENTICATION_ERROR: "Invalid API key. Please check your API key and try again.",
    ErrorCode.NETWORK_ERROR: (
        "Network connection failed. Please check your internet connection and try again."
    ),
    ErrorCode.RATE_LIMIT_ERROR: "API rate limit exceeded. Please wait a moment before trying again.",
    ErrorCode.INVALID_PROVIDER: (
        "The selected AI provider is not supported. Please choose a different provider."
    ),
    ErrorCode.INVALID_MODEL: "The selected model is not available. Please choose a different model.",
    ErrorCode.WITNESS_DATA_INVALID: (
        "The witness file appears to be corrupted or invalid. Please check the file format."
    ),
    ErrorCode.FILE_PARSE_ERROR: "Unable to read the file. Please ensure it's a valid JSON file.",
    ErrorCode.SESSION_BUSY: "Please wait for the current answer before asking another question.",
    ErrorCode.UNKNOWN_ERROR: (
        "An unexpected error occurred. Please try again or contact support if the problem persists."
    ),
}


class DepositionError(Exception):
    """Base class for all simulator errors."""

    code: ErrorCode = ErrorCode.UNKNOWN_ERROR

    def __init__(self, message: str, code: ErrorCode | None = None, user_message: str | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code
        self.user_message = user_message or message
        self.timestamp = datetime.now(UTC).isoformat()


class ConfigurationError(DepositionError):
    """Missing or invalid API key, provider or model. Never retried."""

    code = ErrorCode.CONFIGURATION_ERROR

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        code: ErrorCode | None = None,
        user_message: str | None = None,
    ):
        super().__init__(message, code=code, user_message=user_message)
        self.setting = setting


class ValidationError(DepositionError):
    """Malformed witness, session or document input."""

    code = ErrorCode.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: str | None = None,
        code: ErrorCode | None = None,
    ):
        super().__init__(message, code=code)
        self.field = field
        # Long values may carry witness data; keep them off the error object
        self.value = value if value is None or len(value) <= 100 else "[omitted]"


class FileError(DepositionError):
    """Malformed uploaded case, manifest or document file."""

    code = ErrorCode.FILE_ERROR

    def __init__(
        self,
        message: str,
        file_name: str | None = None,
        operation: str | None = None,
        code: ErrorCode | None = None,
    ):
        super().__init__(message, code=code)
        self.file_name = file_name
        self.operation = operation


class APIError(DepositionError):
    """Provider-side failure."""

    code = ErrorCode.API_ERROR

    def __init__(self, message: str, provider: str, status_code: int | None = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class AuthenticationError(APIError):
    """Provider rejected the credentials. Never retried."""

    code = ErrorCode.AUTHENTICATION_ERROR

    def __init__(self, message: str, provider: str, status_code: int | None = 401):
        super().__init__(message, provider, status_code)
        self.user_message = USER_FRIENDLY_MESSAGES[ErrorCode.AUTHENTICATION_ERROR]


class RateLimitError(APIError):
    """Provider throttled the request. Retryable."""

    code = ErrorCode.RATE_LIMIT_ERROR

    def __init__(self, message: str, provider: str, status_code: int | None = 429):
        super().__init__(message, provider, status_code)
        self.user_message = USER_FRIENDLY_MESSAGES[ErrorCode.RATE_LIMIT_ERROR]


class NetworkError(APIError):
    """Transport failure or timeout. Retryable."""

    code = ErrorCode.NETWORK_ERROR

    def __init__(self, message: str, provider: str):
        super().__init__(message, provider, None)
        self.user_message = USER_FRIENDLY_MESSAGES[ErrorCode.NETWORK_ERROR]


class ProviderError(APIError):
    """Any other non-2xx provider response or unusable payload."""

    def __init__(self, message: str, provider: str, status_code: int | None = None):
        super().__init__(message, provider, status_code)
        self.user_message = f"The {provider} service returned an error: {sanitize_error_message(message)}"


class SessionBusyError(DepositionError):
    """A turn is already in flight for this session."""

    code = ErrorCode.SESSION_BUSY

    def __init__(self, session_id: str):
        super().__init__(
            f"Session {session_id} already has a turn in progress",
            user_message=USER_FRIENDLY_MESSAGES[ErrorCode.SESSION_BUSY],
        )
        self.session_id = session_id


RETRYABLE_ERRORS: tuple[type[DepositionError], ...] = (NetworkError, RateLimitError)


# Patterns redacted from anything that might be shown or logged
SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"Bearer\s+[A-Za-z0-9\-._~+/]+=*"),
    re.compile(r"sk-[A-Za-z0-9\-_]+"),
    re.compile(r"AIza[A-Za-z0-9\-_]{35}"),
    re.compile(r'"[^"]*password[^"]*"', re.IGNORECASE),
    re.compile(r'"[^"]*secret[^"]*"', re.IGNORECASE),
    re.compile(r'"[^"]*token[^"]*"', re.IGNORECASE),
    re.compile(r"\b\d{4}[\s-]?\d{4}[\s-]?\d{4}[\s-]?\d{4}\b"),
    re.compile(r"\b\d{3}-\d{2}-\d{4}\b"),
]

MAX_SANITIZED_LENGTH = 500


def sanitize_error_message(error: BaseException | str | None) -> str:
    """Redact keys and personal data from an error message and cap its length."""
    if error is None:
        return "Unknown error occurred"

    message = error if isinstance(error, str) else (str(error) or type(error).__name__)
    for pattern in SENSITIVE_PATTERNS:
        message = pattern.sub("[REDACTED]", message)

    if len(message) > MAX_SANITIZED_LENGTH:
        message = message[:MAX_SANITIZED_LENGTH] + "... [truncated for security]"
    return message


class ErrorInfo(BaseModel):
    """User-safe description of a handled error."""

    code: ErrorCode
    user_message: str
    technical_message: str | None = None
    context: str = ""
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    retryable: bool = False


def handle_error(
    error: BaseException,
    context: str = "",
    show_technical_details: bool = False,
    log: bool = True,
) -> ErrorInfo:
    """
    Classify an error and build a sanitized, user-facing description.

    Args:
        error: The exception to describe
        context: Where the error was caught (e.g. "send_message")
        show_technical_details: Include the sanitized technical message
        log: Log the sanitized technical message

    Returns:
        ErrorInfo safe to return to clients
    """
    technical = sanitize_error_message(error)

    if isinstance(error, DepositionError):
        code = error.code
        user_message = sanitize_error_message(
            error.user_message or USER_FRIENDLY_MESSAGES.get(code, technical)
        )
    else:
        code = ErrorCode.UNKNOWN_ERROR
        user_message = USER_FRIENDLY_MESSAGES[ErrorCode.UNKNOWN_ERROR]
        lowered = technical.lower()
        if "api key" in lowered:
            code = ErrorCode.API_KEY_MISSING
        elif "rate limit" in lowered:
            code = ErrorCode.RATE_LIMIT_ERROR
        elif "unauthorized" in lowered:
            code = ErrorCode.AUTHENTICATION_ERROR
        user_message = USER_FRIENDLY_MESSAGES.get(code, user_message)

    if log:
        logger.error(f"[{context}] Error {code.value}: {technical}")

    return ErrorInfo(
        code=code,
        user_message=user_message,
        technical_message=technical if show_technical_details else None,
        context=context,
        retryable=isinstance(error, RETRYABLE_ERRORS),
    )


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    backoff_multiplier: float = 2.0,
    retryable: tuple[type[BaseException], ...] = RETRYABLE_ERRORS,
) -> T:
    """
    Run an async operation with bounded exponential-backoff retries.

    Only errors in ``retryable`` are retried; everything else propagates on
    the first failure.

    Args:
        operation: Zero-argument coroutine factory
        max_attempts: Total attempts including the first
        initial_delay: Delay before the second attempt, in seconds
        backoff_multiplier: Delay growth per attempt
        retryable: Exception types worth retrying

    Returns:
        The operation's result

    Raises:
        The last error once attempts are exhausted, or any non-retryable error
    """
    attempts = max(1, max_attempts)
    for attempt in range(attempts):
        try:
            return await operation()
        except retryable as e:
            if attempt >= attempts - 1:
                raise
            delay = initial_delay * (backoff_multiplier**attempt)
            logger.warning(
                f"Attempt {attempt + 1}/{attempts} failed ({type(e).__name__}), "
                f"retrying in {delay}s"
            )
            await asyncio.sleep(delay)

    raise RuntimeError("unreachable")  # pragma: no cover


__all__ = [
    "APIError",
    "AuthenticationError",
    "ConfigurationError",
    "DepositionError",
    "ErrorCode",
    "ErrorInfo",
    "FileError",
    "NetworkError",
    "ProviderError",
    "RateLimitError",
    "SessionBusyError",
    "USER_FRIENDLY_MESSAGES",
    "ValidationError",
    "handle_error",
    "sanitize_error_message",
    "with_retry",
]

