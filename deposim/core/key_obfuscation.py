"""Reversible API-key masking for keys echoed back to clients.

This is NOT encryption. It only keeps a key from being readable at a glance
in a settings payload or log line; anyone can reverse it.
"""

import base64
import binascii

from deposim.core.logging import get_logger

logger = get_logger(__name__)

PREFIX = "obf_"
SUFFIX = "_end"


def obfuscate_api_key(key: str | None) -> str:
    if not key:
        return ""
    encoded = base64.b64encode(key.encode("utf-8")).decode("ascii")
    return f"{PREFIX}{encoded[::-1]}{SUFFIX}"


def deobfuscate_api_key(value: str | None) -> str:
    """
    Restore a masked key.

    Values without the marker are returned unchanged; a malformed masked value
    yields an empty string.
    """
    if not value:
        return ""
    if not (value.startswith(PREFIX) and value.endswith(SUFFIX)):
        return value

    encoded = value[len(PREFIX) : -len(SUFFIX)][::-1]
    try:
        return base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        logger.warning("Failed to deobfuscate API key")
        return ""


def is_obfuscated(value: str | None) -> bool:
    return bool(value) and value.startswith(PREFIX) and value.endswith(SUFFIX)
