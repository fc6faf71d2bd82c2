"""
Session identifier generation and validation.

An identifier is 32 bytes from the operating system CSPRNG encoded as
RFC 4648 base-32 (alphabet ``A-Z2-7``) with the padding stripped. The
encoded form is always 52 characters, so the length can be checked before
decoding.
"""

import base64
import binascii
import hashlib
import secrets
from typing import Callable

from websession.core.exceptions import (
    GenerationError,
    SessionIDEncodingError,
    SessionIDLengthError,
)

KEY_LENGTH = 32
ENCODED_LENGTH = 52  # ceil(32 * 8 / 5)

_PAD = "=" * (-ENCODED_LENGTH % 8)


def generate_session_id(
    entropy: Callable[[int], bytes] = secrets.token_bytes,
) -> str:
    """
    Generate a new session identifier.

    Args:
        entropy: Source of random bytes. Defaults to secrets.token_bytes.

    Returns:
        The 52-character encoded identifier.

    Raises:
        GenerationError: If the entropy source fails.
    """
    try:
        raw = entropy(KEY_LENGTH)
    except Exception as e:
        raise GenerationError(f"error generating session id: {e}") from e

    if len(raw) != KEY_LENGTH:
        raise GenerationError(
            f"error generating session id: expected {KEY_LENGTH} random bytes, "
            f"got {len(raw)}"
        )
    return base64.b32encode(raw).decode("ascii").rstrip("=")


def validate_session_id(sid: str) -> None:
    """
    Check that an externally supplied identifier is well formed.

    Both checks must pass for the identifier to be used as a lookup key.

    Raises:
        SessionIDLengthError: If the encoded length is not 52.
        SessionIDEncodingError: If the string is not valid base-32.
    """
    if not isinstance(sid, str):
        raise SessionIDEncodingError(
            f"error validating session: expected str, got {type(sid).__name__}"
        )
    if len(sid) != ENCODED_LENGTH:
        raise SessionIDLengthError("error validating session: wrong session id length")
    try:
        base64.b32decode(sid + _PAD)
    except (binascii.Error, ValueError) as e:
        raise SessionIDEncodingError(f"error validating session: {e}") from e


def is_valid_session_id(sid: str) -> bool:
    """Return True if ``validate_session_id`` accepts the identifier."""
    try:
        validate_session_id(sid)
    except (SessionIDLengthError, SessionIDEncodingError):
        return False
    return True


def session_id_fingerprint(sid: str | None) -> str | None:
    """
    Short digest of a session id for log events.

    Raw identifiers are bearer credentials and are kept out of log sinks.
    """
    if sid is None:
        return None
    return f"sha256:{hashlib.sha256(sid.encode()).hexdigest()[:16]}"
