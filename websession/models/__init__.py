"""Models Package - session entity, identifiers and attribute values."""

from websession.models.domain import (
    CookiePolicy,
    SameSite,
    Session,
    TimeoutPolicy,
    default_cookie_policy,
    default_timeout_policy,
    new_session,
)
from websession.models.ids import (
    ENCODED_LENGTH,
    KEY_LENGTH,
    generate_session_id,
    is_valid_session_id,
    session_id_fingerprint,
    validate_session_id,
)
from websession.models.values import (
    Byte,
    Float32,
    Int8,
    Int16,
    Int32,
    Int64,
    TypedList,
)

__all__ = [
    # Domain
    "Session",
    "CookiePolicy",
    "TimeoutPolicy",
    "SameSite",
    "new_session",
    "default_cookie_policy",
    "default_timeout_policy",
    # Identifiers
    "ENCODED_LENGTH",
    "KEY_LENGTH",
    "generate_session_id",
    "validate_session_id",
    "is_valid_session_id",
    "session_id_fingerprint",
    # Values
    "Byte",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Float32",
    "TypedList",
]
