"""
Core module for websession.

This module contains configuration and the exception hierarchy.
"""

from websession.core.config import Settings, get_settings
from websession.core.exceptions import (
    AttributeEncodingError,
    AttributeParseError,
    EmptyAttributesError,
    ErrorCode,
    FormatError,
    GenerationError,
    KeyTypeError,
    OddArgumentCountError,
    SessionBackendError,
    SessionError,
    SessionIDEncodingError,
    SessionIDLengthError,
    SessionNotFoundError,
    SessionStoreError,
    WebSessionException,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Exceptions
    "ErrorCode",
    "WebSessionException",
    "SessionError",
    "GenerationError",
    "FormatError",
    "SessionIDLengthError",
    "SessionIDEncodingError",
    "SessionNotFoundError",
    "SessionStoreError",
    "SessionBackendError",
    "AttributeEncodingError",
    "AttributeParseError",
    "OddArgumentCountError",
    "KeyTypeError",
    "EmptyAttributesError",
]
