"""
Custom exceptions for websession.

This module provides the exception hierarchy for the session core.
All exceptions inherit from WebSessionException and carry an error code so
the calling layer can map failures to "bad input", "not found" or
"backend failure" without inspecting messages.

Hierarchy:
    WebSessionException
    ├── SessionError
    │   ├── GenerationError
    │   ├── FormatError
    │   │   ├── SessionIDLengthError
    │   │   └── SessionIDEncodingError
    │   ├── SessionNotFoundError
    │   └── SessionStoreError
    │       └── SessionBackendError
    │           └── AttributeEncodingError
    └── AttributeParseError
        ├── OddArgumentCountError
        ├── KeyTypeError
        └── EmptyAttributesError
"""

from enum import Enum
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================


class ErrorCode(str, Enum):
    """
    Error codes for websession exceptions.

    These codes provide a consistent way to identify error types
    across callers and in logging.
    """

    WEBSESSION_ERROR = "WEBSESSION_ERROR"
    SESSION_ERROR = "SESSION_ERROR"
    GENERATION_ERROR = "GENERATION_ERROR"
    FORMAT_ERROR = "FORMAT_ERROR"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    STORE_ERROR = "STORE_ERROR"
    BACKEND_ERROR = "BACKEND_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    EMPTY_ATTRIBUTES = "EMPTY_ATTRIBUTES"


# =============================================================================
# Base Exception
# =============================================================================


class WebSessionException(Exception):
    """
    Base exception for all websession errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code from ErrorCode enum.
    """

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.WEBSESSION_ERROR,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            **kwargs: Additional attributes to set on the exception.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code

        for key, value in kwargs.items():
            setattr(self, key, value)


# =============================================================================
# Session Errors
# =============================================================================


class SessionError(WebSessionException):
    """
    Exception for session management issues.

    Attributes:
        session_id: ID of the affected session (if known).
    """

    def __init__(
        self,
        message: str,
        session_id: str | None = None,
        error_code: str = ErrorCode.SESSION_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.session_id = session_id


class GenerationError(SessionError):
    """
    The entropy source failed while generating a session identifier.

    Fatal for the operation in progress; never retried internally.
    """

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", ErrorCode.GENERATION_ERROR)
        super().__init__(message, **kwargs)


class FormatError(SessionError):
    """
    An externally supplied session identifier is malformed.

    Use the subclasses to tell a length problem from an encoding problem.
    """

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", ErrorCode.FORMAT_ERROR)
        super().__init__(message, **kwargs)


class SessionIDLengthError(FormatError):
    """The identifier does not have the fixed encoded length."""


class SessionIDEncodingError(FormatError):
    """The identifier contains characters outside the base-32 alphabet."""


class SessionNotFoundError(SessionError):
    """
    No session record exists for the identifier.

    Raised by stores and passed through the service unwrapped.
    """

    def __init__(self, message: str = "session not found", **kwargs: Any) -> None:
        kwargs.setdefault("error_code", ErrorCode.SESSION_NOT_FOUND)
        super().__init__(message, **kwargs)


class SessionStoreError(SessionError):
    """
    A store operation failed for a reason other than "not found".

    Raised by the service with the name of the failed operation; the
    underlying failure is available as ``__cause__``.

    Attributes:
        operation: Name of the operation that failed.
    """

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("error_code", ErrorCode.STORE_ERROR)
        super().__init__(message, **kwargs)
        self.operation = operation


class SessionBackendError(SessionStoreError):
    """Raised by store backends when the storage system itself fails."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", ErrorCode.BACKEND_ERROR)
        super().__init__(message, **kwargs)


class AttributeEncodingError(SessionBackendError):
    """
    An attribute value cannot be encoded for (or decoded from) a backend.

    Attributes:
        key: Attribute key of the offending value (if known).
    """

    def __init__(self, message: str, key: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.key = key


# =============================================================================
# Attribute Parsing Errors
# =============================================================================


class AttributeParseError(WebSessionException):
    """
    Caller supplied malformed key/value input.

    Detected before any store call; never reaches a backend.
    """

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.PARSE_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)


class OddArgumentCountError(AttributeParseError):
    """
    The flat key/value sequence has an odd length.

    Attributes:
        count: Number of items received.
    """

    def __init__(self, count: int, **kwargs: Any) -> None:
        super().__init__(
            f"expected even count of key and values, got: {count}", **kwargs
        )
        self.count = count


class KeyTypeError(AttributeParseError):
    """
    A key position holds something other than a string key.

    Attributes:
        key_type: Type of the offending key.
        position: Index of the key in the flat sequence.
    """

    def __init__(self, key_type: type, position: int, **kwargs: Any) -> None:
        super().__init__(
            f"can't convert key of type: {key_type.__name__} to string", **kwargs
        )
        self.key_type = key_type
        self.position = position


class EmptyAttributesError(AttributeParseError):
    """An attribute mutation was requested with nothing to add or remove."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", ErrorCode.EMPTY_ATTRIBUTES)
        super().__init__(message, **kwargs)
