"""
Domain Models - Session entity and its policies.

This module contains the session entity shared by the service and every
store backend, together with the cookie and timeout policies applied to it.

Lifecycle:
    new_session()            anonymous, active, default policies, fresh id
    apply_*/attach_user()    in-memory configuration
    SessionStore.save()      server timestamps assigned, canonical copy
    load/update/...          each call refreshes last_accessed_at
    SessionStore.invalidate  active=False, terminal

Pattern: Domain models as Pydantic models, policies as frozen value objects
"""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from websession.models.attributes import AttributeAccessors
from websession.models.ids import generate_session_id, is_valid_session_id


DEFAULT_COOKIE_PATH = "/"
DEFAULT_COOKIE_MAX_AGE = 24 * 60 * 60
DEFAULT_IDLE_TIMEOUT = timedelta(hours=24)
DEFAULT_ABSOLUTE_TIMEOUT = timedelta(days=7)


# =============================================================================
# Cookie Policy
# =============================================================================


class SameSite(str, Enum):
    """SameSite cookie attribute modes."""

    DEFAULT = "default"
    LAX = "lax"
    STRICT = "strict"
    NONE = "none"


class CookiePolicy(BaseModel):
    """
    Cookie attributes the HTTP layer uses when writing the session cookie.

    Carried through the core and stores untouched.

    Attributes:
        path: Cookie Path attribute.
        domain: Cookie Domain attribute (empty means host-only).
        secure: Send only over HTTPS.
        http_only: Hide the cookie from scripts.
        max_age: Max-Age in seconds.
        same_site: SameSite mode.
    """

    path: str = Field(default=DEFAULT_COOKIE_PATH)
    domain: str = Field(default="")
    secure: bool = Field(default=True)
    http_only: bool = Field(default=True)
    max_age: int = Field(default=DEFAULT_COOKIE_MAX_AGE)
    same_site: SameSite = Field(default=SameSite.STRICT)

    model_config = {"frozen": True}


def default_cookie_policy() -> CookiePolicy:
    """Secure, HttpOnly, path "/", 24h Max-Age, SameSite=Strict."""
    return CookiePolicy()


# =============================================================================
# Timeout Policy
# =============================================================================


class TimeoutPolicy(BaseModel):
    """
    Expiration windows of a session.

    Attributes:
        idle_timeout: Maximum inactivity since the last store access.
        absolute_timeout: Maximum lifetime since creation.
    """

    idle_timeout: timedelta = Field(default=DEFAULT_IDLE_TIMEOUT)
    absolute_timeout: timedelta = Field(default=DEFAULT_ABSOLUTE_TIMEOUT)

    model_config = {"frozen": True}


def default_timeout_policy() -> TimeoutPolicy:
    """24h idle timeout, 7 day absolute timeout."""
    return TimeoutPolicy()


# =============================================================================
# Session
# =============================================================================


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Session(BaseModel, AttributeAccessors):
    """
    A server-held session record.

    Timestamps are assigned by the store at write time and are the only
    values used for expiry once the session has been persisted. Attribute
    values may be of any type; see websession.models.values for the kinds
    the typed getters distinguish.

    Attributes:
        id: 52-character base-32 identifier.
        data: Attribute bag, never None.
        cookie: Cookie policy.
        anonymous: True until a user is attached.
        active: False once invalidated.
        user_id: Owner of the session, empty when anonymous.
        idle_timeout: Inactivity window.
        absolute_timeout: Lifetime window.
        last_accessed_at: Last store access (UTC), None until saved.
        created_at: Creation time (UTC), None until saved.

    Example:
        >>> session = new_session()
        >>> session.attach_user("u_123")
        >>> session.set_attribute("theme", "dark")
        >>> saved = await store.save(session)
    """

    id: str = Field(..., description="Opaque session identifier")
    data: dict[str, Any] = Field(default_factory=dict)
    cookie: CookiePolicy = Field(default_factory=default_cookie_policy)
    anonymous: bool = Field(default=True)
    active: bool = Field(default=True)
    user_id: str = Field(default="")
    idle_timeout: timedelta = Field(default=DEFAULT_IDLE_TIMEOUT)
    absolute_timeout: timedelta = Field(default=DEFAULT_ABSOLUTE_TIMEOUT)
    last_accessed_at: Optional[datetime] = Field(default=None)
    created_at: Optional[datetime] = Field(default=None)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not is_valid_session_id(v):
            raise ValueError("session id must be 52 characters of base-32")
        return v

    @field_validator("last_accessed_at", "created_at")
    @classmethod
    def validate_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Interpret naive timestamps as UTC."""
        return _as_utc(v) if v is not None else None

    @model_validator(mode="after")
    def check_user_binding(self) -> "Session":
        if not self.anonymous and not self.user_id:
            raise ValueError("a non-anonymous session requires a user_id")
        return self

    @classmethod
    def new(cls) -> "Session":
        """Alias of new_session()."""
        return new_session()

    # =========================================================================
    # Configuration
    # =========================================================================

    def attach_user(self, user_id: str) -> None:
        """
        Bind the session to a user and mark it non-anonymous.

        Idempotent. The id format is the caller's concern; only an empty id
        is rejected since it would leave a non-anonymous session ownerless.
        """
        if not user_id:
            raise ValueError("user_id must not be empty")
        self.user_id = user_id
        self.anonymous = False

    def apply_cookie_policy(self, policy: CookiePolicy) -> None:
        self.cookie = policy

    def apply_timeout_policy(self, policy: TimeoutPolicy) -> None:
        self.idle_timeout = policy.idle_timeout
        self.absolute_timeout = policy.absolute_timeout

    @property
    def timeout_policy(self) -> TimeoutPolicy:
        return TimeoutPolicy(
            idle_timeout=self.idle_timeout,
            absolute_timeout=self.absolute_timeout,
        )

    # =========================================================================
    # Expiration
    # =========================================================================

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """
        Check whether the session can no longer be used.

        A session is expired when it was invalidated, when its idle window
        or its absolute window has elapsed, or when it has never been given
        timestamps by a store.

        Args:
            now: Reference time. Defaults to the current UTC time.
        """
        if not self.active:
            return True
        if self.last_accessed_at is None or self.created_at is None:
            return True

        now = _as_utc(now) if now is not None else datetime.now(timezone.utc)

        if self.last_accessed_at + self.idle_timeout <= now:
            return True
        if self.created_at + self.absolute_timeout <= now:
            return True
        return False


def new_session() -> Session:
    """
    Create an unsaved anonymous session with default policies.

    Raises:
        GenerationError: If no identifier could be generated.
    """
    return Session(id=generate_session_id())
