"""Session Service - lifecycle operations over a SessionStore.

The service builds new sessions, parses caller supplied attributes and
delegates persistence to the injected store. It holds no state of its own
besides the store and the per-call deadline.

Error handling:
- Malformed input raises an AttributeParseError before the store is called.
- SessionNotFoundError from the store is re-raised as the same object.
- Any other store failure, including an expired deadline, is raised as
  SessionStoreError naming the service operation, with the cause chained.
- Cancelling the calling task cancels the store call.

Every operation takes a keyword-only ``timeout`` that replaces the
service-wide deadline for that one call (0 disables it).

Failures are logged at info level only. Whether a failure is an
application error is the caller's decision.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Iterable,
    Mapping,
    Optional,
    TypeVar,
    Union,
)

from websession.core.config import get_settings
from websession.core.exceptions import (
    EmptyAttributesError,
    KeyTypeError,
    OddArgumentCountError,
    SessionNotFoundError,
    SessionStoreError,
)
from websession.models.domain import CookiePolicy, Session, TimeoutPolicy, new_session
from websession.models.ids import session_id_fingerprint
from websession.observability.logging import get_logger
from websession.observability.metrics import track_operation
from websession.sessions.store import SessionStore

T = TypeVar("T")


# =============================================================================
# Attribute Parsing
# =============================================================================


class AttributeKey(str):
    """A named attribute key. Accepted wherever a plain str key is."""

    __slots__ = ()


def parse_attributes(*key_and_values: Any) -> dict[str, Any]:
    """Turn a flat ``key, value, key, value, ...`` sequence into a dict.

    Later duplicates overwrite earlier ones.

    Raises:
        OddArgumentCountError: If the sequence has an odd length.
        KeyTypeError: If a key position holds a non-str value.

    Example:
        >>> parse_attributes("theme", "dark", "visits", Int32(3))
        {'theme': 'dark', 'visits': Int32(3)}
    """
    if len(key_and_values) % 2 != 0:
        raise OddArgumentCountError(len(key_and_values))

    data: dict[str, Any] = {}
    for i in range(0, len(key_and_values), 2):
        key = key_and_values[i]
        if not isinstance(key, str):
            raise KeyTypeError(type(key), i)
        data[str(key)] = key_and_values[i + 1]
    return data


def pairs_to_key_and_values(
    pairs: Union[Mapping[str, Any], Iterable[tuple[str, Any]]],
) -> tuple[Any, ...]:
    """Flatten ``(key, value)`` pairs or a mapping into the flat form.

    Example:
        >>> await service.add_attributes(sid, *pairs_to_key_and_values({"a": 1}))
    """
    items = pairs.items() if isinstance(pairs, Mapping) else pairs
    flat: list[Any] = []
    for key, value in items:
        flat.extend((key, value))
    return tuple(flat)


# =============================================================================
# SessionService
# =============================================================================


class SessionService:
    """Create, load, mutate and invalidate sessions.

    Args:
        store: Persistence backend.
        timeout_seconds: Deadline for each store call. Defaults to
            settings.store_timeout_seconds; 0 disables the deadline.

    Example:
        >>> service = SessionService(RedisSessionStore(client))
        >>> session = await service.create_anonymous_session(
        ...     default_cookie_policy(), default_timeout_policy(), "theme", "dark"
        ... )
        >>> await service.invalidate_session(session.id)
    """

    def __init__(
        self, store: SessionStore, timeout_seconds: Optional[float] = None
    ) -> None:
        self._store = store
        if timeout_seconds is None:
            timeout_seconds = get_settings().store_timeout_seconds
        self._timeout_seconds = timeout_seconds or None
        self._logger = get_logger(__name__)

    @property
    def store(self) -> SessionStore:
        return self._store

    # =========================================================================
    # Plumbing
    # =========================================================================

    @asynccontextmanager
    async def _operation(
        self, operation: str, session_id: Optional[str] = None
    ) -> AsyncIterator[None]:
        """Log and measure one service operation."""
        fingerprint = session_id_fingerprint(session_id)
        self._logger.debug(f"session_service.{operation}.started", session_id=fingerprint)

        async with track_operation(operation):
            try:
                yield
            except Exception as e:
                self._logger.info(
                    f"session_service.{operation}.failed",
                    session_id=fingerprint,
                    error=str(e),
                    error_type=type(e).__name__,
                    error_code=getattr(e, "error_code", None),
                )
                raise

        self._logger.debug(f"session_service.{operation}.finished", session_id=fingerprint)

    def _deadline(self, timeout: Optional[float]) -> Optional[float]:
        if timeout is None:
            return self._timeout_seconds
        return timeout or None

    async def _call_store(
        self,
        operation: str,
        session_id: str,
        call: Awaitable[T],
        timeout: Optional[float] = None,
    ) -> T:
        """Await a store call under the deadline and translate its failures."""
        deadline = self._deadline(timeout)
        try:
            if deadline is None:
                return await call
            return await asyncio.wait_for(call, timeout=deadline)
        except SessionNotFoundError:
            raise
        except asyncio.TimeoutError as e:
            raise SessionStoreError(
                f"{operation}: store call timed out after {deadline}s",
                operation=operation,
                session_id=session_id,
            ) from e
        except Exception as e:
            raise SessionStoreError(
                f"{operation}: store error: {e}",
                operation=operation,
                session_id=session_id,
            ) from e

    async def _create(
        self,
        operation: str,
        cookie_policy: CookiePolicy,
        timeout_policy: TimeoutPolicy,
        user_id: Optional[str],
        key_and_values: tuple[Any, ...],
        timeout: Optional[float],
    ) -> Session:
        async with self._operation(operation):
            data = parse_attributes(*key_and_values)

            session = new_session()
            session.apply_cookie_policy(cookie_policy)
            if user_id is not None:
                session.attach_user(user_id)
            session.apply_timeout_policy(timeout_policy)
            session.set_attributes(data)

            return await self._call_store(
                operation, session.id, self._store.save(session), timeout
            )

    # =========================================================================
    # Operations
    # =========================================================================

    async def create_anonymous_session(
        self,
        cookie_policy: CookiePolicy,
        timeout_policy: TimeoutPolicy,
        *key_and_values: Any,
        timeout: Optional[float] = None,
    ) -> Session:
        """Create and persist a new anonymous session.

        Args:
            cookie_policy: Cookie attributes for the session.
            timeout_policy: Idle and absolute timeouts.
            *key_and_values: Initial attributes as ``key, value, ...``.
            timeout: Deadline in seconds for this call. Defaults to the
                service deadline; 0 disables it.

        Returns:
            The stored session, with server-assigned timestamps.

        Raises:
            AttributeParseError: If the attributes are malformed.
            GenerationError: If no identifier could be generated.
            SessionStoreError: If the store fails.
        """
        return await self._create(
            "create_anonymous_session",
            cookie_policy,
            timeout_policy,
            None,
            key_and_values,
            timeout,
        )

    async def create_user_session(
        self,
        user_id: str,
        cookie_policy: CookiePolicy,
        timeout_policy: TimeoutPolicy,
        *key_and_values: Any,
        timeout: Optional[float] = None,
    ) -> Session:
        """Create and persist a new session bound to user_id.

        Raises:
            ValueError: If user_id is empty.
            AttributeParseError: If the attributes are malformed.
            GenerationError: If no identifier could be generated.
            SessionStoreError: If the store fails.
        """
        return await self._create(
            "create_user_session",
            cookie_policy,
            timeout_policy,
            user_id,
            key_and_values,
            timeout,
        )

    async def load_session(
        self, session_id: str, *, timeout: Optional[float] = None
    ) -> Session:
        """Load a session, refreshing its last access time.

        The session is returned even if expired; check is_expired().

        Raises:
            SessionNotFoundError: If no session exists.
            SessionStoreError: If the store fails.
        """
        async with self._operation("load_session", session_id):
            return await self._call_store(
                "load_session", session_id, self._store.load(session_id), timeout
            )

    async def invalidate_session(
        self, session_id: str, *, timeout: Optional[float] = None
    ) -> None:
        """Mark a session inactive. Succeeds for unknown ids.

        Raises:
            SessionStoreError: If the store fails.
        """
        async with self._operation("invalidate_session", session_id):
            await self._call_store(
                "invalidate_session",
                session_id,
                self._store.invalidate(session_id),
                timeout,
            )

    async def add_attributes(
        self,
        session_id: str,
        *key_and_values: Any,
        timeout: Optional[float] = None,
    ) -> Session:
        """Merge attributes into a stored session.

        Raises:
            EmptyAttributesError: If no attributes are given.
            AttributeParseError: If the attributes are malformed.
            SessionNotFoundError: If no session exists.
            SessionStoreError: If the store fails.
        """
        async with self._operation("add_attributes", session_id):
            if not key_and_values:
                raise EmptyAttributesError("no attributes to add", session_id=session_id)
            data = parse_attributes(*key_and_values)
            return await self._call_store(
                "add_attributes",
                session_id,
                self._store.add_attributes(session_id, data),
                timeout,
            )

    async def remove_attributes(
        self, session_id: str, *keys: str, timeout: Optional[float] = None
    ) -> Session:
        """Delete attributes from a stored session. Unknown keys are ignored.

        Raises:
            EmptyAttributesError: If no keys are given.
            KeyTypeError: If a key is not a str.
            SessionNotFoundError: If no session exists.
            SessionStoreError: If the store fails.
        """
        async with self._operation("remove_attributes", session_id):
            if not keys:
                raise EmptyAttributesError("no attributes to remove", session_id=session_id)
            for position, key in enumerate(keys):
                if not isinstance(key, str):
                    raise KeyTypeError(type(key), position)
            names = [str(key) for key in keys]
            return await self._call_store(
                "remove_attributes",
                session_id,
                self._store.remove_attributes(session_id, *names),
                timeout,
            )
