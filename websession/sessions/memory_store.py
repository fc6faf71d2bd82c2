"""
In-memory session store.

Keeps records in a dict inside the process. Suitable for tests and
single-process deployments; records are lost on restart and are not shared
between workers.

Each operation completes its read-modify-write under one asyncio.Lock and
stores and returns deep copies, so callers never share state with the
durable record.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

from websession.core.exceptions import SessionBackendError, SessionNotFoundError
from websession.models.domain import Session
from websession.sessions.store import SessionStore


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MemorySessionStore(SessionStore):
    """
    Dict-backed SessionStore.

    Attributes:
        _sessions: Records keyed by session id.
        _clock: Source of timestamps.

    Example:
        >>> store = MemorySessionStore()
        >>> saved = await store.save(new_session())
        >>> saved.created_at is not None
        True
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None) -> None:
        """
        Initialize an empty store.

        Args:
            clock: Returns the current time (UTC). Defaults to the wall clock.
        """
        self._sessions: dict[str, Session] = {}
        self._clock: Callable[[], datetime] = clock or _utcnow
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def _copy(self, session: Session, operation: str) -> Session:
        try:
            return session.model_copy(deep=True)
        except Exception as e:
            raise SessionBackendError(
                f"failed to copy session: {e}",
                operation=operation,
                session_id=session.id,
            ) from e

    def _get(self, session_id: str) -> Session:
        record = self._sessions.get(session_id)
        if record is None:
            raise SessionNotFoundError(session_id=session_id)
        return record

    # =========================================================================
    # SessionStore
    # =========================================================================

    async def save(self, session: Session) -> Session:
        async with self._lock:
            record = self._copy(session, "save")
            now = self._clock()
            record.created_at = now
            record.last_accessed_at = now
            self._sessions[record.id] = record
            return self._copy(record, "save")

    async def update(self, session: Session) -> Session:
        async with self._lock:
            current = self._get(session.id)
            record = self._copy(session, "update")
            record.created_at = current.created_at
            record.last_accessed_at = self._clock()
            self._sessions[record.id] = record
            return self._copy(record, "update")

    async def load(self, session_id: str) -> Session:
        async with self._lock:
            record = self._get(session_id)
            record.last_accessed_at = self._clock()
            return self._copy(record, "load")

    async def add_attributes(
        self, session_id: str, attrs: Mapping[str, Any]
    ) -> Session:
        async with self._lock:
            record = self._get(session_id)
            staged = self._copy(record, "add_attributes")
            staged.set_attributes(attrs)
            # copy once more so the record does not alias the caller's values
            staged = self._copy(staged, "add_attributes")
            staged.last_accessed_at = self._clock()
            self._sessions[session_id] = staged
            return self._copy(staged, "add_attributes")

    async def remove_attributes(self, session_id: str, *keys: str) -> Session:
        async with self._lock:
            record = self._get(session_id)
            for key in keys:
                record.data.pop(key, None)
            record.last_accessed_at = self._clock()
            return self._copy(record, "remove_attributes")

    async def invalidate(self, session_id: str) -> None:
        async with self._lock:
            record = self._sessions.get(session_id)
            if record is None:
                return
            record.active = False
            record.last_accessed_at = self._clock()
