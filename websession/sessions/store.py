"""
Session Store - persistence contract for session records.

Every storage backend implements SessionStore. The service depends only on
this interface; backend-specific layout, clients and codecs stay inside the
implementation.

Contract shared by all backends:
- Timestamps are assigned from the backend clock on every operation; values
  supplied by the caller are ignored.
- load/update/add_attributes/remove_attributes raise SessionNotFoundError
  when no record exists. invalidate never does.
- Read-modify-write operations are a single atomic backend operation.
- Returned sessions are copies. Mutating one never changes the record.
- Any other failure is raised as SessionBackendError with the original
  exception chained.

Pattern: Repository pattern behind an abstract base class
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping

from websession.models.domain import Session


class SessionStore(ABC):
    """
    Abstract base for session persistence backends.

    Implementations:
        MemorySessionStore: in-process dict, atomic on the event loop.
        RedisSessionStore: Redis hashes mutated by Lua scripts.

    Example:
        >>> store = MemorySessionStore()
        >>> saved = await store.save(new_session())
        >>> loaded = await store.load(saved.id)
    """

    @abstractmethod
    async def save(self, session: Session) -> Session:
        """
        Write a new record keyed by session.id.

        created_at and last_accessed_at are set from the backend clock. An
        existing record with the same id is replaced.

        Returns:
            The canonical stored copy.

        Raises:
            SessionNotFoundError: If the written record cannot be read back.
            SessionBackendError: On storage failure.
        """

    @abstractmethod
    async def update(self, session: Session) -> Session:
        """
        Replace the mutable fields of an existing record.

        Data, cookie policy, active, anonymous, user id and timeouts are
        replaced; created_at is kept and last_accessed_at refreshed.

        Raises:
            SessionNotFoundError: If no record exists for session.id.
            SessionBackendError: On storage failure.
        """

    @abstractmethod
    async def load(self, session_id: str) -> Session:
        """
        Fetch a record and refresh its last_accessed_at.

        Raises:
            SessionNotFoundError: If no record exists.
            SessionBackendError: On storage failure.
        """

    @abstractmethod
    async def add_attributes(
        self, session_id: str, attrs: Mapping[str, Any]
    ) -> Session:
        """
        Merge attrs into the record's data.

        Raises:
            SessionNotFoundError: If no record exists.
            SessionBackendError: On storage failure.
        """

    @abstractmethod
    async def remove_attributes(self, session_id: str, *keys: str) -> Session:
        """
        Delete the named keys from the record's data.

        Keys that are not present are ignored.

        Raises:
            SessionNotFoundError: If no record exists.
            SessionBackendError: On storage failure.
        """

    @abstractmethod
    async def invalidate(self, session_id: str) -> None:
        """
        Mark the record inactive and refresh its last_accessed_at.

        Invalidating an unknown or already invalidated session succeeds.

        Raises:
            SessionBackendError: On storage failure.
        """

    async def close(self) -> None:
        """Release backend resources. The default does nothing."""
        return None

    async def __aenter__(self) -> "SessionStore":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
