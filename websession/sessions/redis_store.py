"""
Redis session store.

Each session is two hashes:

    <prefix><id>         metadata (flags, user id, cookie policy JSON,
                         timeouts in microseconds, timestamps in epoch
                         microseconds)
    <prefix><id>:data    attribute key -> codec JSON

Every operation is a single Lua script, so the read-modify-write happens on
the Redis server without interleaving and timestamps come from the server
clock (TIME). Scripts return nil when the session does not exist.

When a retention period is configured both keys expire at
created_at + absolute_timeout + retention; past that point the session is
reported as not found.

Pattern: Repository pattern with Redis storage
Pattern: Dependency injection for the Redis client
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

import redis.asyncio as redis
from redis.asyncio import Redis

from websession.core.config import get_settings
from websession.core.exceptions import SessionBackendError, SessionNotFoundError
from websession.models.domain import CookiePolicy, Session
from websession.models.ids import session_id_fingerprint
from websession.observability.logging import get_logger
from websession.sessions import codec
from websession.sessions.store import SessionStore


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


# =============================================================================
# Lua Scripts
# =============================================================================

# KEYS[1] = meta hash, KEYS[2] = data hash, ARGV[1] = retention in ms (-1: none)
_PRELUDE = """
local function now_us()
    local t = redis.call('TIME')
    return t[1] .. string.format('%06d', tonumber(t[2]))
end

local function hset_pairs(key, first, last)
    for i = first, last, 2 do
        redis.call('HSET', key, ARGV[i], ARGV[i + 1])
    end
end

local function finish()
    local result = {redis.call('HGETALL', KEYS[1]), redis.call('HGETALL', KEYS[2])}
    local retention = tonumber(ARGV[1])
    if retention >= 0 then
        local created = tonumber(redis.call('HGET', KEYS[1], 'created_at'))
        local absolute = tonumber(redis.call('HGET', KEYS[1], 'absolute_timeout'))
        local at = string.format('%.0f',
            math.floor(created / 1000) + math.floor(absolute / 1000) + retention)
        redis.call('PEXPIREAT', KEYS[1], at)
        redis.call('PEXPIREAT', KEYS[2], at)
    end
    return result
end
"""

# ARGV[2] = number of meta items, then meta field/value items, then data items
_SAVE = _PRELUDE + """
redis.call('DEL', KEYS[1], KEYS[2])
local now = now_us()
local n = tonumber(ARGV[2])
redis.call('HSET', KEYS[1], 'created_at', now, 'last_accessed_at', now)
hset_pairs(KEYS[1], 3, 2 + n)
hset_pairs(KEYS[2], 3 + n, #ARGV)
return finish()
"""

_UPDATE = _PRELUDE + """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return false
end
local n = tonumber(ARGV[2])
redis.call('HSET', KEYS[1], 'last_accessed_at', now_us())
hset_pairs(KEYS[1], 3, 2 + n)
redis.call('DEL', KEYS[2])
hset_pairs(KEYS[2], 3 + n, #ARGV)
return finish()
"""

_LOAD = _PRELUDE + """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return false
end
redis.call('HSET', KEYS[1], 'last_accessed_at', now_us())
return finish()
"""

# ARGV[2..] = data field/value items
_ADD = _PRELUDE + """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return false
end
redis.call('HSET', KEYS[1], 'last_accessed_at', now_us())
hset_pairs(KEYS[2], 2, #ARGV)
return finish()
"""

# ARGV[2..] = attribute keys
_REMOVE = _PRELUDE + """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return false
end
redis.call('HSET', KEYS[1], 'last_accessed_at', now_us())
for i = 2, #ARGV do
    redis.call('HDEL', KEYS[2], ARGV[i])
end
return finish()
"""

_INVALIDATE = _PRELUDE + """
if redis.call('EXISTS', KEYS[1]) == 1 then
    redis.call('HSET', KEYS[1], 'active', '0', 'last_accessed_at', now_us())
end
return 1
"""


# =============================================================================
# Field Conversion
# =============================================================================


def _text(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def _hash_to_dict(flat: list[Any]) -> dict[str, Any]:
    """Turn a flat HGETALL reply into a dict with str keys."""
    return {_text(flat[i]): flat[i + 1] for i in range(0, len(flat), 2)}


def _to_micros(delta: timedelta) -> int:
    return (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds


def _from_epoch_micros(value: Any) -> datetime:
    return _EPOCH + timedelta(microseconds=int(_text(value)))


def _flag(value: bool) -> str:
    return "1" if value else "0"


# =============================================================================
# RedisSessionStore
# =============================================================================


class RedisSessionStore(SessionStore):
    """
    Redis-backed SessionStore.

    Works with clients created with or without decode_responses.

    Attributes:
        _redis: The Redis client instance.
        _key_prefix: Prefix for Redis keys.
        _retention_ms: Retention after the absolute timeout, -1 when unset.

    Example:
        >>> import redis.asyncio as redis
        >>> client = redis.from_url("redis://localhost:6379")
        >>> store = RedisSessionStore(redis_client=client)
        >>> saved = await store.save(new_session())
        >>> loaded = await store.load(saved.id)
    """

    def __init__(
        self,
        redis_client: Optional[Redis] = None,
        key_prefix: Optional[str] = None,
        retention_seconds: Optional[int] = None,
    ) -> None:
        """
        Initialize the store.

        Args:
            redis_client: Async Redis client. When omitted a pooled client is
                created from settings and closed by close().
            key_prefix: Prefix for all session keys.
                Defaults to settings.redis_key_prefix.
            retention_seconds: Seconds to keep a record after its absolute
                timeout. Defaults to settings.session_retention_seconds.
        """
        settings = get_settings()

        if redis_client is None:
            self._redis: Redis = redis.from_url(
                settings.redis_url,
                max_connections=settings.redis_pool_size,
            )
            self._owns_client = True
        else:
            self._redis = redis_client
            self._owns_client = False

        self._key_prefix: str = key_prefix or settings.redis_key_prefix

        if retention_seconds is None:
            retention_seconds = settings.session_retention_seconds
        self._retention_ms: int = (
            -1 if retention_seconds is None else int(retention_seconds) * 1000
        )

        self._save_script = self._redis.register_script(_SAVE)
        self._update_script = self._redis.register_script(_UPDATE)
        self._load_script = self._redis.register_script(_LOAD)
        self._add_script = self._redis.register_script(_ADD)
        self._remove_script = self._redis.register_script(_REMOVE)
        self._invalidate_script = self._redis.register_script(_INVALIDATE)

        self._logger = get_logger(__name__)

    # =========================================================================
    # Key and Field Helpers
    # =========================================================================

    def _keys(self, session_id: str) -> list[str]:
        meta = f"{self._key_prefix}{session_id}"
        return [meta, f"{meta}:data"]

    @staticmethod
    def _meta_items(session: Session) -> list[Any]:
        return [
            "active", _flag(session.active),
            "anonymous", _flag(session.anonymous),
            "user_id", session.user_id,
            "cookie", session.cookie.model_dump_json(),
            "idle_timeout", _to_micros(session.idle_timeout),
            "absolute_timeout", _to_micros(session.absolute_timeout),
        ]

    @staticmethod
    def _data_items(attrs: Mapping[str, Any]) -> list[Any]:
        items: list[Any] = []
        for key, value in attrs.items():
            items.extend((key, codec.dumps(value, key=key)))
        return items

    def _to_session(self, session_id: str, reply: Any) -> Session:
        if reply is None:
            raise SessionNotFoundError(session_id=session_id)

        meta_raw, data_raw = reply
        meta = _hash_to_dict(meta_raw)
        if not meta:
            raise SessionNotFoundError(session_id=session_id)

        data = {
            key: codec.loads(raw, key=key)
            for key, raw in _hash_to_dict(data_raw).items()
        }

        return Session(
            id=session_id,
            data=data,
            cookie=CookiePolicy.model_validate_json(meta["cookie"]),
            active=_text(meta["active"]) == "1",
            anonymous=_text(meta["anonymous"]) == "1",
            user_id=_text(meta.get("user_id", "")),
            idle_timeout=timedelta(microseconds=int(_text(meta["idle_timeout"]))),
            absolute_timeout=timedelta(
                microseconds=int(_text(meta["absolute_timeout"]))
            ),
            created_at=_from_epoch_micros(meta["created_at"]),
            last_accessed_at=_from_epoch_micros(meta["last_accessed_at"]),
        )

    async def _run(
        self,
        operation: str,
        session_id: str,
        script: Any,
        args: list[Any],
    ) -> Session:
        """Execute a script and decode the session it returns."""
        try:
            reply = await script(keys=self._keys(session_id), args=args)
            return self._to_session(session_id, reply)
        except SessionNotFoundError:
            raise
        except SessionBackendError as e:
            raise self._annotate(e, operation, session_id)
        except Exception as e:
            self._log_failure(operation, session_id, e)
            raise SessionBackendError(
                f"redis {operation} failed: {e}",
                operation=operation,
                session_id=session_id,
            ) from e

    def _annotate(
        self, error: SessionBackendError, operation: str, session_id: str
    ) -> SessionBackendError:
        if error.operation is None:
            error.operation = operation
        if error.session_id is None:
            error.session_id = session_id
        self._log_failure(operation, session_id, error)
        return error

    def _log_failure(self, operation: str, session_id: str, error: Exception) -> None:
        self._logger.info(
            f"redis_session_store.{operation}.failed",
            session_id=session_id_fingerprint(session_id),
            error=str(error),
            error_type=type(error).__name__,
        )

    # =========================================================================
    # SessionStore
    # =========================================================================

    async def save(self, session: Session) -> Session:
        try:
            meta = self._meta_items(session)
            data = self._data_items(session.data)
        except SessionBackendError as e:
            raise self._annotate(e, "save", session.id)

        return await self._run(
            "save",
            session.id,
            self._save_script,
            [self._retention_ms, len(meta), *meta, *data],
        )

    async def update(self, session: Session) -> Session:
        try:
            meta = self._meta_items(session)
            data = self._data_items(session.data)
        except SessionBackendError as e:
            raise self._annotate(e, "update", session.id)

        return await self._run(
            "update",
            session.id,
            self._update_script,
            [self._retention_ms, len(meta), *meta, *data],
        )

    async def load(self, session_id: str) -> Session:
        return await self._run(
            "load", session_id, self._load_script, [self._retention_ms]
        )

    async def add_attributes(
        self, session_id: str, attrs: Mapping[str, Any]
    ) -> Session:
        try:
            data = self._data_items(attrs)
        except SessionBackendError as e:
            raise self._annotate(e, "add_attributes", session_id)

        return await self._run(
            "add_attributes",
            session_id,
            self._add_script,
            [self._retention_ms, *data],
        )

    async def remove_attributes(self, session_id: str, *keys: str) -> Session:
        return await self._run(
            "remove_attributes",
            session_id,
            self._remove_script,
            [self._retention_ms, *keys],
        )

    async def invalidate(self, session_id: str) -> None:
        try:
            await self._invalidate_script(
                keys=self._keys(session_id), args=[self._retention_ms]
            )
        except Exception as e:
            self._log_failure("invalidate", session_id, e)
            raise SessionBackendError(
                f"redis invalidate failed: {e}",
                operation="invalidate",
                session_id=session_id,
            ) from e

    async def close(self) -> None:
        """Close the Redis client if owned by this instance."""
        if self._owns_client:
            await self._redis.aclose()
