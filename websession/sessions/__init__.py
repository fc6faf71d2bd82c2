"""
Sessions Package - persistence and lifecycle of sessions.

This package provides the store contract with its memory and Redis
backends, and the service that creates, loads, mutates and invalidates
sessions on top of a store.
"""

from websession.sessions.memory_store import MemorySessionStore
from websession.sessions.redis_store import RedisSessionStore
from websession.sessions.service import (
    AttributeKey,
    SessionService,
    pairs_to_key_and_values,
    parse_attributes,
)
from websession.sessions.store import SessionStore

__all__ = [
    "SessionStore",
    "MemorySessionStore",
    "RedisSessionStore",
    "SessionService",
    "AttributeKey",
    "parse_attributes",
    "pairs_to_key_and_values",
]
