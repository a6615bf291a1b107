"""
Session Store Module

Redis-backed, server-side session storage. Each visitor owns an opaque
session identifier (carried in a cookie by the HTTP layer); every value the
visitor's session holds is stored under its own Redis key.

Data Format (Redis):
    Key: "session:{session_id}:{name}"
    Value: any string payload (the cart stores JSON under name "Cart")

TTL Management:
    - Values expire after SESSION_TTL seconds of inactivity (30 minutes)
    - The TTL is reset every time a value is written
"""

import logging
from typing import Optional

import redis

from shared.exceptions import DeserializationFailure, PersistenceFailure

logger = logging.getLogger(__name__)


class RedisSessionStore:
    """Key-value session storage in Redis, scoped by session identifier."""

    KEY_PREFIX = "session:"
    SESSION_TTL = 1800  # 30 minutes idle timeout

    def __init__(self, redis_client: redis.Redis, ttl: int = SESSION_TTL):
        self.redis = redis_client
        self.ttl = ttl

    def _key(self, session_id: str, name: str) -> str:
        return f"{self.KEY_PREFIX}{session_id}:{name}"

    def get(self, session_id: str, name: str) -> Optional[str]:
        """Return the stored value, or None if the session holds nothing under name."""
        try:
            value = self.redis.get(self._key(session_id, name))
            if isinstance(value, bytes):
                value = value.decode("utf-8")
        except redis.RedisError as e:
            logger.error(f"Session store read failed for {name}: {e}", extra={"session_id": session_id})
            raise PersistenceFailure(f"Session store unavailable: {e}") from e
        except UnicodeDecodeError as e:
            # With decode_responses=True the client itself raises this
            logger.error(f"Session value {name} is not valid UTF-8", extra={"session_id": session_id})
            raise DeserializationFailure(f"Stored {name} is not valid UTF-8", key=name) from e

        return value

    def set(self, session_id: str, name: str, value: str) -> None:
        """Store value under name, overwriting any previous value."""
        try:
            self.redis.set(self._key(session_id, name), value, ex=self.ttl)
        except redis.RedisError as e:
            logger.error(f"Session store write failed for {name}: {e}", extra={"session_id": session_id})
            raise PersistenceFailure(f"Session store unavailable: {e}") from e

    def delete(self, session_id: str, name: str) -> None:
        """Drop the value stored under name."""
        try:
            self.redis.delete(self._key(session_id, name))
        except redis.RedisError as e:
            raise PersistenceFailure(f"Session store unavailable: {e}") from e


class VisitorSession:
    """A session store bound to one visitor's session identifier."""

    def __init__(self, store: RedisSessionStore, session_id: str):
        self.store = store
        self.session_id = session_id

    def get(self, name: str) -> Optional[str]:
        return self.store.get(self.session_id, name)

    def set(self, name: str, value: str) -> None:
        self.store.set(self.session_id, name, value)

    def delete(self, name: str) -> None:
        self.store.delete(self.session_id, name)
