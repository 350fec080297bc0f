"""
auth/registry.py -- Redis-backed refresh token registry and access token blacklist.

Two key namespaces share one client:
  rt:{user_id}:{session_id}  -> refresh secret, TTL = refresh lifetime
  blacklist:{token}          -> "1",            TTL >= remaining token lifetime

Every entry is written once with EX and never updated in place, so a refresh
session's TTL is fixed from the moment it was minted.

DEL is the arbiter for concurrent refreshes of the same session: Redis
executes commands one at a time, so exactly one caller sees a deleted count
of 1 and every other caller sees 0.

Any redis error (timeout, refused connection, protocol error) is raised as
InternalError. Nothing here retries.
"""

from __future__ import annotations

import logging

import redis

from auth.errors import InternalError

logger = logging.getLogger("companyhub.auth.registry")


def refresh_key(user_id: str, session_id: str) -> str:
    return f"rt:{user_id}:{session_id}"


def blacklist_key(token: str) -> str:
    return f"blacklist:{token}"


class TokenRegistry:
    """Thin wrapper over a synchronous redis client.

    Usage:
        registry = TokenRegistry.from_url("redis://localhost:6379/0", timeout=5.0)
        registry.store_refresh_token("u1", "s1", "secret", ttl_seconds=604800)
        registry.get_refresh_token("u1", "s1")   # "secret"
        registry.close()
    """

    def __init__(self, client: redis.Redis) -> None:
        self.client = client

    @classmethod
    def from_url(cls, redis_url: str, *, timeout: float = 5.0) -> "TokenRegistry":
        client = redis.Redis.from_url(
            redis_url,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
        return cls(client)

    # ------------------------------------------------------------------
    # Refresh sessions
    # ------------------------------------------------------------------

    def store_refresh_token(self, user_id: str, session_id: str, secret: str, ttl_seconds: int) -> None:
        try:
            self.client.set(refresh_key(user_id, session_id), secret, ex=ttl_seconds)
        except redis.RedisError as exc:
            raise InternalError("Token registry unavailable.") from exc

    def get_refresh_token(self, user_id: str, session_id: str) -> str | None:
        try:
            return self.client.get(refresh_key(user_id, session_id))
        except redis.RedisError as exc:
            raise InternalError("Token registry unavailable.") from exc

    def delete_refresh_token(self, user_id: str, session_id: str) -> bool:
        """Delete a refresh session. Returns True only if this call removed it."""
        try:
            return bool(self.client.delete(refresh_key(user_id, session_id)))
        except redis.RedisError as exc:
            raise InternalError("Token registry unavailable.") from exc

    # ------------------------------------------------------------------
    # Access token blacklist
    # ------------------------------------------------------------------

    def add_to_blacklist(self, token: str, ttl_seconds: int) -> None:
        # Redis rejects EX <= 0
        try:
            self.client.set(blacklist_key(token), "1", ex=max(1, int(ttl_seconds)))
        except redis.RedisError as exc:
            raise InternalError("Token registry unavailable.") from exc

    def is_blacklisted(self, token: str) -> bool:
        try:
            return self.client.get(blacklist_key(token)) == "1"
        except redis.RedisError as exc:
            raise InternalError("Token registry unavailable.") from exc

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if Redis answers. Used by startup and the health check."""
        try:
            return bool(self.client.ping())
        except redis.RedisError:
            logger.warning("Token registry ping failed")
            return False

    def close(self) -> None:
        self.client.close()
