"""
Deduplication store (Redis).

A claim is a single `SET key 1 NX EX ttl`: it succeeds for the first caller
and fails for everyone else until the key expires. Redis executes the command
atomically, so concurrent deliveries of the same event cannot both win.
"""

from __future__ import annotations

import logging
from functools import lru_cache

import redis

from config.settings import load_settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_redis() -> redis.Redis:
    """Return the process-wide Redis client."""

    return redis.Redis.from_url(load_settings().redis_url)


class RedisDedupStore:
    def __init__(self, client: redis.Redis) -> None:
        self._redis = client

    def claim(self, key: str, ttl_seconds: int) -> bool:
        """
        Claim `key` for `ttl_seconds`.

        Returns:
            True if this caller now owns the key, False if it was already claimed
        """

        claimed = self._redis.set(key, 1, ex=ttl_seconds, nx=True)
        if not claimed:
            logger.debug("Dedup key already claimed", extra={"dedup_key": key})
        return bool(claimed)


__all__ = ["RedisDedupStore", "get_redis"]
