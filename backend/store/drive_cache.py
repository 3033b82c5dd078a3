"""
Redis Drive-Time Cache

Caches travel-time estimates between two addresses so repeated
"refresh drive time" clicks do not hit the Distance Matrix API.

Key pattern:
  - SET drive:{origin_hash}:{destination_hash} → minutes
  - EXPIRE TTL = DRIVE_CACHE_TTL (default 24h)
"""

import os
import hashlib
import logging
from typing import Optional

import redis.asyncio as aioredis

logger = logging.getLogger("drive_cache")

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379")
TTL_SECONDS = int(os.getenv("DRIVE_CACHE_TTL", "86400"))  # 24 hours


def address_hash(address: str) -> str:
    """Deterministic short hash of an address for cache keys."""
    raw = " ".join(address.lower().split())
    return hashlib.md5(raw.encode()).hexdigest()[:12]


def drive_key(origin: str, destination: str) -> str:
    return f"drive:{address_hash(origin)}:{address_hash(destination)}"


class DriveTimeCache:
    """Async Redis cache for origin → destination drive minutes."""

    def __init__(self):
        self._redis: Optional[aioredis.Redis] = None

    async def connect(self):
        """Initialize the Redis connection pool."""
        client = aioredis.from_url(
            REDIS_URL, encoding="utf-8", decode_responses=True
        )
        try:
            await client.ping()
        except Exception:
            await client.aclose()
            raise
        self._redis = client
        logger.info(f"[CACHE] Connected to {REDIS_URL}")

    async def disconnect(self):
        """Close the Redis connection."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    @property
    def connected(self) -> bool:
        return self._redis is not None

    @property
    def client(self) -> aioredis.Redis:
        if self._redis is None:
            raise RuntimeError("Redis not connected. Call connect() first.")
        return self._redis

    async def get_minutes(self, origin: str, destination: str) -> Optional[int]:
        """GET drive:{origin}:{destination}"""
        data = await self.client.get(drive_key(origin, destination))
        return int(data) if data is not None else None

    async def save_minutes(self, origin: str, destination: str, minutes: int) -> None:
        """SET drive:{origin}:{destination} with TTL"""
        await self.client.set(drive_key(origin, destination), str(minutes), ex=TTL_SECONDS)

    async def count_cached(self, limit: int = 100) -> int:
        count = 0
        async for _key in self.client.scan_iter(match="drive:*"):
            count += 1
            if count >= limit:
                break
        return count


# ─── Singleton Instance ──────────────────────────────────────────────
drive_cache = DriveTimeCache()
