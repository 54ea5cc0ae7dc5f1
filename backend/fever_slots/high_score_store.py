"""High-score persistence: a single integer key."""
import asyncio
import logging
from typing import Protocol

import redis.asyncio as redis
from redis.exceptions import RedisError

from fever_slots.config import settings


logger = logging.getLogger(__name__)


class HighScoreStore(Protocol):
    """
    Protocol for the persistent high-score store.

    Both methods are called from the synchronous state machine and
    must return without waiting on I/O.
    """

    def load(self) -> int:
        """Return the stored high score, 0 if there is none."""
        ...

    def save(self, value: int) -> None:
        """Overwrite the stored high score."""
        ...


def parse_high_score(raw: str | bytes | None) -> int:
    """Parse a stored value; absent or unparseable values count as 0."""
    if raw is None:
        return 0
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring unparseable high score: %r", raw)
        return 0
    return max(value, 0)


class InMemoryHighScoreStore:
    """Process-local store for simulations and tests."""

    def __init__(self, value: int = 0):
        self.value = value
        self.writes = 0

    def load(self) -> int:
        return self.value

    def save(self, value: int) -> None:
        self.value = value
        self.writes += 1


class RedisHighScoreStore:
    """
    Redis client for the persisted high score.

    The key is read once in connect() and cached. save() updates the
    cache and hands the write to a background task on the running loop,
    so a slow Redis never stalls a frame.
    """

    def __init__(self, redis_url: str | None = None, key: str | None = None):
        self._url = redis_url or settings.redis_url
        self.key = key or settings.high_score_key
        self._client: redis.Redis | None = None
        self._cached = 0
        self._writer: asyncio.Task | None = None

    async def connect(self) -> None:
        """Connect to Redis and read the stored value."""
        if self._client is None:
            self._client = redis.from_url(self._url, decode_responses=True)
        self._cached = await self.fetch()

    async def close(self) -> None:
        """Finish pending writes and close the Redis connection."""
        await self.flush()
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> redis.Redis:
        """Get Redis client, raise if not connected."""
        if self._client is None:
            raise RuntimeError("Redis not connected")
        return self._client

    async def fetch(self) -> int:
        """
        Read the key from Redis.

        Unreachable Redis degrades to 0 rather than blocking the cabinet.
        """
        try:
            raw = await self.client.get(self.key)
        except RedisError as e:
            logger.warning("High score read failed, starting from 0: %s", e)
            return 0
        return parse_high_score(raw)

    def load(self) -> int:
        return self._cached

    def save(self, value: int) -> None:
        """Cache the value and schedule the write. Never waits on Redis."""
        self._cached = value
        if self._writer is not None and not self._writer.done():
            return  # the running writer picks up the newest value
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("High score write skipped, no event loop (%d)", value)
            return
        self._writer = loop.create_task(self._write_latest())

    async def _write_latest(self) -> None:
        written = None
        while written != self._cached:
            written = self._cached
            try:
                await self.client.set(self.key, str(written))
            except RedisError as e:
                logger.warning("High score write failed (%d): %s", written, e)
                return

    async def flush(self) -> None:
        """Wait for the background writer, if any."""
        if self._writer is not None:
            await self._writer
            self._writer = None


# Global instance
high_score_store = RedisHighScoreStore()
