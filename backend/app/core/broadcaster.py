"""Redis pub/sub broadcaster for live fleet updates."""

import asyncio
import logging

import orjson
import redis.asyncio as aioredis

from app.config import settings

logger = logging.getLogger(__name__)

CHANNEL = "transit:buses"
STATE_KEY = "transit:fleet"


class Broadcaster:
    """Publishes fleet snapshots to Redis (if configured) and WebSocket subscribers."""

    def __init__(self, redis_url: str | None = None) -> None:
        self._redis_url = settings.redis_url if redis_url is None else redis_url
        self._redis: aioredis.Redis | None = None
        self._subscribers: set[asyncio.Queue] = set()
        self._last_payload: bytes | None = None

    async def connect(self) -> None:
        if self._redis_url:
            self._redis = aioredis.from_url(self._redis_url, decode_responses=False)

    async def close(self) -> None:
        if self._redis:
            await self._redis.aclose()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def publish(self, vehicles_data: list[dict], tick: int) -> None:
        """Publish a fleet update to Redis and fan out to WebSocket subscribers."""
        payload = orjson.dumps({"type": "update", "tick": tick, "vehicles": vehicles_data})
        self._last_payload = payload

        if self._redis:
            try:
                # Store current state for new connections
                await self._redis.set(STATE_KEY, payload)
                await self._redis.publish(CHANNEL, payload)
            except Exception:
                logger.exception("Failed to publish to Redis")

        # Fan out directly to WebSocket subscribers; slow consumers are dropped
        dead = set()
        for q in self._subscribers:
            try:
                q.put_nowait(payload)
            except asyncio.QueueFull:
                dead.add(q)
        if dead:
            logger.warning("Dropping %d slow WebSocket subscribers", len(dead))
        self._subscribers -= dead

    async def get_current_state(self) -> bytes | None:
        """Latest fleet payload, from Redis when available."""
        if self._redis:
            try:
                data = await self._redis.get(STATE_KEY)
                if data:
                    return data
            except Exception:
                logger.exception("Failed to get state from Redis")
        return self._last_payload

    def subscribe(self) -> asyncio.Queue:
        """Create a new subscriber queue for WebSocket fan-out."""
        q: asyncio.Queue = asyncio.Queue(maxsize=10)
        self._subscribers.add(q)
        return q

    def unsubscribe(self, q: asyncio.Queue) -> None:
        self._subscribers.discard(q)
