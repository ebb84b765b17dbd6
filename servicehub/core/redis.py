# servicehub/core/redis.py
"""
Sync Redis client shared by rate limiting and worker-side publishing.

The API process publishes realtime events through the Broadcaster; Celery
workers have no event loop, so they publish with a plain Redis PUBLISH on
the same channel names.
"""

import logging
from typing import Optional

from redis import Redis

from .config import settings

logger = logging.getLogger(__name__)

_redis_client: Optional[Redis] = None


def get_redis_client() -> Redis:
    """Get or create the sync Redis client."""
    global _redis_client

    if _redis_client is None:
        redis_url = settings.redis_url or "redis://localhost:6379"
        _redis_client = Redis.from_url(
            redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        logger.info("[REDIS] Sync Redis client initialized")

    return _redis_client


def close_redis_client() -> None:
    """Close the sync Redis client."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None
        logger.info("[REDIS] Sync Redis client closed")
