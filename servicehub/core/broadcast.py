# servicehub/core/broadcast.py
"""
Shared broadcast manager for realtime rooms.

One Broadcaster instance per worker process. The Broadcaster keeps a single
backend connection (Redis in deployed environments, in-process memory in
tests) and fans each channel out to local subscribers via asyncio queues.
SSE streams and WebSocket connections both subscribe through it.
"""
import logging
from typing import Optional

from broadcaster import Broadcast

from .config import settings

logger = logging.getLogger(__name__)

_broadcast: Optional[Broadcast] = None


def get_broadcast() -> Broadcast:
    """
    Get the shared broadcast instance.

    Raises:
        RuntimeError: If broadcast is not initialized (call connect_broadcast first)
    """
    if _broadcast is None:
        raise RuntimeError("Broadcast not initialized. Call connect_broadcast() during startup.")
    return _broadcast


async def connect_broadcast(url: Optional[str] = None) -> None:
    """
    Connect the shared Broadcaster.

    Call during application startup (in lifespan manager).
    """
    global _broadcast

    backend_url = url or settings.effective_broadcast_url
    _broadcast = Broadcast(backend_url)
    await _broadcast.connect()
    logger.info("[BROADCAST] Connected realtime backend: %s", backend_url.split("@")[-1])


async def disconnect_broadcast() -> None:
    """
    Disconnect the shared Broadcaster.

    Call during application shutdown.
    """
    global _broadcast

    if _broadcast is not None:
        await _broadcast.disconnect()
        _broadcast = None
        logger.info("[BROADCAST] Disconnected realtime backend")
