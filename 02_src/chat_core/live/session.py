"""LiveSession: one WebSocket connection as a delivery target."""

import asyncio
import uuid

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect

from ..logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_PENDING = 1000


class LiveSession:
    """Session handle with an outbound queue drained by ``pump``.

    ``deliver`` never blocks, and a single writer keeps events in the
    order they were delivered.
    """

    def __init__(self, websocket: WebSocket, max_pending: int = DEFAULT_MAX_PENDING):
        self.id = str(uuid.uuid4())
        self._websocket = websocket
        self._queue: asyncio.Queue[tuple[str, dict]] = asyncio.Queue(maxsize=max_pending)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, event: str, payload: dict) -> bool:
        """Queue an outbound event. Returns False if it was dropped."""
        if self._closed:
            return False
        try:
            self._queue.put_nowait((event, payload))
        except asyncio.QueueFull:
            logger.warning("Session %s outbound queue full, dropping %s", self.id, event)
            return False
        return True

    async def pump(self) -> None:
        """Write queued events to the socket until closed."""
        try:
            while True:
                event, payload = await self._queue.get()
                await self._websocket.send_json({"event": event, "data": payload})
        except asyncio.CancelledError:
            raise
        except (WebSocketDisconnect, RuntimeError) as e:
            # socket went away under us; further deliveries are dropped
            logger.info("Session %s writer stopped: %s", self.id, e)
        finally:
            self._closed = True

    def close(self) -> None:
        self._closed = True
