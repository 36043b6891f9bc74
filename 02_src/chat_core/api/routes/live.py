"""Live channel WebSocket route."""

import asyncio

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ...app import Application
from ...live import LiveSession
from ...logging_config import get_logger

logger = get_logger(__name__)


def create_live_router(app: Application) -> APIRouter:
    """Create live channel router."""
    router = APIRouter(tags=["live"])

    @router.websocket("/ws")
    async def live_channel(websocket: WebSocket) -> None:
        """One live session: frames are handled in arrival order."""
        await websocket.accept()

        session = LiveSession(websocket)
        registry = app.registry
        registry.attach(session)
        writer = asyncio.create_task(session.pump())
        logger.info("Session %s connected", session.id)

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000))

                raw = message.get("text")
                if raw is None:
                    logger.warning("Non-text frame from session %s ignored", session.id)
                    continue
                # awaited inline: a disconnect never interrupts a store write
                await app.dispatcher.dispatch(session, raw)
        except WebSocketDisconnect:
            logger.info("Session %s disconnected", session.id)
        finally:
            registry.leave(session)
            session.close()
            writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass

    return router
