"""Messaging API routes: history and deletes."""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from ...app import Application
from ...conversation.service import UNKNOWN_SENDER_NAME
from ...errors import ChatError
from ...logging_config import get_logger
from ...models.events import message_payload
from ..errors import http_error

logger = get_logger(__name__)


class DeleteRequest(BaseModel):
    """Request model for both delete endpoints."""

    model_config = ConfigDict(populate_by_name=True)

    message_id: int = Field(alias="messageId", gt=0)
    user_id: int = Field(alias="userId", gt=0)


class DeleteResponse(BaseModel):
    """Response model for delete endpoints."""

    success: bool
    message: str


class HistoryResponse(BaseModel):
    """Response model for conversation history."""

    success: bool
    messages: list[dict]


def create_messaging_router(app: Application) -> APIRouter:
    """Create messaging router."""
    router = APIRouter(prefix="/api/messages", tags=["messaging"])

    @router.get("/{user_a}/{user_b}", response_model=HistoryResponse)
    async def get_history(user_a: int, user_b: int) -> dict:
        """Messages between two users, as seen by user_a."""
        try:
            messages = await app.conversation.fetch_history(user_a, user_b)
        except ChatError as e:
            logger.error("Get messages error: %s", e)
            raise http_error(e)
        except Exception as e:
            logger.error("Get messages error: %s", e, exc_info=True)
            raise HTTPException(status_code=500, detail="Failed to fetch messages")

        return {
            "success": True,
            "messages": [
                message_payload(m, m.sender_name or UNKNOWN_SENDER_NAME) for m in messages
            ],
        }

    @router.delete("/delete-for-me", response_model=DeleteResponse)
    async def delete_for_me(request: DeleteRequest) -> dict:
        """Hide a message for the requesting user."""
        result = await app.conversation.delete_for_me(request.message_id, request.user_id)
        if not result.ok:
            raise http_error(result.error)
        return {"success": True, "message": "Message deleted for you"}

    @router.delete("/delete-for-everyone", response_model=DeleteResponse)
    async def delete_for_everyone(request: DeleteRequest) -> dict:
        """Remove a message for both participants (sender only)."""
        result = await app.conversation.delete_for_everyone(
            request.message_id, request.user_id
        )
        if not result.ok:
            raise http_error(result.error)
        return {"success": True, "message": "Message deleted for everyone"}

    return router
