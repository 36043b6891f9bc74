"""System API routes."""

from datetime import datetime, timezone

from fastapi import APIRouter
from pydantic import BaseModel

ENDPOINTS = [
    "POST /api/upload - File upload",
    "POST /api/register - User registration",
    "POST /api/login - User login",
    "GET /api/users - Get all users",
    "GET /api/messages/{user_a}/{user_b} - Get messages",
    "DELETE /api/messages/delete-for-me - Delete message for me",
    "DELETE /api/messages/delete-for-everyone - Delete message for everyone",
    "WS /ws - Live channel",
]


class HealthResponse(BaseModel):
    """Response model for health check."""

    message: str
    timestamp: datetime
    endpoints: list[str]


def create_system_router() -> APIRouter:
    """Create system router."""
    router = APIRouter(tags=["system"])

    @router.get("/", response_model=HealthResponse)
    async def health() -> dict:
        """Health check."""
        return {
            "message": "Chat server is running",
            "timestamp": datetime.now(timezone.utc),
            "endpoints": ENDPOINTS,
        }

    return router
