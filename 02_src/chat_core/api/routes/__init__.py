"""API routes."""

from .accounts import create_accounts_router
from .attachments import create_attachments_router
from .live import create_live_router
from .messaging import create_messaging_router
from .system import create_system_router

__all__ = [
    "create_accounts_router",
    "create_attachments_router",
    "create_live_router",
    "create_messaging_router",
    "create_system_router",
]
