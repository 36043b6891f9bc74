"""Conversation module."""

from .service import ConversationService, DeleteResult, IConversationService

__all__ = ["ConversationService", "DeleteResult", "IConversationService"]
