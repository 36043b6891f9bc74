"""Core data models for the chat server."""

from .messages import (
    Attachment,
    DeleteType,
    Message,
    MessageKind,
    MessageStatus,
)
from .users import User
from .events import (
    DeleteMessageEvent,
    Frame,
    InboundEvent,
    JoinEvent,
    OnlineEvent,
    OutboundEvent,
    SendMessageEvent,
    StatusUpdateEvent,
    TypingEvent,
    parse_event,
)

__all__ = [
    # Messages
    "Message",
    "Attachment",
    "MessageKind",
    "MessageStatus",
    "DeleteType",
    # Users
    "User",
    # Events
    "Frame",
    "InboundEvent",
    "JoinEvent",
    "SendMessageEvent",
    "DeleteMessageEvent",
    "TypingEvent",
    "OnlineEvent",
    "StatusUpdateEvent",
    "OutboundEvent",
    "parse_event",
]
