"""Chat server core."""

from .app import Application, IApplication
from .conversation import ConversationService, DeleteResult, IConversationService
from .delivery import DeliveryBroker, IDeliveryBroker
from .errors import (
    ChatError,
    Forbidden,
    LookupFailure,
    NotFound,
    NotFoundOrForbidden,
    StoreUnavailable,
    ValidationError,
)
from .models import (
    Attachment,
    DeleteType,
    Message,
    MessageKind,
    MessageStatus,
    OutboundEvent,
    User,
)
from .presence import IPresenceRegistry, ISession, PresenceRegistry
from .storage import IMessageStore, IUserDirectory, Storage

__all__ = [
    # Application
    "Application",
    "IApplication",
    # Models
    "Message",
    "Attachment",
    "MessageKind",
    "MessageStatus",
    "DeleteType",
    "User",
    "OutboundEvent",
    # Errors
    "ChatError",
    "ValidationError",
    "NotFoundOrForbidden",
    "Forbidden",
    "NotFound",
    "StoreUnavailable",
    "LookupFailure",
    # Components
    "IMessageStore",
    "IUserDirectory",
    "Storage",
    "ISession",
    "IPresenceRegistry",
    "PresenceRegistry",
    "IDeliveryBroker",
    "DeliveryBroker",
    "IConversationService",
    "ConversationService",
    "DeleteResult",
]
