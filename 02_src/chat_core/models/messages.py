"""Message-related data models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class MessageKind(str, Enum):
    """Content kind of a message; anything but TEXT carries an attachment."""

    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    FILE = "file"


class MessageStatus(str, Enum):
    """Delivery status. Only ever advances: sent -> delivered -> read."""

    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)


_STATUS_ORDER = [MessageStatus.SENT, MessageStatus.DELIVERED, MessageStatus.READ]


class DeleteType(str, Enum):
    """Scope of a delete request."""

    FOR_ME = "for_me"
    FOR_EVERYONE = "for_everyone"


@dataclass(frozen=True)
class Attachment:
    """Opaque metadata of an uploaded file referenced by a message."""

    kind: MessageKind
    url: str
    size: str | None = None
    duration: str | None = None


@dataclass
class Message:
    """A direct message between two users."""

    id: int
    sender_id: int
    receiver_id: int
    body: str
    created_at: datetime
    status: MessageStatus = MessageStatus.SENT
    attachment: Attachment | None = None
    sender_name: str | None = None  # filled by history queries only

    @property
    def kind(self) -> MessageKind:
        return self.attachment.kind if self.attachment else MessageKind.TEXT

    def participants(self) -> tuple[int, int]:
        return (self.sender_id, self.receiver_id)

    def has_participant(self, user_id: int) -> bool:
        return user_id in (self.sender_id, self.receiver_id)
