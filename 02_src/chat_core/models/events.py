"""Live channel events.

Inbound events form a closed set of pydantic models validated at the
socket boundary; outbound events are plain dicts built by the helpers
below so the wire shape lives in one place.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError
from .messages import Attachment, DeleteType, Message, MessageKind, MessageStatus


class OutboundEvent(str, Enum):
    """Event names emitted to live sessions."""

    JOINED = "joined"
    NEW_MESSAGE = "new_message"
    NEW_NOTIFICATION = "new_notification"
    MESSAGE_DELETED = "message_deleted"
    MESSAGE_ERROR = "message_error"
    DELETE_ERROR = "delete_error"
    USER_TYPING = "user_typing"
    USER_ONLINE = "user_online"
    MESSAGE_STATUS_UPDATE = "message_status_update"


class Frame(BaseModel):
    """Envelope of every WebSocket text frame."""

    event: str
    data: Any = None


class InboundEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class JoinEvent(InboundEvent):
    user_id: int = Field(alias="userId", gt=0)


class SendMessageEvent(InboundEvent):
    sender_id: int = Field(alias="senderId", gt=0)
    receiver_id: int = Field(alias="receiverId", gt=0)
    body: str = Field(validation_alias=AliasChoices("body", "messageText"))
    kind: MessageKind = Field(
        default=MessageKind.TEXT,
        validation_alias=AliasChoices("type", "messageType", "kind"),
    )
    media_url: str | None = Field(default=None, alias="mediaUrl")
    file_size: str | None = Field(default=None, alias="fileSize")
    duration: str | None = None

    @field_validator("file_size", "duration", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> Any:
        # clients send sizes and durations as numbers or preformatted text
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("body")
    @classmethod
    def _body_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @model_validator(mode="after")
    def _check_shape(self) -> "SendMessageEvent":
        if self.sender_id == self.receiver_id:
            raise ValueError("sender and receiver must differ")
        if self.kind is not MessageKind.TEXT and not self.media_url:
            raise ValueError(f"mediaUrl is required for {self.kind.value} messages")
        return self

    def attachment(self) -> Attachment | None:
        if self.kind is MessageKind.TEXT:
            return None
        return Attachment(
            kind=self.kind,
            url=self.media_url or "",
            size=self.file_size,
            duration=self.duration,
        )


class DeleteMessageEvent(InboundEvent):
    message_id: int = Field(alias="messageId", gt=0)
    user_id: int = Field(alias="userId", gt=0)
    delete_type: DeleteType = Field(alias="deleteType")


class TypingEvent(InboundEvent):
    user_id: int = Field(alias="userId", gt=0)
    is_typing: bool = Field(alias="isTyping")
    peer_id: int = Field(alias="chatWithUserId", gt=0)


class OnlineEvent(InboundEvent):
    user_id: int = Field(alias="userId", gt=0)
    is_online: bool = Field(alias="isOnline")


class StatusUpdateEvent(InboundEvent):
    message_id: int = Field(alias="messageId", gt=0)
    status: MessageStatus
    user_id: int = Field(alias="userId", gt=0)


INBOUND_EVENTS: dict[str, type[InboundEvent]] = {
    "join": JoinEvent,
    "join_user": JoinEvent,
    "send_message": SendMessageEvent,
    "delete_message": DeleteMessageEvent,
    "user_typing": TypingEvent,
    "user_online": OnlineEvent,
    "message_status_update": StatusUpdateEvent,
}


def describe_validation_error(exc: PydanticValidationError) -> str:
    """Collapse a pydantic error into one client-facing sentence."""
    errors = exc.errors()
    missing = [
        ".".join(str(part) for part in err["loc"])
        for err in errors
        if err["type"] == "missing"
    ]
    if missing:
        return "Missing required fields: " + ", ".join(missing)

    first = errors[0]
    loc = ".".join(str(part) for part in first["loc"])
    msg = first["msg"].removeprefix("Value error, ")
    return f"{loc}: {msg}" if loc else msg


def parse_event(name: str, data: Any) -> InboundEvent:
    """Validate the data of an inbound event.

    Raises:
        ValidationError: unknown event name or invalid data.
    """
    model = INBOUND_EVENTS.get(name)
    if model is None:
        raise ValidationError(f"Unknown event: {name}")

    # join_user historically carries a bare user id
    if model is JoinEvent and not isinstance(data, dict):
        data = {"userId": data}

    try:
        return model.model_validate(data if data is not None else {})
    except PydanticValidationError as e:
        raise ValidationError(describe_validation_error(e)) from e


# Outbound payloads


def message_payload(message: Message, sender_name: str) -> dict:
    payload = {
        "id": message.id,
        "senderId": message.sender_id,
        "receiverId": message.receiver_id,
        "messageText": message.body,
        "senderName": sender_name,
        "timestamp": message.created_at.isoformat(),
        "messageType": message.kind.value,
        "status": message.status.value,
    }
    if message.attachment:
        payload["mediaUrl"] = message.attachment.url
        payload["fileSize"] = message.attachment.size
        payload["duration"] = message.attachment.duration
    return payload


def notification_payload(message: Message, sender_name: str) -> dict:
    return {
        "senderId": message.sender_id,
        "senderName": sender_name,
        "messageText": message.body,
        "messageId": message.id,
        "timestamp": message.created_at.isoformat(),
    }


def deleted_payload(message_id: int) -> dict:
    return {"messageId": message_id}


def error_payload(reason: str) -> dict:
    return {"error": reason}


def typing_payload(user_id: int, is_typing: bool, peer_id: int) -> dict:
    return {"userId": user_id, "isTyping": is_typing, "chatWithUserId": peer_id}


def online_payload(user_id: int, is_online: bool, last_seen: datetime) -> dict:
    return {"userId": user_id, "isOnline": is_online, "lastSeen": last_seen.isoformat()}


def status_payload(message_id: int, status: MessageStatus) -> dict:
    return {"messageId": message_id, "status": status.value}
