"""ConversationService: persists chat events and fans them out."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

from ..delivery import IDeliveryBroker
from ..errors import ChatError, LookupFailure, StoreUnavailable
from ..logging_config import get_logger
from ..models import (
    Attachment,
    DeleteMessageEvent,
    DeleteType,
    Message,
    MessageStatus,
    OutboundEvent,
    SendMessageEvent,
)
from ..models.events import (
    deleted_payload,
    error_payload,
    message_payload,
    notification_payload,
    online_payload,
    status_payload,
    typing_payload,
)
from ..presence import ISession
from ..storage import IMessageStore, IUserDirectory

logger = get_logger(__name__)

UNKNOWN_SENDER_NAME = "Unknown"


@dataclass
class DeleteResult:
    """Outcome of a delete request; error is None on success."""

    message_id: int
    error: ChatError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class IConversationService(Protocol):
    """Handles inbound chat events for one originating session at a time."""

    async def send(
        self,
        sender_id: int,
        receiver_id: int,
        body: str,
        attachment: Attachment | None = None,
        origin: ISession | None = None,
    ) -> Message | None:
        """Persist a message, then deliver it to both participants."""
        ...

    async def send_event(
        self, event: SendMessageEvent, origin: ISession | None = None
    ) -> Message | None:
        """Send a validated send_message event."""
        ...

    async def delete(
        self, event: DeleteMessageEvent, origin: ISession | None = None
    ) -> DeleteResult:
        """Dispatch a delete_message event by its delete type."""
        ...

    async def delete_for_me(
        self, message_id: int, user_id: int, origin: ISession | None = None
    ) -> DeleteResult:
        """Hide a message from the requesting user only."""
        ...

    async def delete_for_everyone(
        self, message_id: int, user_id: int, origin: ISession | None = None
    ) -> DeleteResult:
        """Remove a message for both participants (sender only)."""
        ...

    async def typing(self, user_id: int, is_typing: bool, peer_id: int) -> None:
        """Relay a typing indicator to the peer."""
        ...

    async def presence(self, user_id: int, is_online: bool) -> None:
        """Broadcast an online/offline change."""
        ...

    async def status_update(
        self, message_id: int, status: MessageStatus, owner_user_id: int
    ) -> None:
        """Best-effort status advance, then notify the owner."""
        ...

    async def fetch_history(self, user_a: int, user_b: int) -> list[Message]:
        """Conversation between two users as seen by user_a."""
        ...


class ConversationService:
    """Orchestrates the message store and the delivery broker.

    The store call always completes before anything is published, so a
    session never sees an event for a message that is not persisted.
    """

    def __init__(
        self,
        store: IMessageStore,
        broker: IDeliveryBroker,
        users: IUserDirectory,
    ):
        self._store = store
        self._broker = broker
        self._users = users

    async def send(
        self,
        sender_id: int,
        receiver_id: int,
        body: str,
        attachment: Attachment | None = None,
        origin: ISession | None = None,
    ) -> Message | None:
        """Persist a message, then deliver it to both participants.

        Returns the stored message, or None if it was rejected; the
        originating session then receives message_error.
        """
        try:
            message = await self._store.append(sender_id, receiver_id, body, attachment)
        except StoreUnavailable as e:
            logger.error("Message save error: %s", e)
            self._reply(origin, OutboundEvent.MESSAGE_ERROR, "Failed to save message")
            return None
        except ChatError as e:
            logger.warning("Message rejected: %s", e.reason)
            self._reply(origin, OutboundEvent.MESSAGE_ERROR, e.reason)
            return None
        except Exception as e:
            logger.error("Message save error: %s", e, exc_info=True)
            self._reply(origin, OutboundEvent.MESSAGE_ERROR, "Failed to save message")
            return None

        sender_name = await self._resolve_name(sender_id)
        payload = message_payload(message, sender_name)

        # the sender's copy is its durable-write acknowledgement
        await self._broker.publish(receiver_id, OutboundEvent.NEW_MESSAGE, payload)
        await self._broker.publish(sender_id, OutboundEvent.NEW_MESSAGE, payload)

        try:
            await self._broker.publish(
                receiver_id,
                OutboundEvent.NEW_NOTIFICATION,
                notification_payload(message, sender_name),
            )
        except Exception as e:
            logger.warning("Notification for message %s not delivered: %s", message.id, e)

        logger.info(
            "Message %s delivered",
            message.id,
            extra={"context": {"sender_id": sender_id, "receiver_id": receiver_id}},
        )
        return message

    async def send_event(
        self, event: SendMessageEvent, origin: ISession | None = None
    ) -> Message | None:
        """Send a validated send_message event."""
        return await self.send(
            event.sender_id,
            event.receiver_id,
            event.body,
            event.attachment(),
            origin=origin,
        )

    async def delete_for_me(
        self, message_id: int, user_id: int, origin: ISession | None = None
    ) -> DeleteResult:
        """Hide a message from the requesting user only.

        The retraction goes to the requester's own channel; the other
        participant keeps seeing the message.
        """
        try:
            await self._store.soft_delete(message_id, user_id)
        except ChatError as e:
            return self._delete_failed(message_id, e, origin)

        await self._broker.publish(
            user_id, OutboundEvent.MESSAGE_DELETED, deleted_payload(message_id)
        )
        logger.info("Message %s deleted for user %s", message_id, user_id)
        return DeleteResult(message_id)

    async def delete_for_everyone(
        self, message_id: int, user_id: int, origin: ISession | None = None
    ) -> DeleteResult:
        """Remove a message for both participants (sender only)."""
        try:
            snapshot = await self._store.hard_delete(message_id, user_id)
        except ChatError as e:
            return self._delete_failed(message_id, e, origin)

        # targets come from the stored row, not from the request
        for participant in snapshot.participants():
            await self._broker.publish(
                participant, OutboundEvent.MESSAGE_DELETED, deleted_payload(message_id)
            )
        logger.info("Message %s deleted for everyone by %s", message_id, user_id)
        return DeleteResult(message_id)

    async def delete(
        self, event: DeleteMessageEvent, origin: ISession | None = None
    ) -> DeleteResult:
        """Dispatch a delete_message event by its delete type."""
        if event.delete_type is DeleteType.FOR_EVERYONE:
            return await self.delete_for_everyone(event.message_id, event.user_id, origin)
        return await self.delete_for_me(event.message_id, event.user_id, origin)

    async def typing(self, user_id: int, is_typing: bool, peer_id: int) -> None:
        """Relay a typing indicator to the peer. Nothing is stored."""
        await self._broker.publish(
            peer_id,
            OutboundEvent.USER_TYPING,
            typing_payload(user_id, is_typing, peer_id),
        )

    async def presence(self, user_id: int, is_online: bool) -> None:
        """Broadcast an online/offline change to every connected session.

        Not scoped to contacts: every session learns about every user.
        """
        await self._broker.publish_all(
            OutboundEvent.USER_ONLINE,
            online_payload(user_id, is_online, datetime.now(timezone.utc)),
        )

    async def status_update(
        self, message_id: int, status: MessageStatus, owner_user_id: int
    ) -> None:
        """Best-effort status advance, then notify the owner.

        Store failures are logged and never abort the broadcast. When the
        store refuses a regression, the stored status is relayed instead,
        so live sessions never see a status go backwards.

        The owner is not checked against the message participants; any
        session may relay a status to any user.
        """
        try:
            if not await self._store.update_status(message_id, status):
                stored = await self._store.get_message(message_id)
                if stored is not None:
                    status = stored.status
        except Exception as e:
            logger.warning("Status update for message %s failed: %s", message_id, e)

        await self._broker.publish(
            owner_user_id,
            OutboundEvent.MESSAGE_STATUS_UPDATE,
            status_payload(message_id, status),
        )

    async def fetch_history(self, user_a: int, user_b: int) -> list[Message]:
        """Conversation between two users as seen by user_a."""
        return await self._store.history(user_a, user_b)

    async def _resolve_name(self, user_id: int) -> str:
        try:
            user = await self._users.get_user(user_id)
            if user is None:
                raise LookupFailure(f"User {user_id} not found")
            return user.name
        except Exception as e:
            logger.warning("Sender name lookup failed for %s: %s", user_id, e)
            return UNKNOWN_SENDER_NAME

    def _delete_failed(
        self, message_id: int, error: ChatError, origin: ISession | None
    ) -> DeleteResult:
        if isinstance(error, StoreUnavailable):
            logger.error("Delete of message %s failed: %s", message_id, error)
            reason = "Failed to delete message"
        else:
            logger.info("Delete of message %s refused: %s", message_id, error.reason)
            reason = error.reason
        self._reply(origin, OutboundEvent.DELETE_ERROR, reason)
        return DeleteResult(message_id, error=error)

    def _reply(self, origin: ISession | None, event: OutboundEvent, reason: str) -> None:
        if origin is None:
            return
        try:
            origin.deliver(event, error_payload(reason))
        except Exception as e:
            logger.error("Error replying %s to session %s: %s", event.value, origin.id, e)
