"""LiveDispatcher: routes inbound WebSocket frames to the services."""

from pydantic import ValidationError as PydanticValidationError

from ..conversation import IConversationService
from ..errors import ValidationError
from ..logging_config import get_logger
from ..models import (
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
from ..models.events import error_payload
from ..presence import IPresenceRegistry, ISession

logger = get_logger(__name__)

# Validation failures of these events are reported back to the session
_ERROR_EVENTS = {
    "send_message": OutboundEvent.MESSAGE_ERROR,
    "delete_message": OutboundEvent.DELETE_ERROR,
}


class LiveDispatcher:
    """Parses frames and runs one handler per frame to completion.

    Nothing raised by a handler escapes ``dispatch``: the receive loop of
    the session, and every other session, keeps running.
    """

    def __init__(self, registry: IPresenceRegistry, conversation: IConversationService):
        self._registry = registry
        self._conversation = conversation

    async def dispatch(self, session: ISession, raw: str) -> None:
        """Handle one inbound text frame."""
        try:
            frame = Frame.model_validate_json(raw)
        except PydanticValidationError as e:
            logger.warning("Malformed frame from session %s: %s", session.id, e.errors()[0]["msg"])
            return

        try:
            event = parse_event(frame.event, frame.data)
        except ValidationError as e:
            error_event = _ERROR_EVENTS.get(frame.event)
            logger.warning("Invalid %s from session %s: %s", frame.event, session.id, e.reason)
            if error_event is not None:
                session.deliver(error_event, error_payload(e.reason))
            return

        try:
            await self.handle(session, event)
        except Exception as e:
            logger.error(
                "Error handling %s from session %s: %s",
                frame.event,
                session.id,
                e,
                exc_info=True,
            )

    async def handle(self, session: ISession, event: InboundEvent) -> None:
        """Run the handler for a validated event."""
        if isinstance(event, JoinEvent):
            self._registry.join(event.user_id, session)
            session.deliver(OutboundEvent.JOINED, {"userId": event.user_id})
        elif isinstance(event, SendMessageEvent):
            await self._conversation.send_event(event, origin=session)
        elif isinstance(event, DeleteMessageEvent):
            await self._conversation.delete(event, origin=session)
        elif isinstance(event, TypingEvent):
            await self._conversation.typing(event.user_id, event.is_typing, event.peer_id)
        elif isinstance(event, OnlineEvent):
            await self._conversation.presence(event.user_id, event.is_online)
        elif isinstance(event, StatusUpdateEvent):
            await self._conversation.status_update(event.message_id, event.status, event.user_id)
        else:
            logger.warning("No handler for %s", type(event).__name__)
