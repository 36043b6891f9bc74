"""DeliveryBroker: in-memory fan-out to live sessions."""

from collections.abc import Hashable
from typing import Protocol

from ..logging_config import get_logger
from ..presence import IPresenceRegistry, ISession

logger = get_logger(__name__)


class IDeliveryBroker(Protocol):
    """Fire-and-forget pub/sub over the presence registry."""

    async def publish(self, user_id: Hashable, event: str, payload: dict) -> int:
        """Deliver an event to every live session of a user."""
        ...

    async def publish_all(self, event: str, payload: dict) -> int:
        """Deliver an event to every connected session."""
        ...


class DeliveryBroker:
    """Fans events out to the sessions currently registered for a user.

    At most once per session, no retry and no queueing for absent users:
    durability belongs to the message store. Sessions enqueue without
    blocking, so events published in sequence reach a session in order.
    """

    def __init__(self, registry: IPresenceRegistry):
        self._registry = registry

    async def publish(self, user_id: Hashable, event: str, payload: dict) -> int:
        """Deliver an event to every live session of a user.

        Returns the number of sessions that accepted the event.
        """
        sessions = self._registry.sessions_for(user_id)
        if not sessions:
            logger.debug("No live session for %s, dropping %s", user_id, event)
            return 0
        return self._fan_out(sessions, event, payload)

    async def publish_all(self, event: str, payload: dict) -> int:
        """Deliver an event to every connected session."""
        return self._fan_out(self._registry.all_sessions(), event, payload)

    def _fan_out(self, sessions: frozenset[ISession], event: str, payload: dict) -> int:
        delivered = 0
        for session in sessions:
            # one broken session must not starve the others
            try:
                if session.deliver(event, payload):
                    delivered += 1
            except Exception as e:
                logger.error("Error delivering %s to session %s: %s", event, session.id, e)
        return delivered
