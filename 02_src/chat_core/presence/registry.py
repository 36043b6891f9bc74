"""Presence registry: which live sessions belong to which user."""

import threading
from collections.abc import Hashable
from typing import Protocol

from ..logging_config import get_logger

logger = get_logger(__name__)


class ISession(Protocol):
    """A live session handle that can receive outbound events."""

    id: str

    def deliver(self, event: str, payload: dict) -> bool:
        """Queue an event for the session. Must not block."""
        ...


class IPresenceRegistry(Protocol):
    """Maps user identities to their currently connected sessions."""

    def attach(self, session: ISession) -> None:
        """Register a connected session that has not joined a channel yet."""
        ...

    def join(self, user_id: Hashable, session: ISession) -> None:
        """Add a session to a user's channel."""
        ...

    def leave(self, session: ISession) -> None:
        """Remove a session from every channel."""
        ...

    def sessions_for(self, user_id: Hashable) -> frozenset[ISession]:
        """Snapshot of a user's live sessions (empty if offline)."""
        ...

    def all_sessions(self) -> frozenset[ISession]:
        """Snapshot of every connected session."""
        ...


class PresenceRegistry:
    """In-memory presence registry.

    Safe for concurrent join/leave/lookup; readers get immutable snapshots
    so a broadcast never iterates a set that is being mutated.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._channels: dict[Hashable, set[ISession]] = {}
        self._memberships: dict[ISession, set[Hashable]] = {}

    def attach(self, session: ISession) -> None:
        """Register a connected session that has not joined a channel yet."""
        with self._lock:
            self._memberships.setdefault(session, set())

    def join(self, user_id: Hashable, session: ISession) -> None:
        """Add a session to a user's channel."""
        with self._lock:
            self._channels.setdefault(user_id, set()).add(session)
            self._memberships.setdefault(session, set()).add(user_id)
        logger.info("Session %s joined channel %s", session.id, user_id)

    def leave(self, session: ISession) -> None:
        """Remove a session from every channel. Unknown sessions are ignored."""
        with self._lock:
            user_ids = self._memberships.pop(session, set())
            for user_id in user_ids:
                members = self._channels.get(user_id)
                if members is None:
                    continue
                members.discard(session)
                if not members:
                    del self._channels[user_id]

        if user_ids:
            logger.info("Session %s left channels %s", session.id, sorted(map(str, user_ids)))

    def sessions_for(self, user_id: Hashable) -> frozenset[ISession]:
        """Snapshot of a user's live sessions (empty if offline)."""
        with self._lock:
            return frozenset(self._channels.get(user_id, ()))

    def all_sessions(self) -> frozenset[ISession]:
        """Snapshot of every connected session."""
        with self._lock:
            return frozenset(self._memberships)

    def channels_of(self, session: ISession) -> frozenset[Hashable]:
        """User channels a session has joined."""
        with self._lock:
            return frozenset(self._memberships.get(session, ()))
