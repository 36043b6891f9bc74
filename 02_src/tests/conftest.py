"""Pytest configuration and fixtures."""

import sys
import uuid
from pathlib import Path

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


class RecordingSession:
    """Session handle that records every delivered event."""

    def __init__(self, name: str = ""):
        self.id = name or str(uuid.uuid4())
        self.events: list[tuple[str, dict]] = []
        self.accepting = True

    def deliver(self, event: str, payload: dict) -> bool:
        if not self.accepting:
            return False
        self.events.append((event, payload))
        return True

    def named(self, event: str) -> list[dict]:
        """Payloads of all received events with this name."""
        return [payload for name, payload in self.events if name == event]

    def names(self) -> list[str]:
        return [name for name, _ in self.events]


@pytest.fixture
def make_session():
    """Factory for recording sessions."""

    def _make(name: str = "") -> RecordingSession:
        return RecordingSession(name)

    return _make


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from chat_core.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest_asyncio.fixture
async def users(storage):
    """Two registered users: alice and bob."""
    alice = await storage.create_user("alice@example.com", "x", "Alice")
    bob = await storage.create_user("bob@example.com", "x", "Bob")
    return alice, bob


@pytest.fixture
def registry():
    """Create an empty presence registry."""
    from chat_core.presence import PresenceRegistry

    return PresenceRegistry()


@pytest.fixture
def broker(registry):
    """Create DeliveryBroker over the registry."""
    from chat_core.delivery import DeliveryBroker

    return DeliveryBroker(registry)


@pytest.fixture
def conversation(storage, broker):
    """Create ConversationService wired to real storage and broker."""
    from chat_core.conversation import ConversationService

    return ConversationService(store=storage, broker=broker, users=storage)


@pytest.fixture
def online(registry, users, make_session):
    """Live sessions for alice and bob, joined to their channels."""
    alice, bob = users
    alice_session = make_session("alice-1")
    bob_session = make_session("bob-1")
    registry.join(alice.id, alice_session)
    registry.join(bob.id, bob_session)
    return alice_session, bob_session
