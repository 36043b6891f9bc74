"""Tests for ConversationService."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from chat_core.conversation import ConversationService
from chat_core.errors import Forbidden, NotFound, NotFoundOrForbidden, StoreUnavailable
from chat_core.models import (
    Attachment,
    DeleteMessageEvent,
    DeleteType,
    MessageKind,
    MessageStatus,
    SendMessageEvent,
)


class TestConversationSend:
    """Tests for ConversationService.send()."""

    async def test_send_delivers_to_both(self, conversation, users, online):
        """Test that both participants receive new_message with the stored id."""
        alice, bob = users
        alice_session, bob_session = online

        message = await conversation.send(alice.id, bob.id, "hi", origin=alice_session)

        expected = {
            "id": message.id,
            "senderId": alice.id,
            "receiverId": bob.id,
            "messageText": "hi",
            "senderName": "Alice",
            "timestamp": message.created_at.isoformat(),
            "messageType": "text",
            "status": "sent",
        }
        assert alice_session.named("new_message") == [expected]
        assert bob_session.named("new_message") == [expected]

    async def test_send_notifies_receiver_only(self, conversation, users, online):
        """Test that new_notification goes to the receiver."""
        alice, bob = users
        alice_session, bob_session = online

        message = await conversation.send(alice.id, bob.id, "hi")

        assert alice_session.named("new_notification") == []
        assert bob_session.named("new_notification") == [
            {
                "senderId": alice.id,
                "senderName": "Alice",
                "messageText": "hi",
                "messageId": message.id,
                "timestamp": message.created_at.isoformat(),
            }
        ]

    async def test_broadcast_implies_persisted(self, conversation, storage, users, online):
        """Test that every broadcast id is retrievable from history."""
        alice, bob = users
        _, bob_session = online

        for text in ["one", "two", "three"]:
            await conversation.send(alice.id, bob.id, text)

        delivered_ids = [p["id"] for p in bob_session.named("new_message")]
        stored_ids = [m.id for m in await storage.history(bob.id, alice.id)]
        assert delivered_ids == stored_ids

    async def test_send_with_attachment(self, conversation, users, online):
        """Test that attachment metadata travels in the payload."""
        alice, bob = users
        _, bob_session = online
        att = Attachment(kind=MessageKind.AUDIO, url="/uploads/v.ogg", size="1 MB", duration="0:12")

        await conversation.send(alice.id, bob.id, "voice note", att)

        payload = bob_session.named("new_message")[0]
        assert payload["messageType"] == "audio"
        assert payload["mediaUrl"] == "/uploads/v.ogg"
        assert payload["fileSize"] == "1 MB"
        assert payload["duration"] == "0:12"

    async def test_send_validation_error(self, conversation, users, online):
        """Test that an invalid message is reported to the origin only."""
        alice, bob = users
        alice_session, bob_session = online

        result = await conversation.send(alice.id, bob.id, "", origin=alice_session)

        assert result is None
        assert alice_session.named("message_error") == [{"error": "Missing required fields"}]
        assert bob_session.events == []

    async def test_send_store_failure(self, broker, storage, users, online):
        """Test that a store failure yields message_error and no broadcast."""
        alice, bob = users
        alice_session, bob_session = online
        store = AsyncMock()
        store.append.side_effect = StoreUnavailable("disk full")
        service = ConversationService(store=store, broker=broker, users=storage)

        result = await service.send(alice.id, bob.id, "hi", origin=alice_session)

        assert result is None
        assert alice_session.names() == ["message_error"]
        assert alice_session.named("message_error") == [{"error": "Failed to save message"}]
        assert bob_session.events == []

    async def test_send_name_lookup_failure(self, storage, broker, users, online):
        """Test that a failed name lookup falls back to a placeholder."""
        alice, bob = users
        _, bob_session = online
        directory = AsyncMock()
        directory.get_user.side_effect = RuntimeError("directory down")
        service = ConversationService(store=storage, broker=broker, users=directory)

        message = await service.send(alice.id, bob.id, "hi")

        assert message is not None
        assert bob_session.named("new_message")[0]["senderName"] == "Unknown"

    async def test_send_receiver_offline(self, conversation, storage, users, registry, make_session):
        """Test that an offline receiver still gets the message in history."""
        alice, bob = users
        alice_session = make_session()
        registry.join(alice.id, alice_session)

        message = await conversation.send(alice.id, bob.id, "are you there?")

        assert alice_session.named("new_message")[0]["id"] == message.id
        assert [m.id for m in await storage.history(bob.id, alice.id)] == [message.id]

    async def test_send_notification_failure_is_isolated(self, storage, users, online):
        """Test that a failing notification does not undo new_message delivery."""
        alice, bob = users
        _, bob_session = online
        broker = AsyncMock()

        async def publish(user_id, event, payload):
            if event == "new_notification":
                raise RuntimeError("notification channel down")
            return 1

        broker.publish.side_effect = publish
        service = ConversationService(store=storage, broker=broker, users=storage)

        message = await service.send(alice.id, bob.id, "hi")

        assert message is not None
        events = [call.args[1] for call in broker.publish.call_args_list]
        assert events == ["new_message", "new_message", "new_notification"]

    async def test_send_event(self, conversation, users, online):
        """Test sending a validated inbound event."""
        alice, bob = users
        _, bob_session = online
        event = SendMessageEvent.model_validate(
            {"senderId": alice.id, "receiverId": bob.id, "messageText": "hey"}
        )

        await conversation.send_event(event)

        assert bob_session.named("new_message")[0]["messageText"] == "hey"

    async def test_concurrent_sends_ordered_in_history(self, conversation, storage, users, online):
        """Test that concurrent sends end up ordered by created_at."""
        alice, bob = users

        await asyncio.gather(
            *[conversation.send(alice.id, bob.id, f"m{i}") for i in range(10)]
        )

        history = await storage.history(alice.id, bob.id)
        assert len(history) == 10
        stamps = [m.created_at for m in history]
        assert stamps == sorted(stamps)
        ids = [m.id for m in history]
        assert ids == sorted(ids)


class TestConversationDeleteForMe:
    """Tests for ConversationService.delete_for_me()."""

    async def test_delete_for_me(self, conversation, storage, users, online):
        """Test that only the requester's channel gets message_deleted."""
        alice, bob = users
        alice_session, bob_session = online
        message = await conversation.send(alice.id, bob.id, "hi")

        result = await conversation.delete_for_me(message.id, alice.id, origin=alice_session)

        assert result.ok
        assert alice_session.named("message_deleted") == [{"messageId": message.id}]
        assert bob_session.named("message_deleted") == []
        assert await storage.history(alice.id, bob.id) == []
        assert [m.id for m in await storage.history(bob.id, alice.id)] == [message.id]

    async def test_delete_for_me_twice(self, conversation, storage, users, online):
        """Test that repeating delete-for-me is not an error."""
        alice, bob = users
        alice_session, _ = online
        message = await conversation.send(alice.id, bob.id, "hi")

        first = await conversation.delete_for_me(message.id, bob.id)
        second = await conversation.delete_for_me(message.id, bob.id)

        assert first.ok and second.ok
        assert await storage.history(bob.id, alice.id) == []

    async def test_delete_for_me_not_participant(self, conversation, storage, users, online, make_session):
        """Test that a stranger gets delete_error."""
        alice, bob = users
        carol = await storage.create_user("carol@example.com", "x", "Carol")
        carol_session = make_session()
        message = await conversation.send(alice.id, bob.id, "hi")

        result = await conversation.delete_for_me(message.id, carol.id, origin=carol_session)

        assert isinstance(result.error, NotFoundOrForbidden)
        assert carol_session.named("delete_error") == [
            {"error": "Message not found or no permission to delete"}
        ]


    async def test_delete_for_me_store_failure(self, broker, storage, users, online):
        """Test that a store failure yields delete_error to the origin and no broadcast."""
        alice, _ = users
        alice_session, bob_session = online
        store = AsyncMock()
        store.soft_delete.side_effect = StoreUnavailable("disk gone")
        service = ConversationService(store=store, broker=broker, users=storage)

        result = await service.delete_for_me(5, alice.id, origin=alice_session)

        assert isinstance(result.error, StoreUnavailable)
        assert alice_session.events == [("delete_error", {"error": "Failed to delete message"})]
        assert bob_session.events == []


class TestConversationDeleteForEveryone:
    """Tests for ConversationService.delete_for_everyone()."""

    async def test_scenario_send_then_delete_for_everyone(self, conversation, storage, users, online):
        """Test the send -> delete-for-everyone scenario end to end."""
        alice, bob = users
        alice_session, bob_session = online

        message = await conversation.send(alice.id, bob.id, "hi", origin=alice_session)
        assert bob_session.named("new_message")[0]["status"] == "sent"

        result = await conversation.delete_for_everyone(message.id, alice.id, origin=alice_session)

        assert result.ok
        assert alice_session.named("message_deleted") == [{"messageId": message.id}]
        assert bob_session.named("message_deleted") == [{"messageId": message.id}]
        assert await storage.history(alice.id, bob.id) == []
        assert await storage.history(bob.id, alice.id) == []

    async def test_delete_for_everyone_by_receiver(self, conversation, storage, users, online):
        """Test that the receiver is refused and the message stays."""
        alice, bob = users
        alice_session, bob_session = online
        message = await conversation.send(alice.id, bob.id, "hi")

        result = await conversation.delete_for_everyone(message.id, bob.id, origin=bob_session)

        assert isinstance(result.error, Forbidden)
        assert bob_session.named("delete_error") == [
            {"error": "Only message sender can delete for everyone"}
        ]
        assert alice_session.named("message_deleted") == []
        assert len(await storage.history(alice.id, bob.id)) == 1

    async def test_delete_for_everyone_missing(self, conversation, users, online):
        """Test that a missing message is reported as NotFound."""
        alice, _ = users
        alice_session, _ = online

        result = await conversation.delete_for_everyone(404, alice.id, origin=alice_session)

        assert isinstance(result.error, NotFound)
        assert alice_session.names() == ["delete_error"]

    async def test_delete_for_everyone_after_delete_for_me(self, conversation, storage, users, online):
        """Test that a soft-deleted message can still be removed for everyone."""
        alice, bob = users
        _, bob_session = online
        message = await conversation.send(alice.id, bob.id, "hi")
        await conversation.delete_for_me(message.id, alice.id)

        result = await conversation.delete_for_everyone(message.id, alice.id)

        assert result.ok
        assert bob_session.named("message_deleted") == [{"messageId": message.id}]
        assert await storage.history(bob.id, alice.id) == []

    async def test_delete_dispatch_by_type(self, conversation, storage, users, online):
        """Test that delete() honours deleteType."""
        alice, bob = users
        message = await conversation.send(alice.id, bob.id, "hi")
        event = DeleteMessageEvent(
            message_id=message.id, user_id=alice.id, delete_type=DeleteType.FOR_EVERYONE
        )

        result = await conversation.delete(event)

        assert result.ok
        assert await storage.get_message(message.id) is None


    async def test_delete_for_everyone_store_failure(self, broker, storage, users, online):
        """Test that a store failure yields delete_error to the origin and no broadcast."""
        alice, _ = users
        alice_session, bob_session = online
        store = AsyncMock()
        store.hard_delete.side_effect = StoreUnavailable("disk gone")
        service = ConversationService(store=store, broker=broker, users=storage)

        result = await service.delete_for_everyone(5, alice.id, origin=alice_session)

        assert not result.ok
        assert alice_session.events == [("delete_error", {"error": "Failed to delete message"})]
        assert bob_session.events == []


class TestConversationSignals:
    """Tests for typing, presence and status updates."""

    async def test_typing_goes_to_peer(self, conversation, users, online):
        """Test that typing is relayed to the peer only."""
        alice, bob = users
        alice_session, bob_session = online

        await conversation.typing(alice.id, True, bob.id)

        assert bob_session.named("user_typing") == [
            {"userId": alice.id, "isTyping": True, "chatWithUserId": bob.id}
        ]
        assert alice_session.events == []

    async def test_presence_goes_to_everyone(self, conversation, users, online, registry, make_session):
        """Test that presence reaches every connected session."""
        alice, _ = users
        alice_session, bob_session = online
        lurker = make_session()
        registry.attach(lurker)

        await conversation.presence(alice.id, True)

        for session in (alice_session, bob_session, lurker):
            payload = session.named("user_online")[0]
            assert payload["userId"] == alice.id
            assert payload["isOnline"] is True
            assert "lastSeen" in payload

    async def test_status_update(self, conversation, storage, users, online):
        """Test that status is stored and relayed to the owner."""
        alice, bob = users
        alice_session, _ = online
        message = await conversation.send(alice.id, bob.id, "hi")

        await conversation.status_update(message.id, MessageStatus.READ, alice.id)

        assert (await storage.get_message(message.id)).status == MessageStatus.READ
        assert alice_session.named("message_status_update") == [
            {"messageId": message.id, "status": "read"}
        ]

    async def test_status_update_never_regresses_live(self, conversation, storage, users, online):
        """Test that an older status is relayed as the stored one."""
        alice, bob = users
        alice_session, _ = online
        message = await conversation.send(alice.id, bob.id, "hi")

        await conversation.status_update(message.id, MessageStatus.READ, alice.id)
        await conversation.status_update(message.id, MessageStatus.DELIVERED, alice.id)

        assert (await storage.get_message(message.id)).status == MessageStatus.READ
        assert [p["status"] for p in alice_session.named("message_status_update")] == [
            "read",
            "read",
        ]

    async def test_status_update_missing_message(self, conversation, users, online):
        """Test that a missing message does not abort the broadcast."""
        alice, _ = users
        alice_session, _ = online

        await conversation.status_update(777, MessageStatus.DELIVERED, alice.id)

        assert alice_session.named("message_status_update") == [
            {"messageId": 777, "status": "delivered"}
        ]

    @pytest.mark.parametrize("failure", [StoreUnavailable("down"), RuntimeError("boom")])
    async def test_status_update_store_failure(self, broker, storage, users, online, failure):
        """Test that store failures on status updates are swallowed."""
        alice, _ = users
        alice_session, _ = online
        store = AsyncMock()
        store.update_status.side_effect = failure
        service = ConversationService(store=store, broker=broker, users=storage)

        await service.status_update(1, MessageStatus.READ, alice.id)

        assert alice_session.names() == ["message_status_update"]

    async def test_fetch_history(self, conversation, users):
        """Test that fetch_history reads through to the store."""
        alice, bob = users
        await conversation.send(alice.id, bob.id, "hi")

        history = await conversation.fetch_history(bob.id, alice.id)

        assert [m.body for m in history] == ["hi"]
