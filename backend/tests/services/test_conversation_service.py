"""
Tests for ConversationService.

Covers the follow-derived tier, sending, read state, the inbox split,
blocking and trip sharing.
"""

import pytest

from travelgraph.core.exceptions import (
    ForbiddenException,
    NotFoundException,
    SelfReferenceException,
    UnauthorizedException,
    ValidationException,
)
from travelgraph.models.conversation import Conversation
from travelgraph.models.message import DirectMessage
from travelgraph.services.conversation_service import ConversationService
from travelgraph.services.follow_service import FollowService


def _make_mutual(db, first, second):
    follows = FollowService(db)
    follows.send_request(first.id, second.id)
    follows.send_request(second.id, first.id)


class TestTier:
    def test_non_mutual_pair_starts_as_request(self, db, alice, bob):
        conversation = ConversationService(db).get_or_create(bob.id, alice.id)

        assert conversation.status == "request"
        assert conversation.user_id_low == min(alice.id, bob.id)
        assert conversation.user_id_high == max(alice.id, bob.id)

    def test_mutual_pair_starts_active(self, db, alice, bob):
        _make_mutual(db, alice, bob)

        conversation = ConversationService(db).get_or_create(alice.id, bob.id)

        assert conversation.status == "active"

    def test_get_or_create_is_idempotent(self, db, alice, bob):
        service = ConversationService(db)

        first = service.get_or_create(alice.id, bob.id)
        second = service.get_or_create(bob.id, alice.id)

        assert first.id == second.id
        assert db.query(Conversation).count() == 1

    def test_tier_never_moves_back(self, db, alice, bob):
        service = ConversationService(db)
        conversation, _ = service.send(None, alice.id, bob.id, "hi there")
        assert conversation.status == "request"

        _make_mutual(db, alice, bob)
        db.refresh(conversation)
        assert conversation.status == "active"

        FollowService(db).unfollow(alice.id, bob.id, actor_id=alice.id)
        conversation, _ = service.send(conversation.id, bob.id, alice.id, "still here")

        db.refresh(conversation)
        assert conversation.status == "active"

    def test_explicit_accept(self, db, alice, bob):
        service = ConversationService(db)
        conversation, _ = service.send(None, alice.id, bob.id, "hello")

        accepted = service.accept_request(conversation.id, bob.id)

        assert accepted.status == "active"

    def test_self_conversation_refused(self, db, alice):
        with pytest.raises(SelfReferenceException):
            ConversationService(db).get_or_create(alice.id, alice.id)


class TestSend:
    def test_send_records_last_message_and_clears_recipient_read(self, db, alice, bob):
        service = ConversationService(db)
        conversation, _ = service.send(None, alice.id, bob.id, "first")
        service.mark_read(conversation.id, bob.id)

        conversation, message = service.send(conversation.id, alice.id, bob.id, "second")

        db.refresh(conversation)
        assert conversation.last_message_id == message.id
        assert conversation.last_read_at_for(bob.id) is None
        assert message.content == "second"

    def test_empty_and_oversized_messages_are_rejected(self, db, alice, bob):
        service = ConversationService(db)

        with pytest.raises(ValidationException):
            service.send(None, alice.id, bob.id, "   ")
        with pytest.raises(ValidationException):
            service.send(None, alice.id, bob.id, "x" * 2001)
        assert db.query(DirectMessage).count() == 0

    def test_blocked_pair_cannot_message(self, db, alice, bob):
        service = ConversationService(db)
        service.block(bob.id, alice.id)

        with pytest.raises(ForbiddenException):
            service.send(None, alice.id, bob.id, "hello?")

        assert service.unblock(bob.id, alice.id) is True
        service.send(None, alice.id, bob.id, "hello again")

    def test_outsider_cannot_post_into_conversation(self, db, alice, bob, carol):
        service = ConversationService(db)
        conversation, _ = service.send(None, alice.id, bob.id, "hi")

        with pytest.raises(UnauthorizedException):
            service.send(conversation.id, carol.id, alice.id, "let me in")

    def test_deactivated_recipient(self, db, alice, make_user):
        ghost = make_user(deactivated=True)

        with pytest.raises(NotFoundException):
            ConversationService(db).send(None, alice.id, ghost.id, "hello")


class TestMessagesAndInbox:
    def test_get_messages_oldest_first_and_marks_read(self, db, alice, bob):
        service = ConversationService(db)
        conversation, _ = service.send(None, alice.id, bob.id, "one")
        service.send(conversation.id, bob.id, alice.id, "two")

        messages = service.get_messages(conversation.id, alice.id)

        assert [m.content for m in messages] == ["one", "two"]
        db.refresh(conversation)
        assert conversation.last_read_at_for(alice.id) is not None

    def test_request_is_hidden_from_its_sender(self, db, alice, bob):
        service = ConversationService(db)
        service.send(None, alice.id, bob.id, "hey")

        sender_inbox = service.list_conversations(alice.id)
        recipient_inbox = service.list_conversations(bob.id)

        assert sender_inbox.chats == [] and sender_inbox.requests == []
        assert len(recipient_inbox.requests) == 1
        assert recipient_inbox.requests[0].other_user.id == alice.id
        assert recipient_inbox.requests[0].unread is True

    def test_active_conversations_are_chats(self, db, alice, bob):
        _make_mutual(db, alice, bob)
        service = ConversationService(db)
        conversation, _ = service.send(None, alice.id, bob.id, "hey")

        inbox = service.list_conversations(bob.id)

        assert [c.conversation_id for c in inbox.chats] == [conversation.id]
        assert inbox.requests == []

        service.mark_read(conversation.id, bob.id)
        assert service.list_conversations(bob.id).chats[0].unread is False

    def test_block_validates_type(self, db, alice, bob):
        with pytest.raises(ValidationException):
            ConversationService(db).block(alice.id, bob.id, "everything")


class TestShareTrip:
    def test_link_goes_to_each_recipient(self, db, alice, bob, carol, make_trip):
        trip = make_trip(alice, title="Lofoten Kayak")

        result = ConversationService(db).share_trip(alice.id, trip.id, [bob.id, carol.id, bob.id])

        assert result.sent_to == [bob.id, carol.id]
        assert result.skipped == []
        messages = db.query(DirectMessage).all()
        assert len(messages) == 2
        assert all(m.sender_id == alice.id for m in messages)
        assert all(f"[Lofoten Kayak](/trips/{trip.id})" in m.content for m in messages)

    def test_tier_rules_apply_per_recipient(self, db, alice, bob, carol, make_trip):
        _make_mutual(db, alice, bob)
        trip = make_trip(alice)

        ConversationService(db).share_trip(alice.id, trip.id, [bob.id, carol.id])

        statuses = {
            (c.user_id_low, c.user_id_high): c.status for c in db.query(Conversation).all()
        }
        assert statuses[tuple(sorted((alice.id, bob.id)))] == "active"
        assert statuses[tuple(sorted((alice.id, carol.id)))] == "request"

    def test_blocked_self_and_inactive_recipients_are_skipped(
        self, db, alice, bob, carol, make_user, make_trip
    ):
        ghost = make_user(deactivated=True)
        trip = make_trip(alice)
        service = ConversationService(db)
        service.block(bob.id, alice.id)

        result = service.share_trip(alice.id, trip.id, [alice.id, bob.id, ghost.id, carol.id])

        assert result.sent_to == [carol.id]
        assert set(result.skipped) == {alice.id, bob.id, ghost.id}
        assert db.query(DirectMessage).count() == 1

    def test_unknown_trip(self, db, alice, bob):
        with pytest.raises(NotFoundException):
            ConversationService(db).share_trip(alice.id, "01HZZZZZZZZZZZZZZZZZZZZZZZ", [bob.id])

    def test_recipients_required(self, db, alice, make_trip):
        trip = make_trip(alice)

        with pytest.raises(ValidationException):
            ConversationService(db).share_trip(alice.id, trip.id, [])
