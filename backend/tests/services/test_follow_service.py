"""
Tests for FollowService.

Covers the request/accept lifecycle, reciprocal auto-accept, the relationship
status read and the list endpoints.
"""

import pytest

from travelgraph.core.enums import FollowRelation, FollowRequestOutcome
from travelgraph.core.exceptions import (
    AlreadyExistsException,
    NotFoundException,
    SelfReferenceException,
    UnauthorizedException,
    ValidationException,
)
from travelgraph.models.activity import ActivityEvent
from travelgraph.models.conversation import Conversation
from travelgraph.models.follow import Follow
from travelgraph.services.conversation_service import ConversationService
from travelgraph.services.follow_service import FollowService


class TestSendRequest:
    def test_creates_pending_edge(self, db, alice, bob):
        result = FollowService(db).send_request(alice.id, bob.id)

        assert result.outcome == FollowRequestOutcome.SENT.value
        assert result.edge.status == "pending"
        assert result.edge.follower_id == alice.id
        assert result.edge.following_id == bob.id

    def test_cannot_follow_self(self, db, alice):
        with pytest.raises(SelfReferenceException):
            FollowService(db).send_request(alice.id, alice.id)

    def test_deactivated_target_is_not_found(self, db, alice, make_user):
        ghost = make_user(deactivated=True)

        with pytest.raises(NotFoundException):
            FollowService(db).send_request(alice.id, ghost.id)

    def test_duplicate_request_conflicts(self, db, alice, bob):
        service = FollowService(db)
        service.send_request(alice.id, bob.id)

        with pytest.raises(AlreadyExistsException):
            service.send_request(alice.id, bob.id)

    def test_reciprocal_pending_request_auto_accepts_both_edges(self, db, alice, bob):
        service = FollowService(db)
        service.send_request(alice.id, bob.id)

        result = service.send_request(bob.id, alice.id)

        assert result.outcome == FollowRequestOutcome.AUTO_ACCEPTED.value
        db.expire_all()
        edges = db.query(Follow).all()
        assert len(edges) == 2
        assert {edge.status for edge in edges} == {"accepted"}
        assert service.is_mutual(alice.id, bob.id)
        # One follow event per direction
        assert db.query(ActivityEvent).filter(ActivityEvent.event_type == "follow").count() == 2

    def test_auto_accept_upgrades_existing_request_conversation(self, db, alice, bob):
        conversation = ConversationService(db).get_or_create(alice.id, bob.id)
        assert conversation.status == "request"

        service = FollowService(db)
        service.send_request(alice.id, bob.id)
        service.send_request(bob.id, alice.id)

        db.refresh(conversation)
        assert conversation.status == "active"


class TestAcceptRejectCancel:
    def test_accept_flips_edge(self, db, alice, bob):
        service = FollowService(db)
        service.send_request(alice.id, bob.id)

        edge = service.accept(alice.id, bob.id, actor_id=bob.id)

        assert edge.status == "accepted"
        assert service.status(alice.id, bob.id) == FollowRelation.FOLLOWING

    def test_accept_is_idempotent(self, db, alice, bob):
        service = FollowService(db)
        service.send_request(alice.id, bob.id)
        service.accept(alice.id, bob.id, actor_id=bob.id)

        again = service.accept(alice.id, bob.id, actor_id=bob.id)

        assert again.status == "accepted"
        assert db.query(Follow).count() == 1

    def test_only_target_can_accept(self, db, alice, bob):
        service = FollowService(db)
        service.send_request(alice.id, bob.id)

        with pytest.raises(UnauthorizedException):
            service.accept(alice.id, bob.id, actor_id=alice.id)

    def test_accept_missing_request(self, db, alice, bob):
        with pytest.raises(NotFoundException):
            FollowService(db).accept(alice.id, bob.id, actor_id=bob.id)

    def test_reject_deletes_pending_edge(self, db, alice, bob):
        service = FollowService(db)
        service.send_request(alice.id, bob.id)

        service.reject(alice.id, bob.id, actor_id=bob.id)

        assert db.query(Follow).count() == 0
        # A fresh request is possible afterwards
        assert service.send_request(alice.id, bob.id).outcome == FollowRequestOutcome.SENT.value

    def test_cancel_by_requester_only(self, db, alice, bob):
        service = FollowService(db)
        service.send_request(alice.id, bob.id)

        with pytest.raises(UnauthorizedException):
            service.cancel(alice.id, bob.id, actor_id=bob.id)

        service.cancel(alice.id, bob.id, actor_id=alice.id)
        assert db.query(Follow).count() == 0

    def test_unfollow_requires_accepted_edge(self, db, alice, bob):
        service = FollowService(db)
        service.send_request(alice.id, bob.id)

        with pytest.raises(NotFoundException):
            service.unfollow(alice.id, bob.id, actor_id=alice.id)

        service.accept(alice.id, bob.id, actor_id=bob.id)
        service.unfollow(alice.id, bob.id, actor_id=alice.id)
        assert service.status(alice.id, bob.id) == FollowRelation.NOT_FOLLOWING


class TestStatus:
    def test_relationship_from_each_side(self, db, alice, bob):
        service = FollowService(db)
        service.send_request(alice.id, bob.id)

        assert service.status(alice.id, bob.id) == FollowRelation.PENDING_OUTGOING
        assert service.status(bob.id, alice.id) == FollowRelation.PENDING_INCOMING
        assert service.status(alice.id, alice.id) == FollowRelation.SELF
        assert service.status(None, bob.id) == FollowRelation.NOT_FOLLOWING


class TestDismissAndLists:
    def test_dismiss_accepted_notice(self, db, alice, bob):
        service = FollowService(db)
        service.send_request(alice.id, bob.id)
        service.accept(alice.id, bob.id, actor_id=bob.id)

        service.dismiss_accepted_notice(alice.id, bob.id, actor_id=alice.id)

        db.expire_all()
        edge = db.query(Follow).one()
        assert edge.dismissed_by_follower is True

    def test_list_requests_by_direction(self, db, alice, bob, carol):
        service = FollowService(db)
        service.send_request(alice.id, bob.id)
        service.send_request(carol.id, bob.id)

        incoming = service.list_requests(bob.id, "incoming")
        outgoing = service.list_requests(alice.id, "outgoing")

        assert {item.user.id for item in incoming} == {alice.id, carol.id}
        assert [item.user.id for item in outgoing] == [bob.id]
        with pytest.raises(ValidationException):
            service.list_requests(bob.id, "sideways")

    def test_followers_following_and_mutuals(self, db, alice, bob, carol):
        service = FollowService(db)
        service.send_request(alice.id, bob.id)
        service.send_request(bob.id, alice.id)
        service.send_request(carol.id, bob.id)
        service.accept(carol.id, bob.id, actor_id=bob.id)

        assert {item.user.id for item in service.list_followers(bob.id)} == {alice.id, carol.id}
        assert [item.user.id for item in service.list_following(alice.id)] == [bob.id]
        assert [user.id for user in service.list_mutuals(bob.id)] == [alice.id]

    def test_deactivated_users_drop_out_of_lists(self, db, alice, bob):
        service = FollowService(db)
        service.send_request(alice.id, bob.id)
        service.accept(alice.id, bob.id, actor_id=bob.id)

        alice.deactivated = True
        db.commit()

        assert service.list_followers(bob.id) == []


def test_conversation_is_not_created_by_following(db, alice, bob):
    service = FollowService(db)
    service.send_request(alice.id, bob.id)
    service.send_request(bob.id, alice.id)

    assert db.query(Conversation).count() == 0
