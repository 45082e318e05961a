"""
Tests for MatchService.

Covers canonical storage, acceptance with its follow/conversation cascades,
the rejection cooldown and the discovery candidate filter.
"""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from travelgraph.core.enums import MatchOutcome
from travelgraph.core.exceptions import (
    InvalidStateException,
    NotFoundException,
    SelfReferenceException,
    UnauthorizedException,
)
from travelgraph.models.activity import ActivityEvent
from travelgraph.models.follow import Follow
from travelgraph.models.match import Match
from travelgraph.services.conversation_service import ConversationService
from travelgraph.services.match_service import MatchService


def _accept(db, first, second):
    service = MatchService(db)
    service.create_or_advance(first.id, second.id, first.id)
    return service.create_or_advance(second.id, first.id, second.id)


class TestCreateOrAdvance:
    def test_first_swipe_creates_canonical_pending_row(self, db, alice, bob):
        result = MatchService(db).create_or_advance(bob.id, alice.id, bob.id)

        assert result.outcome == MatchOutcome.CREATED.value
        assert result.match.status == "pending"
        assert result.match.initiated_by == bob.id
        assert result.match.user_id_low == min(alice.id, bob.id)
        assert result.match.user_id_high == max(alice.id, bob.id)

    def test_same_side_swipe_is_unchanged(self, db, alice, bob):
        service = MatchService(db)
        service.create_or_advance(alice.id, bob.id, alice.id)

        result = service.create_or_advance(alice.id, bob.id, alice.id)

        assert result.outcome == MatchOutcome.UNCHANGED.value
        assert result.match.status == "pending"
        assert db.query(Match).count() == 1

    def test_other_side_accepts_and_cascades(self, db, alice, bob):
        result = _accept(db, alice, bob)

        assert result.outcome == MatchOutcome.ACCEPTED.value
        assert result.match.status == "accepted"
        db.expire_all()
        edges = db.query(Follow).all()
        assert {(e.follower_id, e.following_id) for e in edges} == {
            (alice.id, bob.id),
            (bob.id, alice.id),
        }
        assert {e.status for e in edges} == {"accepted"}
        events = db.query(ActivityEvent).filter(ActivityEvent.event_type == "follow").all()
        assert len(events) == 2

    def test_accepting_twice_creates_no_duplicate_edges(self, db, alice, bob):
        _accept(db, alice, bob)

        again = MatchService(db).create_or_advance(alice.id, bob.id, bob.id)

        assert again.outcome == MatchOutcome.UNCHANGED.value
        assert db.query(Follow).count() == 2
        assert db.query(Match).count() == 1

    def test_acceptance_promotes_pending_follow_edge(self, db, alice, bob):
        db.add(Follow(follower_id=alice.id, following_id=bob.id, status="pending"))
        db.commit()

        _accept(db, alice, bob)

        db.expire_all()
        assert db.query(Follow).filter(Follow.status == "pending").count() == 0
        assert db.query(Follow).count() == 2

    def test_acceptance_upgrades_request_conversation(self, db, alice, bob):
        conversation = ConversationService(db).get_or_create(alice.id, bob.id)
        assert conversation.status == "request"

        _accept(db, alice, bob)

        db.refresh(conversation)
        assert conversation.status == "active"

    def test_cascade_failure_does_not_undo_match(self, db, alice, bob):
        activity = MagicMock()
        activity.record_event.side_effect = RuntimeError("feed unavailable")
        service = MatchService(db, activity_service=activity)
        service.create_or_advance(alice.id, bob.id, alice.id)

        result = service.create_or_advance(bob.id, alice.id, bob.id)

        assert result.outcome == MatchOutcome.ACCEPTED.value
        db.expire_all()
        assert db.query(Match).one().status == "accepted"
        assert db.query(Follow).count() == 2

    def test_outsider_cannot_initiate(self, db, alice, bob, carol):
        with pytest.raises(UnauthorizedException):
            MatchService(db).create_or_advance(alice.id, bob.id, carol.id)

    def test_self_match_is_rejected(self, db, alice):
        with pytest.raises(SelfReferenceException):
            MatchService(db).create_or_advance(alice.id, alice.id, alice.id)

    def test_deactivated_user_is_not_found(self, db, alice, make_user):
        ghost = make_user(deactivated=True)

        with pytest.raises(NotFoundException):
            MatchService(db).create_or_advance(alice.id, ghost.id, alice.id)


class TestRejectionCooldown:
    def test_reject_creates_rejected_row(self, db, alice, bob):
        result = MatchService(db).reject(alice.id, bob.id)

        assert result.changed is True
        assert result.match.status == "rejected"
        assert result.match.initiated_by == alice.id

    def test_reject_leaves_accepted_match_alone(self, db, alice, bob):
        _accept(db, alice, bob)

        result = MatchService(db).reject(alice.id, bob.id)

        assert result.changed is False
        assert result.match.status == "accepted"

    def test_swipe_inside_cooldown_fails(self, db, alice, bob):
        service = MatchService(db)
        service.reject(bob.id, alice.id)

        with pytest.raises(InvalidStateException):
            service.create_or_advance(alice.id, bob.id, alice.id)

    def test_swipe_after_cooldown_reopens(self, db, alice, bob, age_rows):
        service = MatchService(db)
        service.reject(bob.id, alice.id)
        age_rows(Match, Match.updated_at, timedelta(days=4))

        result = service.create_or_advance(alice.id, bob.id, alice.id)

        assert result.outcome == MatchOutcome.REOPENED.value
        assert result.match.status == "pending"
        assert result.match.initiated_by == alice.id

    def test_expired_row_reopens_immediately(self, db, alice, bob):
        service = MatchService(db)
        service.create_or_advance(alice.id, bob.id, alice.id)
        db.query(Match).update({Match.status: "expired"}, synchronize_session=False)
        db.commit()
        db.expire_all()

        result = service.create_or_advance(bob.id, alice.id, bob.id)

        assert result.outcome == MatchOutcome.REOPENED.value
        assert result.match.initiated_by == bob.id


class TestDismissAndList:
    def test_dismiss_is_per_side(self, db, alice, bob):
        match_id = _accept(db, alice, bob).match.id

        MatchService(db).dismiss_accepted_notice(match_id, alice.id)

        db.expire_all()
        match = db.query(Match).one()
        assert match.is_dismissed_by(alice.id)
        assert not match.is_dismissed_by(bob.id)

    def test_dismiss_pending_match_fails(self, db, alice, bob):
        result = MatchService(db).create_or_advance(alice.id, bob.id, alice.id)

        with pytest.raises(InvalidStateException):
            MatchService(db).dismiss_accepted_notice(result.match.id, alice.id)

    def test_dismiss_by_outsider_fails(self, db, alice, bob, carol):
        match_id = _accept(db, alice, bob).match.id

        with pytest.raises(UnauthorizedException):
            MatchService(db).dismiss_accepted_notice(match_id, carol.id)

    def test_list_accepted(self, db, alice, bob, carol):
        _accept(db, alice, bob)
        MatchService(db).create_or_advance(alice.id, carol.id, alice.id)

        items = MatchService(db).list_accepted(alice.id)

        assert [item.user.id for item in items] == [bob.id]


class TestPotentialCandidates:
    def test_scores_and_excludes_viewer(self, db, alice, bob, make_user):
        make_user(onboarding_completed=False)

        candidates = MatchService(db).potential_candidates(alice.id)

        assert [c.id for c in candidates] == [bob.id]
        # 1 of 3 shared + same budget
        assert candidates[0].match_percentage == 53

    def test_followed_users_are_hidden(self, db, alice, bob):
        db.add(Follow(follower_id=alice.id, following_id=bob.id, status="accepted"))
        db.commit()

        assert MatchService(db).potential_candidates(alice.id) == []

    def test_own_pending_swipe_hides_but_incoming_swipe_shows(self, db, alice, bob):
        MatchService(db).create_or_advance(alice.id, bob.id, alice.id)

        assert MatchService(db).potential_candidates(alice.id) == []
        assert [c.id for c in MatchService(db).potential_candidates(bob.id)] == [alice.id]

    def test_expired_row_shows_on_both_sides(self, db, alice, bob):
        MatchService(db).create_or_advance(alice.id, bob.id, alice.id)
        db.query(Match).update({Match.status: "expired"}, synchronize_session=False)
        db.commit()
        db.expire_all()

        assert [c.id for c in MatchService(db).potential_candidates(alice.id)] == [bob.id]
        assert [c.id for c in MatchService(db).potential_candidates(bob.id)] == [alice.id]

    def test_accepted_match_hides_profile(self, db, alice, bob):
        _accept(db, alice, bob)

        assert MatchService(db).potential_candidates(alice.id) == []

    def test_passed_profiles_stay_hidden_for_the_passer(self, db, alice, bob, age_rows):
        MatchService(db).reject(alice.id, bob.id)
        age_rows(Match, Match.updated_at, timedelta(days=30))

        assert MatchService(db).potential_candidates(alice.id) == []

    def test_rejection_by_other_side_expires_after_cooldown(self, db, alice, bob, age_rows):
        MatchService(db).reject(bob.id, alice.id)

        assert MatchService(db).potential_candidates(alice.id) == []

        age_rows(Match, Match.updated_at, timedelta(days=4))

        assert [c.id for c in MatchService(db).potential_candidates(alice.id)] == [bob.id]

    def test_unknown_viewer(self, db):
        with pytest.raises(NotFoundException):
            MatchService(db).potential_candidates("01HZZZZZZZZZZZZZZZZZZZZZZZ")
