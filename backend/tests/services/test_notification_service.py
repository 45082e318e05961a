"""
Tests for NotificationService.

The unread count is "items newer than the cursor"; the feed keeps
actionable cards until acted on or dismissed and engagement cards only while
they are unread.
"""

from datetime import timedelta

import pytest

from travelgraph.core.exceptions import NotFoundException
from travelgraph.core.pairs import canonical_pair
from travelgraph.core.timezone_utils import utc_now
from travelgraph.core.ulid_helper import generate_ulid
from travelgraph.models.match import Match
from travelgraph.models.trip import TripLike
from travelgraph.repositories.match_repository import MatchRepository
from travelgraph.repositories.user_repository import UserRepository
from travelgraph.services.activity_feed_service import ActivityFeedService
from travelgraph.services.follow_service import FollowService
from travelgraph.services.match_service import MatchService
from travelgraph.services.notification_service import NotificationService
from travelgraph.services.trip_membership_service import TripMembershipService


def _accepted_match(db, user, other, updated_at):
    pair = canonical_pair(user.id, other.id)
    match = Match(
        id=generate_ulid(),
        user_id_low=pair.low,
        user_id_high=pair.high,
        status="accepted",
        initiated_by=other.id,
        created_at=updated_at,
        updated_at=updated_at,
    )
    db.add(match)
    db.commit()
    return match


def _set_cursor(db, user, when):
    UserRepository(db).set_notification_cursor(user.id, when)
    db.commit()
    db.expire_all()


class TestUnreadCount:
    def test_counts_only_items_after_cursor(self, db, alice, bob, carol):
        now = utc_now()
        _accepted_match(db, alice, bob, now - timedelta(hours=2))
        _accepted_match(db, alice, carol, now - timedelta(minutes=10))
        _set_cursor(db, alice, now - timedelta(hours=1))

        breakdown = NotificationService(db).unread_breakdown(alice.id)

        assert breakdown.accepted_matches == 1
        assert breakdown.total == 1

    @pytest.mark.parametrize("dismissed_side", [None, "own", "other"])
    def test_pre_cursor_match_never_counts(self, db, alice, bob, carol, dismissed_side):
        now = utc_now()
        old = _accepted_match(db, alice, bob, now - timedelta(hours=2))
        _accepted_match(db, alice, carol, now - timedelta(minutes=10))
        if dismissed_side is not None:
            owner = alice if dismissed_side == "own" else bob
            side = canonical_pair(alice.id, bob.id).side_of(owner.id)
            MatchRepository(db).set_dismissed(old.id, side)
            db.commit()
        _set_cursor(db, alice, now - timedelta(hours=1))

        assert NotificationService(db).unread_breakdown(alice.id).accepted_matches == 1

    def test_dismissal_by_one_side_does_not_reach_the_other(self, db, alice, bob):
        match = _accepted_match(db, alice, bob, utc_now() - timedelta(hours=2))
        service = NotificationService(db)
        service.mark_read(bob.id)
        db.expire_all()
        before = db.query(Match).filter(Match.id == match.id).one().updated_at

        MatchService(db).dismiss_accepted_notice(match.id, alice.id)
        db.expire_all()

        assert service.unread_breakdown(bob.id).accepted_matches == 0
        assert db.query(Match).filter(Match.id == match.id).one().updated_at == before

    def test_no_cursor_means_everything_is_new(self, db, alice, bob, carol):
        FollowService(db).send_request(bob.id, alice.id)
        FollowService(db).send_request(carol.id, alice.id)

        assert NotificationService(db).unread_count(alice.id) == 2

    def test_mark_read_clears_count(self, db, alice, bob):
        FollowService(db).send_request(bob.id, alice.id)
        service = NotificationService(db)

        checked_at = service.mark_read(alice.id)

        db.expire_all()
        assert service.unread_count(alice.id) == 0
        assert UserRepository(db).get_active(alice.id).last_checked_notifications_at is not None
        assert checked_at is not None

    def test_explicit_cursor_overrides_stored_one(self, db, alice, bob):
        FollowService(db).send_request(bob.id, alice.id)
        service = NotificationService(db)
        service.mark_read(alice.id)

        assert service.unread_count(alice.id, cursor=utc_now() - timedelta(days=1)) == 1

    def test_trip_request_sources(self, db, alice, bob, make_trip):
        trip = make_trip(alice)
        memberships = TripMembershipService(db)
        memberships.add_owner(trip.id, alice.id)
        request = memberships.request_join(trip.id, bob.id)
        service = NotificationService(db)

        assert service.unread_breakdown(alice.id).incoming_trip_requests == 1

        memberships.resolve_request(request.id, alice.id, "accepted")

        assert service.unread_breakdown(alice.id).incoming_trip_requests == 0
        assert service.unread_breakdown(bob.id).outgoing_request_updates == 1

        memberships.dismiss_request_notice(request.id, bob.id)

        assert service.unread_breakdown(bob.id).outgoing_request_updates == 0

    def test_engagement_sources(self, db, alice, bob, make_trip):
        feed = ActivityFeedService(db)
        event = feed.emit("new_photo", alice.id)
        feed.toggle_like(event.id, bob.id)
        feed.add_comment(event.id, bob.id, "Stunning!")
        # Self-engagement is not a notification
        feed.toggle_like(event.id, alice.id)
        trip = make_trip(alice)
        db.add(TripLike(trip_id=trip.id, user_id=bob.id))
        db.commit()

        breakdown = NotificationService(db).unread_breakdown(alice.id)

        assert breakdown.post_engagement == 2
        assert breakdown.trip_likes == 1

    def test_deactivated_actor_drops_out(self, db, alice, bob):
        FollowService(db).send_request(bob.id, alice.id)
        bob.deactivated = True
        db.commit()

        assert NotificationService(db).unread_count(alice.id) == 0

    def test_unknown_user(self, db):
        with pytest.raises(NotFoundException):
            NotificationService(db).unread_count("01HZZZZZZZZZZZZZZZZZZZZZZZ")


class TestVerificationOutcome:
    def test_outcome_is_counted_until_read_and_shown_until_dismissed(self, db, alice):
        alice.verification_status = "verified"
        alice.verification_outcome_notified_at = utc_now() - timedelta(minutes=5)
        db.commit()
        service = NotificationService(db)

        assert service.unread_breakdown(alice.id).verification_outcome == 1

        service.mark_read(alice.id)
        db.expire_all()
        feed = service.get_feed(alice.id)

        assert service.unread_count(alice.id) == 0
        assert [item.type for item in feed.items] == ["verification_outcome"]
        assert feed.items[0].is_unread is False

        service.dismiss_verification_outcome(alice.id)
        db.expire_all()

        assert service.get_feed(alice.id).items == []


class TestFeed:
    def test_feed_merges_sources_newest_first(self, db, alice, bob, carol):
        FollowService(db).send_request(bob.id, alice.id)
        event = ActivityFeedService(db).emit("new_trip", alice.id)
        ActivityFeedService(db).toggle_like(event.id, carol.id)

        feed = NotificationService(db).get_feed(alice.id)

        assert [item.type for item in feed.items] == ["like_on_post", "incoming_follow_request"]
        assert all(item.is_unread for item in feed.items)
        assert feed.unread_count == 2
        assert feed.last_checked_at is None

    def test_engagement_disappears_after_check_but_requests_stay(self, db, alice, bob, carol):
        FollowService(db).send_request(bob.id, alice.id)
        event = ActivityFeedService(db).emit("new_trip", alice.id)
        ActivityFeedService(db).toggle_like(event.id, carol.id)
        service = NotificationService(db)

        service.mark_read(alice.id)
        db.expire_all()
        feed = service.get_feed(alice.id)

        assert [item.type for item in feed.items] == ["incoming_follow_request"]
        assert feed.items[0].is_unread is False
        assert feed.unread_count == 0

    def test_accepted_follow_card_until_dismissed(self, db, alice, bob):
        follows = FollowService(db)
        follows.send_request(alice.id, bob.id)
        follows.accept(alice.id, bob.id, actor_id=bob.id)
        service = NotificationService(db)

        feed = service.get_feed(alice.id)
        assert [item.type for item in feed.items] == ["accepted_follow"]
        assert feed.items[0].followed.id == bob.id

        follows.dismiss_accepted_notice(alice.id, bob.id, actor_id=alice.id)

        assert service.get_feed(alice.id).items == []

    def test_accepted_match_card_is_per_side(self, db, alice, bob):
        match = _accepted_match(db, alice, bob, utc_now())
        column = Match.dismissed_by_low if match.user_id_low == alice.id else Match.dismissed_by_high
        db.query(Match).update({column: True}, synchronize_session=False)
        db.commit()
        service = NotificationService(db)

        assert service.get_feed(alice.id).items == []
        bob_feed = service.get_feed(bob.id)
        assert [item.type for item in bob_feed.items] == ["accepted_match"]
        assert bob_feed.items[0].matched_user.id == alice.id

    def test_limit_applies_to_merged_feed(self, db, alice, make_user):
        for _ in range(5):
            FollowService(db).send_request(make_user().id, alice.id)

        feed = NotificationService(db).get_feed(alice.id, limit=3)

        assert len(feed.items) == 3
        assert feed.unread_count == 5
