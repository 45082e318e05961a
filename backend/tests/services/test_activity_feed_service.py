"""Tests for ActivityFeedService likes, comments and event validation."""

import pytest

from travelgraph.core.exceptions import NotFoundException, ValidationException
from travelgraph.models.activity import ActivityEvent
from travelgraph.services.activity_feed_service import ActivityFeedService


class TestEmit:
    def test_emit_persists_event(self, db, alice):
        event = ActivityFeedService(db).emit(
            "new_review", alice.id, related_id="01HREVIEWREVIEWREVIEWREVIE", payload={"stars": 5}
        )

        assert event.event_type == "new_review"
        assert event.event_data == {"stars": 5}
        assert event.like_count == 0

    def test_unknown_type_is_rejected(self, db, alice):
        with pytest.raises(ValidationException):
            ActivityFeedService(db).emit("new_dance", alice.id)
        assert db.query(ActivityEvent).count() == 0

    def test_follow_event_requires_target(self, db, alice):
        with pytest.raises(ValidationException):
            ActivityFeedService(db).emit("follow", alice.id)

    def test_inactive_actor(self, db, make_user):
        ghost = make_user(deactivated=True)

        with pytest.raises(NotFoundException):
            ActivityFeedService(db).emit("new_photo", ghost.id)


class TestLikesAndComments:
    def test_toggle_like_round_trip(self, db, alice, bob):
        service = ActivityFeedService(db)
        event = service.emit("new_photo", alice.id)

        liked = service.toggle_like(event.id, bob.id)
        unliked = service.toggle_like(event.id, bob.id)

        assert (liked.liked, liked.like_count) == (True, 1)
        assert (unliked.liked, unliked.like_count) == (False, 0)

    def test_like_count_never_negative(self, db, alice, bob):
        service = ActivityFeedService(db)
        event = service.emit("new_photo", alice.id)
        service.toggle_like(event.id, bob.id)
        db.query(ActivityEvent).update({ActivityEvent.like_count: 0}, synchronize_session=False)
        db.commit()

        result = service.toggle_like(event.id, bob.id)

        assert result.like_count == 0

    def test_comment_increments_counter(self, db, alice, bob):
        service = ActivityFeedService(db)
        event = service.emit("new_photo", alice.id)

        comment = service.add_comment(event.id, bob.id, "  Where is this?  ")

        db.refresh(event)
        assert comment.content == "Where is this?"
        assert event.comment_count == 1

    def test_empty_comment_and_missing_event(self, db, alice, bob):
        service = ActivityFeedService(db)

        with pytest.raises(ValidationException):
            service.add_comment("01HZZZZZZZZZZZZZZZZZZZZZZZ", bob.id, "   ")
        with pytest.raises(NotFoundException):
            service.add_comment("01HZZZZZZZZZZZZZZZZZZZZZZZ", bob.id, "hello")
        with pytest.raises(NotFoundException):
            service.toggle_like("01HZZZZZZZZZZZZZZZZZZZZZZZ", bob.id)
