# backend/travelgraph/repositories/notification_repository.py
"""
Read-side queries behind the notification feed.

Each source table gets one base query that applies its "still relevant"
predicate and joins the acting user (so deactivated actors drop out). The
service counts rows newer than the cursor and pulls the newest rows for the
feed from the same queries.
"""

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Query, Session, aliased

from ..models.activity import ActivityComment, ActivityEvent, ActivityLike
from ..models.follow import Follow
from ..models.match import Match
from ..models.trip import Trip, TripLike
from ..models.trip_request import TripRequest
from ..models.user import User


class NotificationRepository:
    """Queries over every table that can produce a notification."""

    def __init__(self, db: Session):
        self.db = db

    # Base queries

    def incoming_trip_requests(self, user_id: str) -> Query:
        """Pending join requests on trips ``user_id`` owns."""
        requester = aliased(User)
        return (
            self.db.query(TripRequest, requester, Trip)
            .join(Trip, Trip.id == TripRequest.trip_id)
            .join(requester, requester.id == TripRequest.user_id)
            .filter(
                Trip.owner_id == user_id,
                TripRequest.status == "pending",
                requester.deactivated.is_(False),
            )
        )

    def outgoing_request_updates(self, user_id: str) -> Query:
        """The user's own requests that were accepted or rejected and not dismissed."""
        return (
            self.db.query(TripRequest, Trip)
            .join(Trip, Trip.id == TripRequest.trip_id)
            .filter(
                TripRequest.user_id == user_id,
                TripRequest.status.in_(["accepted", "rejected"]),
                TripRequest.dismissed.is_(False),
            )
        )

    def incoming_follow_requests(self, user_id: str) -> Query:
        follower = aliased(User)
        return (
            self.db.query(Follow, follower)
            .join(follower, follower.id == Follow.follower_id)
            .filter(
                Follow.following_id == user_id,
                Follow.status == "pending",
                follower.deactivated.is_(False),
            )
        )

    def accepted_follows(self, user_id: str) -> Query:
        """Edges where ``user_id`` is the follower and the request was accepted."""
        followed = aliased(User)
        return (
            self.db.query(Follow, followed)
            .join(followed, followed.id == Follow.following_id)
            .filter(
                Follow.follower_id == user_id,
                Follow.status == "accepted",
                Follow.dismissed_by_follower.is_(False),
                followed.deactivated.is_(False),
            )
        )

    def trip_likes(self, user_id: str) -> Query:
        liker = aliased(User)
        return (
            self.db.query(TripLike, liker, Trip)
            .join(Trip, Trip.id == TripLike.trip_id)
            .join(liker, liker.id == TripLike.user_id)
            .filter(
                Trip.owner_id == user_id,
                TripLike.user_id != user_id,
                liker.deactivated.is_(False),
            )
        )

    def post_likes(self, user_id: str) -> Query:
        liker = aliased(User)
        return (
            self.db.query(ActivityLike, liker, ActivityEvent)
            .join(ActivityEvent, ActivityEvent.id == ActivityLike.event_id)
            .join(liker, liker.id == ActivityLike.user_id)
            .filter(
                ActivityEvent.user_id == user_id,
                ActivityLike.user_id != user_id,
                liker.deactivated.is_(False),
            )
        )

    def post_comments(self, user_id: str) -> Query:
        author = aliased(User)
        return (
            self.db.query(ActivityComment, author, ActivityEvent)
            .join(ActivityEvent, ActivityEvent.id == ActivityComment.event_id)
            .join(author, author.id == ActivityComment.user_id)
            .filter(
                ActivityEvent.user_id == user_id,
                ActivityComment.user_id != user_id,
                author.deactivated.is_(False),
            )
        )

    def accepted_matches(self, user_id: str) -> Query:
        """Accepted matches the user has not dismissed on their side."""
        other = aliased(User)
        return (
            self.db.query(Match, other)
            .join(
                other,
                or_(
                    and_(Match.user_id_low == user_id, other.id == Match.user_id_high),
                    and_(Match.user_id_high == user_id, other.id == Match.user_id_low),
                ),
            )
            .filter(
                Match.status == "accepted",
                other.deactivated.is_(False),
                or_(
                    and_(Match.user_id_low == user_id, Match.dismissed_by_low.is_(False)),
                    and_(Match.user_id_high == user_id, Match.dismissed_by_high.is_(False)),
                ),
            )
        )

    # Helpers

    @staticmethod
    def count_since(query: Query, timestamp_column: Any, cursor: datetime) -> int:
        return query.filter(timestamp_column > cursor).count()

    @staticmethod
    def newest(
        query: Query,
        timestamp_column: Any,
        limit: int,
        since: Optional[datetime] = None,
    ) -> List[Any]:
        if since is not None:
            query = query.filter(timestamp_column > since)
        return query.order_by(timestamp_column.desc()).limit(limit).all()
