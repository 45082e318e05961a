# backend/travelgraph/services/notification_service.py
"""
Notification Aggregator.

A read-side view over follows, matches, trip requests, trip likes and
engagement on the user's feed posts. The only state it writes is the user's
cursor (``last_checked_notifications_at``) and per-card dismissal flags.

Checking notifications and dismissing a card are independent: moving the
cursor changes what counts as unread, never what is dismissed.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException
from ..core.timezone_utils import cursor_or_epoch, ensure_utc, utc_now
from ..models.activity import ActivityComment, ActivityLike
from ..models.follow import Follow
from ..models.match import Match
from ..models.trip import TripLike
from ..models.trip_request import TripRequest
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from ..repositories.notification_repository import NotificationRepository
from ..repositories.user_repository import UserRepository
from ..schemas.notifications import (
    AcceptedFollowNotification,
    AcceptedMatchNotification,
    CommentOnPostNotification,
    IncomingFollowRequestNotification,
    IncomingTripRequestNotification,
    LikeOnPostNotification,
    Notification,
    NotificationFeed,
    OutgoingRequestStatusNotification,
    TripLikeNotification,
    UnreadBreakdown,
    VerificationOutcomeNotification,
)
from ..schemas.user import UserSummary
from .base import BaseService

logger = logging.getLogger(__name__)

DEFAULT_FEED_LIMIT = 50


class NotificationService(BaseService):
    """Unread counts, the merged feed and cursor/dismissal writes."""

    def __init__(
        self,
        db: Session,
        notification_repository: Optional[NotificationRepository] = None,
        user_repository: Optional[UserRepository] = None,
    ):
        super().__init__(db)
        self.notification_repository = (
            notification_repository or RepositoryFactory.create_notification_repository(db)
        )
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)

    def _get_user(self, user_id: str) -> User:
        user = self.user_repository.get_active(user_id)
        if user is None:
            raise NotFoundException("User not found.")
        return user

    @staticmethod
    def _verification_pending(user: User) -> bool:
        return user.verification_outcome_notified_at is not None and not bool(
            user.verification_outcome_dismissed
        )

    # Counts

    @BaseService.measure_operation("unread_breakdown")
    def unread_breakdown(self, user_id: str, cursor: Optional[datetime] = None) -> UnreadBreakdown:
        """
        Per-source counts of items newer than the cursor.

        ``cursor`` defaults to the user's stored cursor; None there means epoch.
        """
        user = self._get_user(user_id)
        since = cursor_or_epoch(cursor if cursor is not None else user.last_checked_notifications_at)
        repo = self.notification_repository

        verification = 0
        if self._verification_pending(user):
            outcome_at = ensure_utc(user.verification_outcome_notified_at)
            verification = 1 if outcome_at > since else 0

        return UnreadBreakdown(
            verification_outcome=verification,
            incoming_trip_requests=repo.count_since(
                repo.incoming_trip_requests(user_id), TripRequest.created_at, since
            ),
            outgoing_request_updates=repo.count_since(
                repo.outgoing_request_updates(user_id), TripRequest.updated_at, since
            ),
            incoming_follow_requests=repo.count_since(
                repo.incoming_follow_requests(user_id), Follow.created_at, since
            ),
            accepted_follows=repo.count_since(
                repo.accepted_follows(user_id), Follow.updated_at, since
            ),
            post_engagement=(
                repo.count_since(repo.post_likes(user_id), ActivityLike.created_at, since)
                + repo.count_since(repo.post_comments(user_id), ActivityComment.created_at, since)
            ),
            accepted_matches=repo.count_since(
                repo.accepted_matches(user_id), Match.updated_at, since
            ),
            trip_likes=repo.count_since(repo.trip_likes(user_id), TripLike.created_at, since),
        )

    def unread_count(self, user_id: str, cursor: Optional[datetime] = None) -> int:
        return self.unread_breakdown(user_id, cursor).total

    # Feed

    @BaseService.measure_operation("get_notifications")
    def get_feed(self, user_id: str, limit: int = DEFAULT_FEED_LIMIT) -> NotificationFeed:
        """
        Merged feed, newest first.

        Actionable and dismissable items appear until acted on or dismissed;
        engagement items only while newer than the cursor.
        """
        user = self._get_user(user_id)
        since = cursor_or_epoch(user.last_checked_notifications_at)
        repo = self.notification_repository
        items: List[Notification] = []

        def unread(ts: datetime) -> bool:
            return ensure_utc(ts) > since

        if self._verification_pending(user):
            items.append(
                VerificationOutcomeNotification(
                    verification_status=user.verification_status,
                    timestamp=user.verification_outcome_notified_at,
                    is_unread=unread(user.verification_outcome_notified_at),
                )
            )

        for request, requester, trip in repo.newest(
            repo.incoming_trip_requests(user_id), TripRequest.created_at, limit
        ):
            items.append(
                IncomingTripRequestNotification(
                    request_id=request.id,
                    trip_id=trip.id,
                    trip_title=trip.title,
                    requester=UserSummary.model_validate(requester),
                    message=request.message,
                    timestamp=request.created_at,
                    is_unread=unread(request.created_at),
                )
            )

        for request, trip in repo.newest(
            repo.outgoing_request_updates(user_id), TripRequest.updated_at, limit
        ):
            items.append(
                OutgoingRequestStatusNotification(
                    request_id=request.id,
                    trip_id=trip.id,
                    trip_title=trip.title,
                    status=request.status,
                    timestamp=request.updated_at,
                    is_unread=unread(request.updated_at),
                )
            )

        for edge, follower in repo.newest(
            repo.incoming_follow_requests(user_id), Follow.created_at, limit
        ):
            items.append(
                IncomingFollowRequestNotification(
                    follower=UserSummary.model_validate(follower),
                    timestamp=edge.created_at,
                    is_unread=unread(edge.created_at),
                )
            )

        for edge, followed in repo.newest(
            repo.accepted_follows(user_id), Follow.updated_at, limit
        ):
            items.append(
                AcceptedFollowNotification(
                    followed=UserSummary.model_validate(followed),
                    timestamp=edge.updated_at,
                    is_unread=unread(edge.updated_at),
                )
            )

        for like, liker, trip in repo.newest(
            repo.trip_likes(user_id), TripLike.created_at, limit, since=since
        ):
            items.append(
                TripLikeNotification(
                    trip_id=trip.id,
                    trip_title=trip.title,
                    liker=UserSummary.model_validate(liker),
                    timestamp=like.created_at,
                    is_unread=True,
                )
            )

        for like, liker, event in repo.newest(
            repo.post_likes(user_id), ActivityLike.created_at, limit, since=since
        ):
            items.append(
                LikeOnPostNotification(
                    event_id=event.id,
                    event_type=event.event_type,
                    liker=UserSummary.model_validate(liker),
                    timestamp=like.created_at,
                    is_unread=True,
                )
            )

        for comment, author, event in repo.newest(
            repo.post_comments(user_id), ActivityComment.created_at, limit, since=since
        ):
            items.append(
                CommentOnPostNotification(
                    event_id=event.id,
                    comment_id=comment.id,
                    content=comment.content,
                    author=UserSummary.model_validate(author),
                    timestamp=comment.created_at,
                    is_unread=True,
                )
            )

        for match, other in repo.newest(repo.accepted_matches(user_id), Match.updated_at, limit):
            items.append(
                AcceptedMatchNotification(
                    match_id=match.id,
                    matched_user=UserSummary.model_validate(other),
                    timestamp=match.updated_at,
                    is_unread=unread(match.updated_at),
                )
            )

        items.sort(key=lambda item: item.timestamp, reverse=True)
        return NotificationFeed(
            items=items[:limit],
            unread_count=self.unread_count(user_id),
            last_checked_at=user.last_checked_notifications_at,
        )

    # Writes

    @BaseService.measure_operation("mark_notifications_read")
    def mark_read(self, user_id: str) -> datetime:
        """Move the cursor to now. Dismissal flags are untouched."""
        self._get_user(user_id)
        checked_at = utc_now()
        with self.transaction():
            self.user_repository.set_notification_cursor(user_id, checked_at)
        return checked_at

    @BaseService.measure_operation("dismiss_verification_outcome")
    def dismiss_verification_outcome(self, user_id: str) -> None:
        self._get_user(user_id)
        with self.transaction():
            self.user_repository.dismiss_verification_outcome(user_id)
