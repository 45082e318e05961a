# backend/travelgraph/repositories/activity_repository.py
"""
Engagement feed repository.

Like and comment counters are adjusted with SQL expressions so concurrent
likes cannot lose updates.
"""

from typing import Optional, cast

from sqlalchemy import case
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..core.timezone_utils import utc_now
from ..core.ulid_helper import generate_ulid
from ..database.session_utils import insert_ignore
from ..models.activity import ActivityComment, ActivityEvent, ActivityLike
from .base_repository import BaseRepository


class ActivityRepository(BaseRepository[ActivityEvent]):
    def __init__(self, db: Session):
        super().__init__(db, ActivityEvent)

    def add_like(self, event_id: str, user_id: str) -> bool:
        """Insert the like unless the user already liked the event."""
        values = {
            "id": generate_ulid(),
            "event_id": event_id,
            "user_id": user_id,
            "created_at": utc_now(),
        }
        try:
            return insert_ignore(self.db, ActivityLike.__table__, values) > 0
        except SQLAlchemyError as e:
            self.logger.error(f"Error inserting ActivityLike: {str(e)}")
            raise RepositoryException(f"Failed to insert ActivityLike: {str(e)}")

    def remove_like(self, event_id: str, user_id: str) -> int:
        return (
            self.db.query(ActivityLike)
            .filter(ActivityLike.event_id == event_id, ActivityLike.user_id == user_id)
            .delete(synchronize_session="fetch")
        )

    def find_like(self, event_id: str, user_id: str) -> Optional[ActivityLike]:
        return cast(
            Optional[ActivityLike],
            self.db.query(ActivityLike)
            .filter(ActivityLike.event_id == event_id, ActivityLike.user_id == user_id)
            .first(),
        )

    def adjust_like_count(self, event_id: str, delta: int) -> int:
        if delta >= 0:
            value = ActivityEvent.like_count + delta
        else:
            value = case(
                (ActivityEvent.like_count + delta > 0, ActivityEvent.like_count + delta),
                else_=0,
            )
        return (
            self.db.query(ActivityEvent)
            .filter(ActivityEvent.id == event_id)
            .update({ActivityEvent.like_count: value}, synchronize_session=False)
        )

    def add_comment(self, event_id: str, user_id: str, content: str) -> ActivityComment:
        comment = ActivityComment(event_id=event_id, user_id=user_id, content=content)
        self.db.add(comment)
        self.db.flush()
        self.db.query(ActivityEvent).filter(ActivityEvent.id == event_id).update(
            {ActivityEvent.comment_count: ActivityEvent.comment_count + 1},
            synchronize_session=False,
        )
        return comment
