# backend/travelgraph/models/activity.py
"""
Engagement feed models.

Events are emitted as side effects of relationship transitions and by the
excluded content layers (photos, trips, reviews). Likes and comments keep
denormalized counters on the event row.
"""

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
import ulid

from ..core.timezone_utils import utc_now
from ..database import Base

EVENT_TYPES = (
    "new_photo",
    "new_trip",
    "joined_trip",
    "left_trip",
    "new_review",
    "follow",
    "like_on_post",
    "comment_on_post",
)


class ActivityEvent(Base):
    """A single entry in the engagement feed, attributed to ``user_id``."""

    __tablename__ = "activity_events"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    event_type = Column(String(20), nullable=False)
    related_id = Column(String(26), nullable=True)
    target_user_id = Column(
        String(26), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    event_data = Column(JSON, nullable=True)
    like_count = Column(Integer, nullable=False, default=0)
    comment_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        CheckConstraint(
            "event_type IN (" + ", ".join(f"'{t}'" for t in EVENT_TYPES) + ")",
            name="ck_activity_events_type",
        ),
        CheckConstraint("like_count >= 0", name="ck_activity_events_likes"),
        CheckConstraint("comment_count >= 0", name="ck_activity_events_comments"),
        Index("idx_activity_events_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ActivityEvent(id={self.id}, type={self.event_type}, user={self.user_id})>"


class ActivityLike(Base):
    __tablename__ = "activity_likes"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    event_id = Column(
        String(26), ForeignKey("activity_events.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_activity_likes_event_user"),)

    def __repr__(self) -> str:
        return f"<ActivityLike(event={self.event_id}, user={self.user_id})>"


class ActivityComment(Base):
    __tablename__ = "activity_comments"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    event_id = Column(
        String(26), ForeignKey("activity_events.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (Index("idx_activity_comments_event", "event_id"),)

    def __repr__(self) -> str:
        return f"<ActivityComment(id={self.id}, event={self.event_id}, user={self.user_id})>"
