# backend/travelgraph/models/follow.py
"""
Directed follow edges.

One row per ordered pair. Pending requests become accepted or are deleted;
no rejected row is kept.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, String

from ..core.timezone_utils import utc_now
from ..database import Base


class Follow(Base):
    """
    A follow edge from ``follower_id`` to ``following_id``.

    Attributes:
        status: 'pending' until the followed user accepts, then 'accepted'
        dismissed_by_follower: Hides the "request accepted" card for the follower
    """

    __tablename__ = "follows"

    follower_id = Column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    following_id = Column(
        String(26), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    status = Column(String(10), nullable=False, default="pending")
    dismissed_by_follower = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("follower_id <> following_id", name="ck_follows_not_self"),
        CheckConstraint("status IN ('pending', 'accepted')", name="ck_follows_status"),
        Index("idx_follows_following_status", "following_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<Follow({self.follower_id} -> {self.following_id}, status={self.status})>"
