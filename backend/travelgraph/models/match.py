# backend/travelgraph/models/match.py
"""
Mutual-interest matches.

A match is an unordered pair stored once with ``user_id_low < user_id_high``.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
import ulid

from ..core.timezone_utils import utc_now
from ..database import Base


class Match(Base):
    """
    Canonical match row between two users.

    Attributes:
        status: pending -> accepted | rejected; rejected may reopen after cooldown
        initiated_by: The user whose action produced the current status
        dismissed_by_low: Low side has hidden the "it's a match" card
        dismissed_by_high: High side has hidden the "it's a match" card
    """

    __tablename__ = "matches"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id_low = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_id_high = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(10), nullable=False, default="pending")
    initiated_by = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    dismissed_by_low = Column(Boolean, nullable=False, default=False)
    dismissed_by_high = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        UniqueConstraint("user_id_low", "user_id_high", name="uq_matches_pair"),
        CheckConstraint("user_id_low < user_id_high", name="ck_matches_canonical_order"),
        CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected', 'expired')", name="ck_matches_status"
        ),
        Index("idx_matches_high", "user_id_high"),
    )

    def __repr__(self) -> str:
        return (
            f"<Match(id={self.id}, pair=({self.user_id_low}, {self.user_id_high}), "
            f"status={self.status})>"
        )

    def other_user_id(self, user_id: str) -> str:
        return self.user_id_high if user_id == self.user_id_low else self.user_id_low

    def is_dismissed_by(self, user_id: str) -> bool:
        if user_id == self.user_id_low:
            return bool(self.dismissed_by_low)
        return bool(self.dismissed_by_high)
