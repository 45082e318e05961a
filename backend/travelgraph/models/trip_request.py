# backend/travelgraph/models/trip_request.py
"""Trip join requests."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
import ulid

from ..core.timezone_utils import utc_now
from ..database import Base


class TripRequest(Base):
    """
    A user's request to join a trip.

    One row per (trip, user) ever; a resolved request is never reopened.
    """

    __tablename__ = "trip_requests"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    trip_id = Column(String(26), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(10), nullable=False, default="pending")
    message = Column(Text, nullable=True)
    dismissed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        UniqueConstraint("trip_id", "user_id", name="uq_trip_requests_trip_user"),
        CheckConstraint(
            "status IN ('pending', 'accepted', 'rejected', 'expired')",
            name="ck_trip_requests_status",
        ),
        Index("idx_trip_requests_trip_status", "trip_id", "status"),
        Index("idx_trip_requests_user", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<TripRequest(id={self.id}, trip={self.trip_id}, user={self.user_id}, status={self.status})>"
