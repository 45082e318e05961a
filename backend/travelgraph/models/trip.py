# backend/travelgraph/models/trip.py
"""
Trip roster models.

Trips themselves are created and edited by the trip layer. The membership
engine owns ``trip_members`` and the ``current_group_size`` counter, which is
only ever changed by SQL expressions evaluated in the database.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
import ulid

from ..core.timezone_utils import utc_now
from ..database import Base


class Trip(Base):
    """Trip directory row: owner and capacity."""

    __tablename__ = "trips"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    owner_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(200), nullable=False)
    # None means unbounded
    max_group_size = Column(Integer, nullable=True)
    current_group_size = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("current_group_size >= 0", name="ck_trips_group_size_non_negative"),
        Index("idx_trips_owner", "owner_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Trip(id={self.id}, owner={self.owner_id}, "
            f"size={self.current_group_size}/{self.max_group_size})>"
        )

    @property
    def is_full(self) -> bool:
        return self.max_group_size is not None and self.current_group_size >= self.max_group_size


class TripMember(Base):
    """Roster entry for a trip."""

    __tablename__ = "trip_members"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    trip_id = Column(String(26), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role = Column(String(10), nullable=False, default="member")
    joined_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        UniqueConstraint("trip_id", "user_id", name="uq_trip_members_trip_user"),
        CheckConstraint("role IN ('owner', 'member')", name="ck_trip_members_role"),
        Index("idx_trip_members_user", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<TripMember(trip={self.trip_id}, user={self.user_id}, role={self.role})>"


class TripLike(Base):
    """A like on a trip, written by the trip layer and read by notifications."""

    __tablename__ = "trip_likes"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    trip_id = Column(String(26), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (UniqueConstraint("trip_id", "user_id", name="uq_trip_likes_trip_user"),)

    def __repr__(self) -> str:
        return f"<TripLike(trip={self.trip_id}, user={self.user_id})>"
