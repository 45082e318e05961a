# backend/travelgraph/repositories/trip_repository.py
"""
Trip directory and roster repositories.

``current_group_size`` is only changed through the expressions below, which
the database evaluates against the row it is updating.
"""

from typing import List, Optional, Tuple, cast

from sqlalchemy import case, or_
from sqlalchemy.orm import Session

from ..core.timezone_utils import utc_now
from ..core.ulid_helper import generate_ulid
from ..models.trip import Trip, TripMember
from ..models.user import User
from .base_repository import BaseRepository


class TripRepository(BaseRepository[Trip]):
    """Capacity reads and atomic counter updates on ``trips``."""

    def __init__(self, db: Session):
        super().__init__(db, Trip)

    def increment_group_size_if_capacity(self, trip_id: str) -> int:
        """
        ``current_group_size + 1`` only while the trip has a free seat.

        Returns the rowcount; 0 means the trip is full (or missing).
        """
        return (
            self.db.query(Trip)
            .filter(
                Trip.id == trip_id,
                or_(
                    Trip.max_group_size.is_(None),
                    Trip.current_group_size < Trip.max_group_size,
                ),
            )
            .update(
                {Trip.current_group_size: Trip.current_group_size + 1},
                synchronize_session=False,
            )
        )

    def decrement_group_size(self, trip_id: str) -> int:
        """``max(0, current_group_size - 1)``."""
        return (
            self.db.query(Trip)
            .filter(Trip.id == trip_id)
            .update(
                {
                    Trip.current_group_size: case(
                        (Trip.current_group_size > 0, Trip.current_group_size - 1),
                        else_=0,
                    )
                },
                synchronize_session=False,
            )
        )

    def get_fresh(self, trip_id: str) -> Optional[Trip]:
        """Reload a trip so counters reflect the database, not the identity map."""
        trip = self.get_by_id(trip_id)
        if trip is not None:
            self.db.refresh(trip)
        return trip


class TripMemberRepository(BaseRepository[TripMember]):
    """Roster rows in ``trip_members``."""

    def __init__(self, db: Session):
        super().__init__(db, TripMember)

    def get_member(self, trip_id: str, user_id: str) -> Optional[TripMember]:
        return cast(
            Optional[TripMember],
            self.db.query(TripMember)
            .filter(TripMember.trip_id == trip_id, TripMember.user_id == user_id)
            .first(),
        )

    def add_ignore_conflict(self, trip_id: str, user_id: str, role: str) -> bool:
        """Insert a membership; an existing row for the pair counts as no-op."""
        return self.create_ignore_conflict(
            id=generate_ulid(),
            trip_id=trip_id,
            user_id=user_id,
            role=role,
            joined_at=utc_now(),
        )

    def remove(self, trip_id: str, user_id: str) -> int:
        return (
            self.db.query(TripMember)
            .filter(TripMember.trip_id == trip_id, TripMember.user_id == user_id)
            .delete(synchronize_session="fetch")
        )

    def set_role(self, trip_id: str, user_id: str, role: str) -> int:
        return (
            self.db.query(TripMember)
            .filter(TripMember.trip_id == trip_id, TripMember.user_id == user_id)
            .update({TripMember.role: role}, synchronize_session="fetch")
        )

    def count_owners(self, trip_id: str) -> int:
        return (
            self.db.query(TripMember)
            .filter(TripMember.trip_id == trip_id, TripMember.role == "owner")
            .count()
        )

    def list_members(
        self, trip_id: str, role: Optional[str] = None
    ) -> List[Tuple[TripMember, User]]:
        query = (
            self.db.query(TripMember, User)
            .join(User, User.id == TripMember.user_id)
            .filter(TripMember.trip_id == trip_id, User.deactivated.is_(False))
        )
        if role:
            query = query.filter(TripMember.role == role)
        rows = query.order_by(TripMember.joined_at, TripMember.id).all()
        return [(row[0], row[1]) for row in rows]

    def list_trips_for_user(
        self, user_id: str, limit: int, offset: int = 0
    ) -> List[Tuple[Trip, TripMember]]:
        """Trips ``user_id`` belongs to, newest trip first; trips of deactivated owners are hidden."""
        rows = (
            self.db.query(Trip, TripMember)
            .join(TripMember, TripMember.trip_id == Trip.id)
            .join(User, User.id == Trip.owner_id)
            .filter(TripMember.user_id == user_id, User.deactivated.is_(False))
            .order_by(Trip.created_at.desc(), Trip.id)
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [(row[0], row[1]) for row in rows]
