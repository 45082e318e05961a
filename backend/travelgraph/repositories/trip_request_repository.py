# backend/travelgraph/repositories/trip_request_repository.py
"""Trip join request repository."""

from typing import List, Optional, Sequence, Tuple, cast

from sqlalchemy.orm import Session

from ..core.timezone_utils import utc_now
from ..core.ulid_helper import generate_ulid
from ..models.trip import Trip
from ..models.trip_request import TripRequest
from ..models.user import User
from .base_repository import BaseRepository


class TripRequestRepository(BaseRepository[TripRequest]):
    """Data access for ``trip_requests``."""

    def __init__(self, db: Session):
        super().__init__(db, TripRequest)

    def find_for_pair(self, trip_id: str, user_id: str) -> Optional[TripRequest]:
        return cast(
            Optional[TripRequest],
            self.db.query(TripRequest)
            .filter(TripRequest.trip_id == trip_id, TripRequest.user_id == user_id)
            .first(),
        )

    def insert_pending(self, trip_id: str, user_id: str, message: Optional[str]) -> bool:
        """Insert a pending request; False when the pair already has a row."""
        now = utc_now()
        return self.create_ignore_conflict(
            id=generate_ulid(),
            trip_id=trip_id,
            user_id=user_id,
            status="pending",
            message=message,
            dismissed=False,
            created_at=now,
            updated_at=now,
        )

    def transition_from_pending(self, request_id: str, new_status: str) -> int:
        """
        Guarded ``pending -> new_status``.

        A reject also resets ``dismissed`` so the requester sees the outcome.
        """
        values = {TripRequest.status: new_status}
        if new_status == "rejected":
            values[TripRequest.dismissed] = False
        return (
            self.db.query(TripRequest)
            .filter(TripRequest.id == request_id, TripRequest.status == "pending")
            .update(values, synchronize_session="fetch")
        )

    def force_status(self, request_id: str, new_status: str) -> int:
        """Unguarded status write, used to expire already-resolved requests."""
        return (
            self.db.query(TripRequest)
            .filter(TripRequest.id == request_id)
            .update({TripRequest.status: new_status}, synchronize_session="fetch")
        )

    def set_dismissed(self, request_id: str) -> int:
        return (
            self.db.query(TripRequest)
            .filter(TripRequest.id == request_id)
            .update({TripRequest.dismissed: True}, synchronize_session="fetch")
        )

    def list_filtered(
        self,
        trip_id: Optional[str] = None,
        user_id: Optional[str] = None,
        statuses: Optional[Sequence[str]] = None,
        dismissed: Optional[bool] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Tuple[TripRequest, User, Trip]]:
        """Requests with their active requester and trip, newest first."""
        query = (
            self.db.query(TripRequest, User, Trip)
            .join(User, User.id == TripRequest.user_id)
            .join(Trip, Trip.id == TripRequest.trip_id)
            .filter(User.deactivated.is_(False))
        )
        if trip_id:
            query = query.filter(TripRequest.trip_id == trip_id)
        if user_id:
            query = query.filter(TripRequest.user_id == user_id)
        if statuses:
            query = query.filter(TripRequest.status.in_(list(statuses)))
        if dismissed is not None:
            query = query.filter(TripRequest.dismissed.is_(dismissed))
        rows = (
            query.order_by(TripRequest.created_at.desc(), TripRequest.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [(row[0], row[1], row[2]) for row in rows]
