# backend/travelgraph/actions/trip_actions.py
"""Trip join request and roster actions."""

from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.enums import TripRequestStatus
from ..schemas.results import ActionResult
from ..schemas.trip import (
    MemberTripItem,
    TripCapacity,
    TripMemberListItem,
    TripMemberResponse,
    TripRequestListItem,
    TripRequestResponse,
)
from ..services.trip_membership_service import TripMembershipService
from .base import run_action

_RESOLVE_MESSAGES = {
    TripRequestStatus.ACCEPTED.value: "Request accepted.",
    TripRequestStatus.REJECTED.value: "Request declined.",
    TripRequestStatus.EXPIRED.value: "Request expired.",
}


def request_to_join(
    db: Session, trip_id: str, user_id: str, message: Optional[str] = None
) -> ActionResult[TripRequestResponse]:
    return run_action(
        "request_to_join",
        lambda: TripRequestResponse.model_validate(
            TripMembershipService(db).request_join(trip_id, user_id, message)
        ),
        "Request sent.",
    )


def resolve_trip_request(
    db: Session, request_id: str, actor_id: str, status: str
) -> ActionResult[TripRequestResponse]:
    return run_action(
        "resolve_trip_request",
        lambda: TripRequestResponse.model_validate(
            TripMembershipService(db).resolve_request(request_id, actor_id, status)
        ),
        on_success=lambda request: _RESOLVE_MESSAGES.get(request.status, ""),
    )


def dismiss_trip_request_notice(
    db: Session, request_id: str, actor_id: str
) -> ActionResult[TripRequestResponse]:
    return run_action(
        "dismiss_trip_request_notice",
        lambda: TripRequestResponse.model_validate(
            TripMembershipService(db).dismiss_request_notice(request_id, actor_id)
        ),
        "Notification dismissed.",
    )


def list_trip_requests(
    db: Session,
    trip_id: Optional[str] = None,
    user_id: Optional[str] = None,
    statuses: Optional[Sequence[str]] = None,
    dismissed: Optional[bool] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> ActionResult[List[TripRequestListItem]]:
    return run_action(
        "list_trip_requests",
        lambda: TripMembershipService(db).list_requests(
            trip_id=trip_id,
            user_id=user_id,
            statuses=statuses,
            dismissed=dismissed,
            limit=limit,
            offset=offset,
        ),
    )


def list_trip_requests_for_owner(
    db: Session,
    trip_id: str,
    actor_id: str,
    statuses: Optional[Sequence[str]] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> ActionResult[List[TripRequestListItem]]:
    return run_action(
        "list_trip_requests_for_owner",
        lambda: TripMembershipService(db).list_requests_for_owner(
            trip_id, actor_id, statuses, limit, offset
        ),
    )


def add_trip_owner(db: Session, trip_id: str, owner_id: str) -> ActionResult[TripMemberResponse]:
    """Hook for the trip layer once a trip row exists."""
    return run_action(
        "add_trip_owner",
        lambda: TripMemberResponse.model_validate(
            TripMembershipService(db).add_owner(trip_id, owner_id)
        ),
        "Owner added.",
    )


def leave_trip(db: Session, trip_id: str, user_id: str) -> ActionResult[None]:
    return run_action(
        "leave_trip", lambda: TripMembershipService(db).leave(trip_id, user_id), "You left the trip."
    )


def remove_trip_member(
    db: Session, trip_id: str, user_id: str, actor_id: str
) -> ActionResult[None]:
    return run_action(
        "remove_trip_member",
        lambda: TripMembershipService(db).remove_member(trip_id, user_id, actor_id),
        "Member removed.",
    )


def update_trip_member_role(
    db: Session, trip_id: str, user_id: str, role: str, actor_id: str
) -> ActionResult[TripMemberResponse]:
    return run_action(
        "update_trip_member_role",
        lambda: TripMemberResponse.model_validate(
            TripMembershipService(db).update_member_role(trip_id, user_id, role, actor_id)
        ),
        "Role updated.",
    )


def list_trip_members(
    db: Session, trip_id: str, role: Optional[str] = None
) -> ActionResult[List[TripMemberListItem]]:
    return run_action(
        "list_trip_members", lambda: TripMembershipService(db).list_members(trip_id, role)
    )


def get_trip_capacity(db: Session, trip_id: str) -> ActionResult[TripCapacity]:
    def _capacity() -> TripCapacity:
        trip = TripMembershipService(db).get_capacity(trip_id)
        return TripCapacity(
            trip_id=trip.id,
            max_group_size=trip.max_group_size,
            current_group_size=trip.current_group_size,
        )

    return run_action("get_trip_capacity", _capacity)


def list_member_trips(
    db: Session, user_id: str, limit: Optional[int] = None, offset: int = 0
) -> ActionResult[List[MemberTripItem]]:
    return run_action(
        "list_member_trips",
        lambda: TripMembershipService(db).list_member_trips(user_id, limit, offset),
    )
