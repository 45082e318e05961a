# backend/travelgraph/routes/v1/trips.py
"""
Trip membership routes - API v1

Endpoints:
    POST /{trip_id}/requests                       → Ask to join a trip
    GET /{trip_id}/requests                        → Join requests for a trip (owner)
    GET /requests/mine                             → Caller's own join requests
    GET /joined                                    → Trips the caller is seated on
    POST /requests/{request_id}/resolve            → Accept, reject or expire a request
    POST /requests/{request_id}/dismiss            → Dismiss the request outcome card
    GET /{trip_id}/members                         → Roster
    PATCH /{trip_id}/members/{user_id}             → Change a member's role
    DELETE /{trip_id}/members/{user_id}            → Remove a member
    POST /{trip_id}/leave                          → Leave a trip
    POST /{trip_id}/owner                          → Seat the creator after trip creation
    GET /{trip_id}/capacity                        → Seats used and available
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from ...actions import trip_actions
from ...core.enums import TripMemberRole, TripRequestStatus
from ...database import get_db
from ...dependencies.auth import get_current_user_id
from ...schemas.results import ActionResult
from ...schemas.trip import (
    JoinRequestCreate,
    MemberRoleUpdate,
    MemberTripItem,
    ResolveRequestBody,
    TripCapacity,
    TripMemberListItem,
    TripMemberResponse,
    TripRequestListItem,
    TripRequestResponse,
)
from ._results import ULID_PATH_PATTERN, unwrap

logger = logging.getLogger(__name__)

router = APIRouter(tags=["trips-v1"])


@router.get("/joined", response_model=ActionResult[List[MemberTripItem]])
async def list_member_trips(
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[List[MemberTripItem]]:
    result = await asyncio.to_thread(trip_actions.list_member_trips, db, user_id, limit, offset)
    return unwrap(result)


@router.get("/requests/mine", response_model=ActionResult[List[TripRequestListItem]])
async def list_my_requests(
    status_filter: Optional[List[TripRequestStatus]] = Query(None, alias="status"),
    dismissed: Optional[bool] = Query(None),
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[List[TripRequestListItem]]:
    statuses = [s.value for s in status_filter] if status_filter else None
    result = await asyncio.to_thread(
        trip_actions.list_trip_requests,
        db,
        user_id=user_id,
        statuses=statuses,
        dismissed=dismissed,
        limit=limit,
        offset=offset,
    )
    return unwrap(result)


@router.post(
    "/requests/{request_id}/resolve", response_model=ActionResult[TripRequestResponse]
)
async def resolve_trip_request(
    body: ResolveRequestBody,
    request_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[TripRequestResponse]:
    """
    Owner decision on a join request.

    A full trip answers 422 with code CAPACITY_EXCEEDED and leaves the request pending.
    """
    result = await asyncio.to_thread(
        trip_actions.resolve_trip_request, db, request_id, user_id, body.status.value
    )
    return unwrap(result)


@router.post(
    "/requests/{request_id}/dismiss", response_model=ActionResult[TripRequestResponse]
)
async def dismiss_trip_request_notice(
    request_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[TripRequestResponse]:
    result = await asyncio.to_thread(
        trip_actions.dismiss_trip_request_notice, db, request_id, user_id
    )
    return unwrap(result)


@router.post("/{trip_id}/requests", response_model=ActionResult[TripRequestResponse])
async def request_to_join(
    body: JoinRequestCreate,
    trip_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[TripRequestResponse]:
    result = await asyncio.to_thread(
        trip_actions.request_to_join, db, trip_id, user_id, body.message
    )
    return unwrap(result)


@router.get("/{trip_id}/requests", response_model=ActionResult[List[TripRequestListItem]])
async def list_trip_requests(
    trip_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    status_filter: Optional[List[TripRequestStatus]] = Query(None, alias="status"),
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[List[TripRequestListItem]]:
    """Owners only."""
    statuses = [s.value for s in status_filter] if status_filter else None
    result = await asyncio.to_thread(
        trip_actions.list_trip_requests_for_owner, db, trip_id, user_id, statuses, limit, offset
    )
    return unwrap(result)


@router.get("/{trip_id}/members", response_model=ActionResult[List[TripMemberListItem]])
async def list_trip_members(
    trip_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    role: Optional[TripMemberRole] = Query(None),
    db: Session = Depends(get_db),
) -> ActionResult[List[TripMemberListItem]]:
    result = await asyncio.to_thread(
        trip_actions.list_trip_members, db, trip_id, role.value if role else None
    )
    return unwrap(result)


@router.patch(
    "/{trip_id}/members/{member_id}", response_model=ActionResult[TripMemberResponse]
)
async def update_trip_member_role(
    body: MemberRoleUpdate,
    trip_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    member_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[TripMemberResponse]:
    result = await asyncio.to_thread(
        trip_actions.update_trip_member_role, db, trip_id, member_id, body.role.value, user_id
    )
    return unwrap(result)


@router.delete("/{trip_id}/members/{member_id}", response_model=ActionResult[None])
async def remove_trip_member(
    trip_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    member_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[None]:
    result = await asyncio.to_thread(
        trip_actions.remove_trip_member, db, trip_id, member_id, user_id
    )
    return unwrap(result)


@router.post("/{trip_id}/leave", response_model=ActionResult[None])
async def leave_trip(
    trip_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[None]:
    result = await asyncio.to_thread(trip_actions.leave_trip, db, trip_id, user_id)
    return unwrap(result)


@router.post("/{trip_id}/owner", response_model=ActionResult[TripMemberResponse])
async def add_trip_owner(
    trip_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[TripMemberResponse]:
    result = await asyncio.to_thread(trip_actions.add_trip_owner, db, trip_id, user_id)
    return unwrap(result)


@router.get("/{trip_id}/capacity", response_model=ActionResult[TripCapacity])
async def get_trip_capacity(
    trip_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    db: Session = Depends(get_db),
) -> ActionResult[TripCapacity]:
    result = await asyncio.to_thread(trip_actions.get_trip_capacity, db, trip_id)
    return unwrap(result)
