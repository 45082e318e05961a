"""Trip membership schemas."""

from typing import Optional

from pydantic import Field

from ..core.enums import TripMemberRole, TripRequestStatus
from .base import StandardizedModel, StrictModel, UtcDatetime
from .user import UserSummary


class JoinRequestCreate(StrictModel):
    message: Optional[str] = Field(default=None, max_length=1000)


class ResolveRequestBody(StrictModel):
    status: TripRequestStatus = Field(..., description="accepted, rejected or expired")


class MemberRoleUpdate(StrictModel):
    role: TripMemberRole


class TripRequestResponse(StandardizedModel):
    id: str
    trip_id: str
    user_id: str
    status: TripRequestStatus
    message: Optional[str] = None
    dismissed: bool = False
    created_at: UtcDatetime
    updated_at: UtcDatetime


class TripRequestListItem(StandardizedModel):
    request: TripRequestResponse
    requester: UserSummary
    trip_title: str


class TripMemberResponse(StandardizedModel):
    trip_id: str
    user_id: str
    role: TripMemberRole
    joined_at: UtcDatetime


class TripMemberListItem(StandardizedModel):
    member: TripMemberResponse
    user: UserSummary


class TripCapacity(StandardizedModel):
    trip_id: str
    max_group_size: Optional[int] = None
    current_group_size: int


class TripSummary(StandardizedModel):
    id: str
    owner_id: str
    title: str
    max_group_size: Optional[int] = None
    current_group_size: int
    created_at: UtcDatetime


class MemberTripItem(StandardizedModel):
    trip: TripSummary
    role: TripMemberRole
    joined_at: UtcDatetime
