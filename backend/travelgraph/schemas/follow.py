"""Follow edge schemas."""

from pydantic import Field

from ..core.enums import FollowRelation, FollowRequestOutcome, FollowStatus
from .base import StandardizedModel, UtcDatetime
from .user import UserSummary


class FollowEdgeResponse(StandardizedModel):
    follower_id: str
    following_id: str
    status: FollowStatus
    dismissed_by_follower: bool = False
    created_at: UtcDatetime
    updated_at: UtcDatetime


class FollowRequestResult(StandardizedModel):
    """Outcome of a follow request; ``auto_accepted`` when it met a reciprocal request."""

    outcome: FollowRequestOutcome
    edge: FollowEdgeResponse


class FollowStatusResponse(StandardizedModel):
    status: FollowRelation = Field(..., description="Relationship as seen by the viewer")


class FollowListItem(StandardizedModel):
    user: UserSummary
    status: FollowStatus
    since: UtcDatetime
