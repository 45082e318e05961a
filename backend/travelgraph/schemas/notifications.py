"""
Notification feed schemas.

The feed is a closed set of variants discriminated on ``type``. Each variant
carries only the fields its source row provides, plus ``timestamp`` and
``is_unread`` (timestamp newer than the user's cursor).
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .base import OptionalUtcDatetime, UtcDatetime
from .user import UserSummary


class _NotificationBase(BaseModel):
    timestamp: UtcDatetime
    is_unread: bool


class VerificationOutcomeNotification(_NotificationBase):
    type: Literal["verification_outcome"] = "verification_outcome"
    verification_status: Optional[str] = None


class IncomingTripRequestNotification(_NotificationBase):
    type: Literal["incoming_trip_request"] = "incoming_trip_request"
    request_id: str
    trip_id: str
    trip_title: str
    requester: UserSummary
    message: Optional[str] = None


class OutgoingRequestStatusNotification(_NotificationBase):
    type: Literal["outgoing_request_status"] = "outgoing_request_status"
    request_id: str
    trip_id: str
    trip_title: str
    status: Literal["accepted", "rejected"]


class IncomingFollowRequestNotification(_NotificationBase):
    type: Literal["incoming_follow_request"] = "incoming_follow_request"
    follower: UserSummary


class AcceptedFollowNotification(_NotificationBase):
    type: Literal["accepted_follow"] = "accepted_follow"
    followed: UserSummary


class TripLikeNotification(_NotificationBase):
    type: Literal["trip_like"] = "trip_like"
    trip_id: str
    trip_title: str
    liker: UserSummary


class LikeOnPostNotification(_NotificationBase):
    type: Literal["like_on_post"] = "like_on_post"
    event_id: str
    event_type: str
    liker: UserSummary


class CommentOnPostNotification(_NotificationBase):
    type: Literal["comment_on_post"] = "comment_on_post"
    event_id: str
    comment_id: str
    content: str
    author: UserSummary


class AcceptedMatchNotification(_NotificationBase):
    type: Literal["accepted_match"] = "accepted_match"
    match_id: str
    matched_user: UserSummary


Notification = Annotated[
    Union[
        VerificationOutcomeNotification,
        IncomingTripRequestNotification,
        OutgoingRequestStatusNotification,
        IncomingFollowRequestNotification,
        AcceptedFollowNotification,
        TripLikeNotification,
        LikeOnPostNotification,
        CommentOnPostNotification,
        AcceptedMatchNotification,
    ],
    Field(discriminator="type"),
]


class UnreadBreakdown(BaseModel):
    verification_outcome: int = 0
    incoming_trip_requests: int = 0
    outgoing_request_updates: int = 0
    incoming_follow_requests: int = 0
    accepted_follows: int = 0
    post_engagement: int = 0
    accepted_matches: int = 0
    trip_likes: int = 0

    @property
    def total(self) -> int:
        return (
            self.verification_outcome
            + self.incoming_trip_requests
            + self.outgoing_request_updates
            + self.incoming_follow_requests
            + self.accepted_follows
            + self.post_engagement
            + self.accepted_matches
            + self.trip_likes
        )


class UnreadCountResponse(BaseModel):
    count: int
    breakdown: UnreadBreakdown


class NotificationFeed(BaseModel):
    items: List[Notification] = Field(default_factory=list)
    unread_count: int = 0
    last_checked_at: OptionalUtcDatetime = None
