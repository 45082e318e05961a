# backend/travelgraph/core/enums.py
"""
Core enums for the travelgraph social engine.

Values are persisted as plain strings; the enum classes give services and
schemas a closed vocabulary.
"""

from enum import Enum


class FollowStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"


class FollowRelation(str, Enum):
    """Relationship of a viewer to a subject as seen from the viewer."""

    SELF = "self"
    FOLLOWING = "following"
    PENDING_OUTGOING = "pending_outgoing"
    PENDING_INCOMING = "pending_incoming"
    NOT_FOLLOWING = "not_following"


class FollowRequestOutcome(str, Enum):
    SENT = "sent"
    AUTO_ACCEPTED = "auto_accepted"


class MatchStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


class MatchOutcome(str, Enum):
    """What a single ``create_or_advance`` call did to the pair."""

    CREATED = "created"
    ACCEPTED = "accepted"
    UNCHANGED = "unchanged"
    REOPENED = "reopened"


class TripRequestStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


class TripMemberRole(str, Enum):
    OWNER = "owner"
    MEMBER = "member"


class ConversationStatus(str, Enum):
    REQUEST = "request"
    ACTIVE = "active"


class BlockType(str, Enum):
    DM = "dm"
    PROFILE = "profile"


class ActivityEventType(str, Enum):
    NEW_PHOTO = "new_photo"
    NEW_TRIP = "new_trip"
    JOINED_TRIP = "joined_trip"
    LEFT_TRIP = "left_trip"
    NEW_REVIEW = "new_review"
    FOLLOW = "follow"
    LIKE_ON_POST = "like_on_post"
    COMMENT_ON_POST = "comment_on_post"


class VerificationStatus(str, Enum):
    UNVERIFIED = "unverified"
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class NotificationType(str, Enum):
    VERIFICATION_OUTCOME = "verification_outcome"
    INCOMING_TRIP_REQUEST = "incoming_trip_request"
    OUTGOING_REQUEST_STATUS = "outgoing_request_status"
    INCOMING_FOLLOW_REQUEST = "incoming_follow_request"
    ACCEPTED_FOLLOW = "accepted_follow"
    TRIP_LIKE = "trip_like"
    LIKE_ON_POST = "like_on_post"
    COMMENT_ON_POST = "comment_on_post"
    ACCEPTED_MATCH = "accepted_match"
