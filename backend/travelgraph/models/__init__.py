# backend/travelgraph/models/__init__.py
"""
SQLAlchemy models for travelgraph.

Importing this package registers every table on ``Base.metadata``.
"""

from .activity import ActivityComment, ActivityEvent, ActivityLike
from .block import Block
from .conversation import Conversation
from .follow import Follow
from .match import Match
from .message import DirectMessage
from .trip import Trip, TripLike, TripMember
from .trip_request import TripRequest
from .user import User

__all__ = [
    "ActivityComment",
    "ActivityEvent",
    "ActivityLike",
    "Block",
    "Conversation",
    "DirectMessage",
    "Follow",
    "Match",
    "Trip",
    "TripLike",
    "TripMember",
    "TripRequest",
    "User",
]
