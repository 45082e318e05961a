"""Engagement feed schemas."""

from typing import Any, Dict, Optional

from pydantic import Field

from ..core.enums import ActivityEventType
from .base import StandardizedModel, StrictModel, UtcDatetime


class ActivityEventResponse(StandardizedModel):
    id: str
    user_id: str
    event_type: ActivityEventType
    related_id: Optional[str] = None
    target_user_id: Optional[str] = None
    event_data: Optional[Dict[str, Any]] = None
    like_count: int = 0
    comment_count: int = 0
    created_at: UtcDatetime


class CommentCreate(StrictModel):
    content: str = Field(..., min_length=1, max_length=2000)


class ActivityCommentResponse(StandardizedModel):
    id: str
    event_id: str
    user_id: str
    content: str
    created_at: UtcDatetime


class LikeToggleResult(StandardizedModel):
    liked: bool
    like_count: int
