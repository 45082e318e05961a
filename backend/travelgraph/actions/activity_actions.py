# backend/travelgraph/actions/activity_actions.py
"""Engagement feed actions."""

from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..schemas.activity import ActivityCommentResponse, ActivityEventResponse, LikeToggleResult
from ..schemas.results import ActionResult
from ..services.activity_feed_service import ActivityFeedService
from .base import run_action


def emit_activity(
    db: Session,
    event_type: str,
    actor_id: str,
    related_id: Optional[str] = None,
    target_user_id: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> ActionResult[ActivityEventResponse]:
    """Entry point for the content layers (photos, trips, reviews)."""
    return run_action(
        "emit_activity",
        lambda: ActivityEventResponse.model_validate(
            ActivityFeedService(db).emit(event_type, actor_id, related_id, target_user_id, payload)
        ),
    )


def toggle_activity_like(
    db: Session, event_id: str, user_id: str
) -> ActionResult[LikeToggleResult]:
    return run_action(
        "toggle_activity_like",
        lambda: ActivityFeedService(db).toggle_like(event_id, user_id),
        on_success=lambda result: "Liked." if result.liked else "Like removed.",
    )


def comment_on_activity(
    db: Session, event_id: str, user_id: str, content: str
) -> ActionResult[ActivityCommentResponse]:
    return run_action(
        "comment_on_activity",
        lambda: ActivityCommentResponse.model_validate(
            ActivityFeedService(db).add_comment(event_id, user_id, content)
        ),
        "Comment added.",
    )
