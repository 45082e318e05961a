# backend/travelgraph/routes/v1/feed.py
"""
Engagement feed routes - API v1

Endpoints:
    POST /events/{event_id}/like       → Toggle a like
    POST /events/{event_id}/comments   → Comment on an event
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from ...actions import activity_actions
from ...database import get_db
from ...dependencies.auth import get_current_user_id
from ...schemas.activity import ActivityCommentResponse, CommentCreate, LikeToggleResult
from ...schemas.results import ActionResult
from ._results import ULID_PATH_PATTERN, unwrap

logger = logging.getLogger(__name__)

router = APIRouter(tags=["feed-v1"])


@router.post("/events/{event_id}/like", response_model=ActionResult[LikeToggleResult])
async def toggle_like(
    event_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[LikeToggleResult]:
    result = await asyncio.to_thread(activity_actions.toggle_activity_like, db, event_id, user_id)
    return unwrap(result)


@router.post(
    "/events/{event_id}/comments", response_model=ActionResult[ActivityCommentResponse]
)
async def add_comment(
    body: CommentCreate,
    event_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[ActivityCommentResponse]:
    result = await asyncio.to_thread(
        activity_actions.comment_on_activity, db, event_id, user_id, body.content
    )
    return unwrap(result)
