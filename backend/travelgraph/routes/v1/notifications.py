# backend/travelgraph/routes/v1/notifications.py
"""
Notification routes - API v1

Endpoints:
    GET /                          → Merged notification feed, newest first
    GET /unread-count              → Unread total with per-source breakdown
    POST /mark-read                → Move the cursor to now
    POST /verification/dismiss     → Dismiss the verification outcome card
"""

import asyncio
from datetime import datetime
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...actions import notification_actions
from ...database import get_db
from ...dependencies.auth import get_current_user_id
from ...schemas.notifications import NotificationFeed, UnreadCountResponse
from ...schemas.results import ActionResult
from ...services.notification_service import DEFAULT_FEED_LIMIT
from ._results import unwrap

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications-v1"])


@router.get("", response_model=ActionResult[NotificationFeed])
async def get_notifications(
    limit: int = Query(DEFAULT_FEED_LIMIT, ge=1, le=200),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[NotificationFeed]:
    result = await asyncio.to_thread(notification_actions.get_notifications, db, user_id, limit)
    return unwrap(result)


@router.get("/unread-count", response_model=ActionResult[UnreadCountResponse])
async def get_unread_count(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[UnreadCountResponse]:
    result = await asyncio.to_thread(notification_actions.get_unread_count, db, user_id)
    return unwrap(result)


@router.post("/mark-read", response_model=ActionResult[datetime])
async def mark_notifications_read(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[datetime]:
    """Dismissal flags are untouched; only the cursor moves."""
    result = await asyncio.to_thread(notification_actions.mark_notifications_read, db, user_id)
    return unwrap(result)


@router.post("/verification/dismiss", response_model=ActionResult[None])
async def dismiss_verification_outcome(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[None]:
    result = await asyncio.to_thread(
        notification_actions.dismiss_verification_outcome, db, user_id
    )
    return unwrap(result)
