# backend/travelgraph/actions/notification_actions.py
"""Notification feed actions."""

from datetime import datetime

from sqlalchemy.orm import Session

from ..schemas.notifications import NotificationFeed, UnreadCountResponse
from ..schemas.results import ActionResult
from ..services.notification_service import DEFAULT_FEED_LIMIT, NotificationService
from .base import run_action


def get_unread_count(db: Session, user_id: str) -> ActionResult[UnreadCountResponse]:
    def _count() -> UnreadCountResponse:
        breakdown = NotificationService(db).unread_breakdown(user_id)
        return UnreadCountResponse(count=breakdown.total, breakdown=breakdown)

    return run_action("get_unread_count", _count)


def get_notifications(
    db: Session, user_id: str, limit: int = DEFAULT_FEED_LIMIT
) -> ActionResult[NotificationFeed]:
    return run_action(
        "get_notifications", lambda: NotificationService(db).get_feed(user_id, limit)
    )


def mark_notifications_read(db: Session, user_id: str) -> ActionResult[datetime]:
    return run_action(
        "mark_notifications_read",
        lambda: NotificationService(db).mark_read(user_id),
        "Notifications marked as read.",
    )


def dismiss_verification_outcome(db: Session, user_id: str) -> ActionResult[None]:
    return run_action(
        "dismiss_verification_outcome",
        lambda: NotificationService(db).dismiss_verification_outcome(user_id),
        "Notification dismissed.",
    )
