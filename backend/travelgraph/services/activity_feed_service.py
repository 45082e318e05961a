# backend/travelgraph/services/activity_feed_service.py
"""
Engagement feed sink.

Lifecycle services record events here as side effects; the excluded content
layers emit their own events through ``emit``. Likes and comments adjust
counters on the event row atomically.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.enums import ActivityEventType
from ..core.exceptions import NotFoundException, ValidationException
from ..models.activity import ActivityComment, ActivityEvent
from ..repositories.activity_repository import ActivityRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.user_repository import UserRepository
from ..schemas.activity import LikeToggleResult
from .base import BaseService

logger = logging.getLogger(__name__)


class ActivityFeedService(BaseService):
    """Writes engagement events, likes and comments."""

    def __init__(
        self,
        db: Session,
        activity_repository: Optional[ActivityRepository] = None,
        user_repository: Optional[UserRepository] = None,
    ):
        super().__init__(db)
        self.activity_repository = (
            activity_repository or RepositoryFactory.create_activity_repository(db)
        )
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)

    def record_event(
        self,
        event_type: str,
        actor_id: str,
        related_id: Optional[str] = None,
        target_user_id: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> ActivityEvent:
        """
        Add an event to the caller's open transaction.

        Lifecycle services call this from inside their own ``transaction()``
        block; ``emit`` is the committing variant for outside callers.
        """
        try:
            kind = ActivityEventType(event_type)
        except ValueError:
            raise ValidationException(f"Unknown activity event type: {event_type}")

        if kind == ActivityEventType.FOLLOW and not target_user_id:
            raise ValidationException("Follow events require a target user.")

        event = self.activity_repository.create(
            user_id=actor_id,
            event_type=kind.value,
            related_id=related_id,
            target_user_id=target_user_id,
            event_data=payload,
        )
        self.logger.debug(f"Recorded {kind.value} event {event.id} for {actor_id}")
        return event

    @BaseService.measure_operation("emit_event")
    def emit(
        self,
        event_type: str,
        actor_id: str,
        related_id: Optional[str] = None,
        target_user_id: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> ActivityEvent:
        if not self.user_repository.is_active(actor_id):
            raise NotFoundException("User not found.")
        with self.transaction():
            return self.record_event(event_type, actor_id, related_id, target_user_id, payload)

    @BaseService.measure_operation("toggle_like")
    def toggle_like(self, event_id: str, user_id: str) -> LikeToggleResult:
        if self.activity_repository.get_by_id(event_id) is None:
            raise NotFoundException("Activity not found.")

        with self.transaction():
            if self.activity_repository.find_like(event_id, user_id):
                removed = self.activity_repository.remove_like(event_id, user_id)
                if removed:
                    self.activity_repository.adjust_like_count(event_id, -1)
                liked = False
            else:
                if self.activity_repository.add_like(event_id, user_id):
                    self.activity_repository.adjust_like_count(event_id, 1)
                liked = True

        event = self.activity_repository.get_by_id(event_id)
        self.activity_repository.refresh(event)
        return LikeToggleResult(liked=liked, like_count=event.like_count)

    @BaseService.measure_operation("add_comment")
    def add_comment(self, event_id: str, user_id: str, content: str) -> ActivityComment:
        text = (content or "").strip()
        if not text:
            raise ValidationException("Comment cannot be empty.")
        if self.activity_repository.get_by_id(event_id) is None:
            raise NotFoundException("Activity not found.")

        with self.transaction():
            comment = self.activity_repository.add_comment(event_id, user_id, text)

        self.log_operation("add_comment", event_id=event_id, user_id=user_id)
        return comment
