# backend/travelgraph/repositories/user_repository.py
"""
User directory access for the social engine.

Every lookup that feeds a list or a relationship check goes through the
``deactivated`` filter here.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Set, cast

from sqlalchemy.orm import Session

from ..models.user import User
from .base_repository import BaseRepository


class UserRepository(BaseRepository[User]):
    """Read-mostly repository over ``users``."""

    def __init__(self, db: Session):
        super().__init__(db, User)

    def get_active(self, user_id: str) -> Optional[User]:
        """Return the user unless missing or deactivated."""
        if not user_id:
            return None
        result = (
            self.db.query(User)
            .filter(User.id == user_id, User.deactivated.is_(False))
            .first()
        )
        return cast(Optional[User], result)

    def is_active(self, user_id: str) -> bool:
        return self.get_active(user_id) is not None

    def get_active_by_ids(self, user_ids: Iterable[str]) -> List[User]:
        ids = list({uid for uid in user_ids if uid})
        if not ids:
            return []
        return cast(
            List[User],
            self.db.query(User).filter(User.id.in_(ids), User.deactivated.is_(False)).all(),
        )

    def active_ids(self, user_ids: Iterable[str]) -> Set[str]:
        return {user.id for user in self.get_active_by_ids(user_ids)}

    def set_notification_cursor(self, user_id: str, checked_at: datetime) -> int:
        return (
            self.db.query(User)
            .filter(User.id == user_id)
            .update(
                {User.last_checked_notifications_at: checked_at}, synchronize_session="fetch"
            )
        )

    def dismiss_verification_outcome(self, user_id: str) -> int:
        return (
            self.db.query(User)
            .filter(User.id == user_id)
            .update({User.verification_outcome_dismissed: True}, synchronize_session="fetch")
        )
