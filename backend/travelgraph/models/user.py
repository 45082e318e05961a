# backend/travelgraph/models/user.py
"""
User model.

Profiles are owned by the profile layer; this engine reads them and only
writes the notification cursor and the verification dismissal flag.
"""

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, String
import ulid

from ..core.timezone_utils import utc_now
from ..database import Base


class User(Base):
    """
    A platform account as seen by the social engine.

    Attributes:
        deactivated: Soft-delete flag; every read path filters it out
        onboarding_completed: Only onboarded users appear in discovery
        travel_preferences: Free-form preference tags used for match scoring
        last_checked_notifications_at: Notification cursor (None means never)
        verification_outcome_notified_at: When the verification outcome landed
        verification_outcome_dismissed: Per-card dismissal for that outcome
    """

    __tablename__ = "users"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    username = Column(String(50), nullable=False, unique=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    profile_photo = Column(String(500), nullable=True)

    deactivated = Column(Boolean, nullable=False, default=False)
    onboarding_completed = Column(Boolean, nullable=False, default=False)

    travel_preferences = Column(JSON, nullable=False, default=list)
    budget_preference = Column(String(50), nullable=True)

    last_checked_notifications_at = Column(DateTime(timezone=True), nullable=True)
    verification_status = Column(String(20), nullable=True)
    verification_outcome_notified_at = Column(DateTime(timezone=True), nullable=True)
    verification_outcome_dismissed = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    __table_args__ = (Index("idx_users_onboarding_active", "onboarding_completed", "deactivated"),)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"
