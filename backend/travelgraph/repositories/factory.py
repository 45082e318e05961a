# backend/travelgraph/repositories/factory.py
"""
Repository Factory for travelgraph

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .activity_repository import ActivityRepository
    from .block_repository import BlockRepository
    from .conversation_repository import ConversationRepository
    from .follow_repository import FollowRepository
    from .match_repository import MatchRepository
    from .message_repository import MessageRepository
    from .notification_repository import NotificationRepository
    from .trip_repository import TripMemberRepository, TripRepository
    from .trip_request_repository import TripRequestRepository
    from .user_repository import UserRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation to ensure consistent initialization
    and makes it easy to swap implementations in tests.
    """

    @staticmethod
    def create_user_repository(db: Session) -> "UserRepository":
        from .user_repository import UserRepository

        return UserRepository(db)

    @staticmethod
    def create_follow_repository(db: Session) -> "FollowRepository":
        from .follow_repository import FollowRepository

        return FollowRepository(db)

    @staticmethod
    def create_match_repository(db: Session) -> "MatchRepository":
        from .match_repository import MatchRepository

        return MatchRepository(db)

    @staticmethod
    def create_trip_repository(db: Session) -> "TripRepository":
        from .trip_repository import TripRepository

        return TripRepository(db)

    @staticmethod
    def create_trip_member_repository(db: Session) -> "TripMemberRepository":
        from .trip_repository import TripMemberRepository

        return TripMemberRepository(db)

    @staticmethod
    def create_trip_request_repository(db: Session) -> "TripRequestRepository":
        from .trip_request_repository import TripRequestRepository

        return TripRequestRepository(db)

    @staticmethod
    def create_conversation_repository(db: Session) -> "ConversationRepository":
        """Create repository for direct conversations."""
        from .conversation_repository import ConversationRepository

        return ConversationRepository(db)

    @staticmethod
    def create_message_repository(db: Session) -> "MessageRepository":
        from .message_repository import MessageRepository

        return MessageRepository(db)

    @staticmethod
    def create_block_repository(db: Session) -> "BlockRepository":
        from .block_repository import BlockRepository

        return BlockRepository(db)

    @staticmethod
    def create_activity_repository(db: Session) -> "ActivityRepository":
        from .activity_repository import ActivityRepository

        return ActivityRepository(db)

    @staticmethod
    def create_notification_repository(db: Session) -> "NotificationRepository":
        """Create the read-only repository behind the notification feed."""
        from .notification_repository import NotificationRepository

        return NotificationRepository(db)
