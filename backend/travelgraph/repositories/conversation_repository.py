# backend/travelgraph/repositories/conversation_repository.py
"""
Conversation Repository for per-user-pair direct messaging.

Provides data access methods for conversations between two users.
Pairs are always passed in canonical order.
"""

from datetime import datetime
from typing import List, Optional, Tuple, cast

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..core.pairs import CanonicalPair
from ..core.timezone_utils import utc_now
from ..core.ulid_helper import generate_ulid
from ..models.conversation import Conversation
from ..models.message import DirectMessage
from .base_repository import BaseRepository


class ConversationRepository(BaseRepository[Conversation]):
    """
    Repository for Conversation entity operations.

    Handles all database operations for conversations including:
    - Finding or creating conversations for user pairs
    - Tier upgrades and per-side read state
    - Listing conversations for a user with their latest message
    """

    def __init__(self, db: Session):
        """Initialize with database session."""
        super().__init__(db, Conversation)

    def find_by_pair(self, pair: CanonicalPair, for_update: bool = False) -> Optional[Conversation]:
        query = self.db.query(Conversation).filter(
            Conversation.user_id_low == pair.low,
            Conversation.user_id_high == pair.high,
        )
        if for_update:
            query = query.with_for_update()
        return cast(Optional[Conversation], query.first())

    def get_or_create(self, pair: CanonicalPair, status: str) -> Tuple[Conversation, bool]:
        """
        Get an existing conversation or create a new one.

        Safe under concurrent creation: a losing insert falls back to reading
        the winner's row.

        Returns:
            Tuple of (conversation, created) where created is True if new
        """
        existing = self.find_by_pair(pair)
        if existing:
            return existing, False

        now = utc_now()
        created = self.create_ignore_conflict(
            id=generate_ulid(),
            user_id_low=pair.low,
            user_id_high=pair.high,
            status=status,
            created_at=now,
            updated_at=now,
        )
        conversation = self.find_by_pair(pair)
        return cast(Conversation, conversation), created

    def upgrade_to_active(self, conversation_id: str) -> int:
        """``request -> active``; never the other way."""
        return (
            self.db.query(Conversation)
            .filter(Conversation.id == conversation_id, Conversation.status == "request")
            .update({Conversation.status: "active"}, synchronize_session="fetch")
        )

    def set_last_read(self, conversation_id: str, side: str, read_at: Optional[datetime]) -> int:
        column = Conversation.low_last_read_at if side == "low" else Conversation.high_last_read_at
        return (
            self.db.query(Conversation)
            .filter(Conversation.id == conversation_id)
            .update({column: read_at}, synchronize_session="fetch")
        )

    def record_last_message(
        self, conversation_id: str, message: DirectMessage, recipient_side: str
    ) -> int:
        """Point the conversation at ``message`` and mark it unread for the recipient."""
        read_column = (
            Conversation.low_last_read_at
            if recipient_side == "low"
            else Conversation.high_last_read_at
        )
        return (
            self.db.query(Conversation)
            .filter(Conversation.id == conversation_id)
            .update(
                {
                    Conversation.last_message_id: message.id,
                    Conversation.last_message_at: message.created_at,
                    read_column: None,
                },
                synchronize_session="fetch",
            )
        )

    def find_for_user(
        self, user_id: str, limit: int = 50, offset: int = 0
    ) -> List[Tuple[Conversation, Optional[DirectMessage]]]:
        """
        Conversations of ``user_id``, latest activity first.

        Returns:
            (conversation, last message) tuples
        """
        rows = (
            self.db.query(Conversation, DirectMessage)
            .outerjoin(DirectMessage, DirectMessage.id == Conversation.last_message_id)
            .filter(
                or_(
                    Conversation.user_id_low == user_id,
                    Conversation.user_id_high == user_id,
                ),
            )
            .order_by(
                func.coalesce(Conversation.last_message_at, Conversation.created_at).desc(),
                Conversation.id.desc(),
            )
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [(row[0], row[1]) for row in rows]
