# backend/travelgraph/repositories/message_repository.py
"""Direct message repository."""

from typing import List, cast

from sqlalchemy.orm import Session

from ..models.message import DirectMessage
from .base_repository import BaseRepository


class MessageRepository(BaseRepository[DirectMessage]):
    def __init__(self, db: Session):
        super().__init__(db, DirectMessage)

    def create_message(self, conversation_id: str, sender_id: str, content: str) -> DirectMessage:
        return self.create(conversation_id=conversation_id, sender_id=sender_id, content=content)

    def find_by_conversation(
        self, conversation_id: str, limit: int = 50, offset: int = 0
    ) -> List[DirectMessage]:
        """Messages oldest first."""
        return cast(
            List[DirectMessage],
            self.db.query(DirectMessage)
            .filter(DirectMessage.conversation_id == conversation_id)
            .order_by(DirectMessage.created_at.asc(), DirectMessage.id.asc())
            .offset(offset)
            .limit(limit)
            .all(),
        )
