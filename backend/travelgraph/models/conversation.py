# backend/travelgraph/models/conversation.py
"""
Direct conversation model.

One conversation per unordered user pair, stored canonically with
``user_id_low < user_id_high``.

Design decisions:
- Tier ('request' or 'active') is derived from mutual follow state when the row
  is created and only ever moves from 'request' to 'active'
- Read state is one timestamp per side; None means the side has unread messages
- ``last_message_at`` drives inbox ordering so marking read does not reorder
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
import ulid

from ..core.timezone_utils import utc_now
from ..database import Base


class Conversation(Base):
    """
    Conversation between two users.

    Attributes:
        id: ULID primary key
        user_id_low: Lexicographically smaller participant
        user_id_high: Lexicographically larger participant
        status: 'request' until the pair mutually follow, then 'active'
        last_message_id: Most recent DirectMessage id
        last_message_at: When the most recent message was sent
        low_last_read_at: When the low side last read the thread
        high_last_read_at: When the high side last read the thread
    """

    __tablename__ = "direct_conversations"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id_low = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_id_high = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(10), nullable=False, default="request")
    last_message_id = Column(String(26), nullable=True)
    last_message_at = Column(DateTime(timezone=True), nullable=True)
    low_last_read_at = Column(DateTime(timezone=True), nullable=True)
    high_last_read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    messages = relationship(
        "DirectMessage",
        back_populates="conversation",
        order_by="DirectMessage.created_at",
        cascade="all, delete-orphan",
        lazy="noload",
    )

    __table_args__ = (
        UniqueConstraint("user_id_low", "user_id_high", name="uq_direct_conversations_pair"),
        CheckConstraint("user_id_low < user_id_high", name="ck_direct_conversations_order"),
        CheckConstraint("status IN ('request', 'active')", name="ck_direct_conversations_status"),
        Index("idx_direct_conversations_high", "user_id_high"),
        Index("idx_direct_conversations_last_message", "last_message_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Conversation(id={self.id}, pair=({self.user_id_low}, {self.user_id_high}), "
            f"status={self.status})>"
        )

    def get_other_user_id(self, current_user_id: str) -> str:
        """
        Get the ID of the other participant in the conversation.

        Args:
            current_user_id: The ID of the current user

        Returns:
            The ID of the other participant
        """
        if current_user_id == self.user_id_low:
            return str(self.user_id_high)
        return str(self.user_id_low)

    def is_participant(self, user_id: str) -> bool:
        return user_id in (self.user_id_low, self.user_id_high)

    def last_read_at_for(self, user_id: str):
        if user_id == self.user_id_low:
            return self.low_last_read_at
        return self.high_last_read_at
