# backend/travelgraph/models/block.py
"""User-to-user blocks."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, String, UniqueConstraint
import ulid

from ..core.timezone_utils import utc_now
from ..database import Base


class Block(Base):
    """``blocker_id`` has blocked ``blocked_id`` for direct messages or profile views."""

    __tablename__ = "blocks"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    blocker_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    blocked_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    block_type = Column(String(10), nullable=False, default="dm")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    __table_args__ = (
        UniqueConstraint("blocker_id", "blocked_id", "block_type", name="uq_blocks_pair_type"),
        CheckConstraint("block_type IN ('dm', 'profile')", name="ck_blocks_type"),
        CheckConstraint("blocker_id <> blocked_id", name="ck_blocks_not_self"),
    )

    def __repr__(self) -> str:
        return f"<Block({self.blocker_id} -x {self.blocked_id}, type={self.block_type})>"
