# backend/travelgraph/repositories/block_repository.py
"""Block repository."""

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ..core.timezone_utils import utc_now
from ..core.ulid_helper import generate_ulid
from ..models.block import Block
from .base_repository import BaseRepository


class BlockRepository(BaseRepository[Block]):
    def __init__(self, db: Session):
        super().__init__(db, Block)

    def add(self, blocker_id: str, blocked_id: str, block_type: str) -> bool:
        """Insert a block; blocking twice is a no-op."""
        return self.create_ignore_conflict(
            id=generate_ulid(),
            blocker_id=blocker_id,
            blocked_id=blocked_id,
            block_type=block_type,
            created_at=utc_now(),
        )

    def remove(self, blocker_id: str, blocked_id: str, block_type: str) -> int:
        return (
            self.db.query(Block)
            .filter(
                Block.blocker_id == blocker_id,
                Block.blocked_id == blocked_id,
                Block.block_type == block_type,
            )
            .delete(synchronize_session="fetch")
        )

    def exists_between(self, user_a: str, user_b: str, block_type: str) -> bool:
        """A block in either direction."""
        return (
            self.db.query(Block.id)
            .filter(
                Block.block_type == block_type,
                or_(
                    and_(Block.blocker_id == user_a, Block.blocked_id == user_b),
                    and_(Block.blocker_id == user_b, Block.blocked_id == user_a),
                ),
            )
            .first()
            is not None
        )
