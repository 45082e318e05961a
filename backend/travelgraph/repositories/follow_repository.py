# backend/travelgraph/repositories/follow_repository.py
"""
Follow edge repository.

Edges are keyed by ``(follower_id, following_id)``; both directions of a pair
are separate rows.
"""

from typing import List, Optional, Tuple, cast

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, aliased

from ..core.timezone_utils import utc_now
from ..models.follow import Follow
from ..models.user import User
from .base_repository import BaseRepository


class FollowRepository(BaseRepository[Follow]):
    """Data access for ``follows``."""

    def __init__(self, db: Session):
        super().__init__(db, Follow)

    def get_edge(
        self, follower_id: str, following_id: str, for_update: bool = False
    ) -> Optional[Follow]:
        query = self.db.query(Follow).filter(
            Follow.follower_id == follower_id,
            Follow.following_id == following_id,
        )
        if for_update:
            query = query.with_for_update()
        return cast(Optional[Follow], query.first())

    def get_edges_between(self, user_a: str, user_b: str) -> List[Follow]:
        """Both directions of a pair, whichever exist."""
        return cast(
            List[Follow],
            self.db.query(Follow)
            .filter(
                or_(
                    and_(Follow.follower_id == user_a, Follow.following_id == user_b),
                    and_(Follow.follower_id == user_b, Follow.following_id == user_a),
                )
            )
            .all(),
        )

    def is_mutual(self, user_a: str, user_b: str) -> bool:
        """Both edges exist and are accepted."""
        edges = self.get_edges_between(user_a, user_b)
        return len(edges) == 2 and all(edge.status == "accepted" for edge in edges)

    def insert_ignore_conflict(self, follower_id: str, following_id: str, status: str) -> bool:
        """Insert an edge; an existing edge for the ordered pair is left alone."""
        now = utc_now()
        return self.create_ignore_conflict(
            follower_id=follower_id,
            following_id=following_id,
            status=status,
            dismissed_by_follower=False,
            created_at=now,
            updated_at=now,
        )

    def promote_pending(self, follower_id: str, following_id: str) -> int:
        """Flip a pending edge to accepted and clear the follower's dismissal."""
        return (
            self.db.query(Follow)
            .filter(
                Follow.follower_id == follower_id,
                Follow.following_id == following_id,
                Follow.status == "pending",
            )
            .update(
                {Follow.status: "accepted", Follow.dismissed_by_follower: False},
                synchronize_session="fetch",
            )
        )

    def delete_edge(self, follower_id: str, following_id: str, status: str) -> int:
        return (
            self.db.query(Follow)
            .filter(
                Follow.follower_id == follower_id,
                Follow.following_id == following_id,
                Follow.status == status,
            )
            .delete(synchronize_session="fetch")
        )

    def set_dismissed(self, follower_id: str, following_id: str) -> int:
        return (
            self.db.query(Follow)
            .filter(
                Follow.follower_id == follower_id,
                Follow.following_id == following_id,
                Follow.status == "accepted",
                Follow.dismissed_by_follower.is_(False),
            )
            .update({Follow.dismissed_by_follower: True}, synchronize_session="fetch")
        )

    # Listing

    def list_incoming(
        self, user_id: str, status: str, limit: int, offset: int = 0
    ) -> List[Tuple[Follow, User]]:
        """Edges pointing at ``user_id`` joined to the active follower."""
        rows = (
            self.db.query(Follow, User)
            .join(User, User.id == Follow.follower_id)
            .filter(
                Follow.following_id == user_id,
                Follow.status == status,
                User.deactivated.is_(False),
            )
            .order_by(Follow.updated_at.desc(), Follow.follower_id)
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [(row[0], row[1]) for row in rows]

    def list_outgoing(
        self, user_id: str, status: str, limit: int, offset: int = 0
    ) -> List[Tuple[Follow, User]]:
        """Edges from ``user_id`` joined to the active followed user."""
        rows = (
            self.db.query(Follow, User)
            .join(User, User.id == Follow.following_id)
            .filter(
                Follow.follower_id == user_id,
                Follow.status == status,
                User.deactivated.is_(False),
            )
            .order_by(Follow.updated_at.desc(), Follow.following_id)
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [(row[0], row[1]) for row in rows]

    def list_mutuals(self, user_id: str, limit: int, offset: int = 0) -> List[User]:
        back = aliased(Follow)
        return cast(
            List[User],
            self.db.query(User)
            .join(Follow, and_(Follow.following_id == User.id, Follow.follower_id == user_id))
            .join(back, and_(back.follower_id == User.id, back.following_id == user_id))
            .filter(
                Follow.status == "accepted",
                back.status == "accepted",
                User.deactivated.is_(False),
            )
            .order_by(Follow.updated_at.desc(), User.id)
            .offset(offset)
            .limit(limit)
            .all(),
        )
