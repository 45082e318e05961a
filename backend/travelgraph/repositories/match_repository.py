# backend/travelgraph/repositories/match_repository.py
"""
Match repository.

All methods take an already canonical ``(low, high)`` pair; ordering is the
caller's job (see ``travelgraph.core.pairs``).
"""

from datetime import datetime
from typing import List, Optional, Tuple, cast

from sqlalchemy import and_, func, or_, select, union
from sqlalchemy.orm import Session

from ..core.pairs import CanonicalPair
from ..core.timezone_utils import utc_now
from ..core.ulid_helper import generate_ulid
from ..models.follow import Follow
from ..models.match import Match
from ..models.user import User
from .base_repository import BaseRepository


class MatchRepository(BaseRepository[Match]):
    """Data access for ``matches`` and the discovery candidate query."""

    def __init__(self, db: Session):
        super().__init__(db, Match)

    def find_by_pair(self, pair: CanonicalPair, for_update: bool = False) -> Optional[Match]:
        query = self.db.query(Match).filter(
            Match.user_id_low == pair.low,
            Match.user_id_high == pair.high,
        )
        if for_update:
            query = query.with_for_update()
        return cast(Optional[Match], query.first())

    def insert_if_absent(self, pair: CanonicalPair, status: str, initiated_by: str) -> bool:
        """Insert a row for the pair; returns False when another writer got there first."""
        now = utc_now()
        return self.create_ignore_conflict(
            id=generate_ulid(),
            user_id_low=pair.low,
            user_id_high=pair.high,
            status=status,
            initiated_by=initiated_by,
            dismissed_by_low=False,
            dismissed_by_high=False,
            created_at=now,
            updated_at=now,
        )

    def accept_if_initiated_by_other(self, match_id: str, caller_id: str) -> int:
        """
        Guarded flip ``pending -> accepted``.

        Only the side that did not initiate can complete the match, and only
        one of two racing callers sees a non-zero rowcount.
        """
        return (
            self.db.query(Match)
            .filter(
                Match.id == match_id,
                Match.status == "pending",
                Match.initiated_by != caller_id,
            )
            .update(
                {
                    Match.status: "accepted",
                    Match.dismissed_by_low: False,
                    Match.dismissed_by_high: False,
                },
                synchronize_session="fetch",
            )
        )

    def reopen(self, match_id: str, initiated_by: str) -> int:
        """Overwrite a rejected or expired row back to pending for a new initiator."""
        return (
            self.db.query(Match)
            .filter(Match.id == match_id, Match.status.in_(["rejected", "expired"]))
            .update(
                {
                    Match.status: "pending",
                    Match.initiated_by: initiated_by,
                    Match.dismissed_by_low: False,
                    Match.dismissed_by_high: False,
                },
                synchronize_session="fetch",
            )
        )

    def mark_rejected(self, match_id: str, initiated_by: str) -> int:
        """Move any non-accepted row to rejected, attributed to the dismisser."""
        return (
            self.db.query(Match)
            .filter(Match.id == match_id, Match.status != "accepted")
            .update(
                {Match.status: "rejected", Match.initiated_by: initiated_by},
                synchronize_session="fetch",
            )
        )

    def set_dismissed(self, match_id: str, side: str) -> int:
        """
        Flag one side's card as dismissed.

        ``updated_at`` is written back unchanged: the other side's unread count
        keys on it.
        """
        column = Match.dismissed_by_low if side == "low" else Match.dismissed_by_high
        return (
            self.db.query(Match)
            .filter(Match.id == match_id, Match.status == "accepted")
            .update(
                {column: True, Match.updated_at: Match.updated_at},
                synchronize_session="fetch",
            )
        )

    def list_accepted_for(
        self, user_id: str, limit: int, offset: int = 0
    ) -> List[Tuple[Match, User]]:
        """Accepted matches of ``user_id`` with the active counterpart."""
        rows = (
            self.db.query(Match, User)
            .join(
                User,
                or_(
                    and_(Match.user_id_low == user_id, User.id == Match.user_id_high),
                    and_(Match.user_id_high == user_id, User.id == Match.user_id_low),
                ),
            )
            .filter(Match.status == "accepted", User.deactivated.is_(False))
            .order_by(Match.updated_at.desc(), Match.id)
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [(row[0], row[1]) for row in rows]

    def find_candidates(
        self, viewer_id: str, cooldown_cutoff: datetime, limit: int, offset: int = 0
    ) -> List[User]:
        """
        Onboarded, active users the viewer could still be matched with.

        Excluded: the viewer, users the viewer follows, accepted matches,
        the viewer's own pending swipes, profiles the viewer passed on, and
        rejections by the other user newer than the cutoff.

        Two kinds of row deliberately stay visible even though a match row
        exists: a pending row started by the other user, so the viewer can
        complete the match, and an expired row, which reopens on the next
        swipe. Every other existing row hides the profile.
        """
        blocking = or_(
            Match.status == "accepted",
            and_(Match.status == "pending", Match.initiated_by == viewer_id),
            and_(
                Match.status == "rejected",
                or_(Match.initiated_by == viewer_id, Match.updated_at >= cooldown_cutoff),
            ),
        )
        matched = union(
            select(Match.user_id_high).where(Match.user_id_low == viewer_id, blocking),
            select(Match.user_id_low).where(Match.user_id_high == viewer_id, blocking),
        ).subquery()
        followed = select(Follow.following_id).where(
            Follow.follower_id == viewer_id, Follow.status == "accepted"
        )

        return cast(
            List[User],
            self.db.query(User)
            .filter(
                User.id != viewer_id,
                User.deactivated.is_(False),
                User.onboarding_completed.is_(True),
                User.id.not_in(followed),
                User.id.not_in(select(matched.c[0])),
            )
            .order_by(func.random())
            .offset(offset)
            .limit(limit)
            .all(),
        )
