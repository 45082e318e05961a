# backend/travelgraph/services/match_service.py
"""
Match Service.

Swipe-style matching over canonical pairs:

    (none) -> pending -> accepted | rejected
    rejected -> pending      new swipe after the cooldown window

The acceptance itself is one guarded UPDATE. The cascades that follow it
(reciprocal follow edges, conversation upgrade, feed events) each run in their
own transaction after the acceptance commits; a cascade failure is logged and
never undoes the match.
"""

from datetime import timedelta
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import ActivityEventType, FollowStatus, MatchOutcome, MatchStatus
from ..core.exceptions import (
    InvalidStateException,
    NotFoundException,
    ServiceException,
    UnauthorizedException,
)
from ..core.pairs import CanonicalPair, canonical_pair
from ..core.timezone_utils import ensure_utc, utc_now
from ..models.match import Match
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..repositories.follow_repository import FollowRepository
from ..repositories.match_repository import MatchRepository
from ..repositories.user_repository import UserRepository
from ..schemas.match import AcceptedMatchItem, MatchRejectResult, MatchResponse, MatchResult
from ..schemas.user import CandidateProfile, UserSummary
from .activity_feed_service import ActivityFeedService
from .base import BaseService
from .conversation_service import ConversationService
from .match_scoring import calculate_match_percentage

logger = logging.getLogger(__name__)


class MatchService(BaseService):
    """Pairwise matching, rejection cooldowns and discovery candidates."""

    def __init__(
        self,
        db: Session,
        match_repository: Optional[MatchRepository] = None,
        follow_repository: Optional[FollowRepository] = None,
        user_repository: Optional[UserRepository] = None,
        conversation_service: Optional[ConversationService] = None,
        activity_service: Optional[ActivityFeedService] = None,
    ):
        super().__init__(db)
        self.match_repository = match_repository or RepositoryFactory.create_match_repository(db)
        self.follow_repository = follow_repository or RepositoryFactory.create_follow_repository(db)
        self.user_repository = user_repository or RepositoryFactory.create_user_repository(db)
        self.conversation_service = conversation_service or ConversationService(db)
        self.activity_service = activity_service or ActivityFeedService(db)

    @property
    def cooldown(self) -> timedelta:
        return timedelta(days=settings.match_rejection_cooldown_days)

    def _in_cooldown(self, match: Match) -> bool:
        return ensure_utc(match.updated_at) > utc_now() - self.cooldown

    def _result(self, outcome: MatchOutcome, match: Match) -> MatchResult:
        return MatchResult(outcome=outcome, match=MatchResponse.model_validate(match))

    def _reload(self, pair: CanonicalPair) -> Match:
        match = self.match_repository.find_by_pair(pair)
        if match is None:
            raise ServiceException("Match row disappeared during update.")
        self.match_repository.refresh(match)
        return match

    @BaseService.measure_operation("create_or_advance_match")
    def create_or_advance(self, user_a: str, user_b: str, initiator_id: str) -> MatchResult:
        """
        Record ``initiator_id``'s interest in the pair.

        - no row: insert pending
        - pending by the other side: accept, then run the cascades
        - pending by the same side, or accepted: unchanged
        - rejected: reopen as pending after the cooldown, else InvalidState
        """
        pair = canonical_pair(user_a, user_b)
        if not pair.contains(initiator_id):
            raise UnauthorizedException("Only a member of the pair can initiate a match.")
        for user_id in pair:
            if not self.user_repository.is_active(user_id):
                raise NotFoundException("User not found.")

        match = self.match_repository.find_by_pair(pair)
        if match is None:
            with self.transaction():
                inserted = self.match_repository.insert_if_absent(
                    pair, MatchStatus.PENDING.value, initiator_id
                )
            match = self._reload(pair)
            if inserted:
                prometheus_metrics.record_transition("match", "created")
                self.log_operation(
                    "match_created", match_id=match.id, initiated_by=initiator_id
                )
                return self._result(MatchOutcome.CREATED, match)
            # Another writer created the row first; evaluate against it

        return self._advance(pair, match, initiator_id)

    def _advance(self, pair: CanonicalPair, match: Match, initiator_id: str) -> MatchResult:
        if match.status == MatchStatus.ACCEPTED.value:
            return self._result(MatchOutcome.UNCHANGED, match)

        if match.status in (MatchStatus.REJECTED.value, MatchStatus.EXPIRED.value):
            if match.status == MatchStatus.REJECTED.value and self._in_cooldown(match):
                raise InvalidStateException(
                    "This match was declined recently. Try again later.",
                    details={"cooldown_days": settings.match_rejection_cooldown_days},
                )
            with self.transaction():
                self.match_repository.reopen(match.id, initiator_id)
            prometheus_metrics.record_transition("match", "reopened")
            return self._result(MatchOutcome.REOPENED, self._reload(pair))

        if match.initiated_by == initiator_id:
            return self._result(MatchOutcome.UNCHANGED, match)

        with self.transaction():
            flipped = self.match_repository.accept_if_initiated_by_other(match.id, initiator_id)
        match = self._reload(pair)
        if not flipped:
            # A concurrent accept won; it runs the cascades
            return self._result(MatchOutcome.UNCHANGED, match)

        prometheus_metrics.record_transition("match", "pending_to_accepted")
        self.log_operation("match_accepted", match_id=match.id, accepted_by=initiator_id)
        self._run_acceptance_cascades(pair)
        return self._result(MatchOutcome.ACCEPTED, match)

    def _run_acceptance_cascades(self, pair: CanonicalPair) -> None:
        def follow_both_ways() -> None:
            self.follow_repository.insert_ignore_conflict(
                pair.low, pair.high, FollowStatus.ACCEPTED.value
            )
            self.follow_repository.insert_ignore_conflict(
                pair.high, pair.low, FollowStatus.ACCEPTED.value
            )
            # Pending edges left over from earlier requests resolve too
            self.follow_repository.promote_pending(pair.low, pair.high)
            self.follow_repository.promote_pending(pair.high, pair.low)

        self.run_cascade("match_follow_edges", follow_both_ways)
        self.run_cascade(
            "match_conversation_upgrade",
            lambda: self.conversation_service.upgrade_if_mutual(pair.low, pair.high),
        )
        for actor, target in ((pair.low, pair.high), (pair.high, pair.low)):
            self.run_cascade(
                "match_follow_event",
                lambda actor=actor, target=target: self.activity_service.record_event(
                    ActivityEventType.FOLLOW.value,
                    actor,
                    related_id=target,
                    target_user_id=target,
                    payload={"source": "match"},
                ),
            )

    @BaseService.measure_operation("reject_match")
    def reject(self, dismisser_id: str, dismissed_id: str) -> MatchRejectResult:
        """
        Pass on ``dismissed_id``.

        Accepted matches are left alone; anything else becomes (or is created
        as) rejected with ``initiated_by = dismisser_id``.
        """
        pair = canonical_pair(dismisser_id, dismissed_id)
        match = self.match_repository.find_by_pair(pair)
        if match is not None and match.status == MatchStatus.ACCEPTED.value:
            return MatchRejectResult(match=MatchResponse.model_validate(match), changed=False)

        with self.transaction():
            if match is None:
                self.match_repository.insert_if_absent(
                    pair, MatchStatus.REJECTED.value, dismisser_id
                )
                match = self.match_repository.find_by_pair(pair)
            changed = self.match_repository.mark_rejected(match.id, dismisser_id) > 0

        match = self._reload(pair)
        if changed:
            prometheus_metrics.record_transition("match", "rejected")
        return MatchRejectResult(match=MatchResponse.model_validate(match), changed=changed)

    @BaseService.measure_operation("dismiss_match_notice")
    def dismiss_accepted_notice(self, match_id: str, user_id: str) -> Match:
        """Hide the accepted-match card on the caller's side only."""
        match = self.match_repository.get_by_id(match_id)
        if match is None:
            raise NotFoundException("Match not found.")
        pair = CanonicalPair(match.user_id_low, match.user_id_high)
        side = pair.side_of(user_id)
        if match.status != MatchStatus.ACCEPTED.value:
            raise InvalidStateException("Only accepted matches can be dismissed.")

        with self.transaction():
            self.match_repository.set_dismissed(match.id, side)
        return self._reload(pair)

    def list_accepted(
        self, user_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> List[AcceptedMatchItem]:
        rows = self.match_repository.list_accepted_for(
            user_id, settings.clamp_page_size(limit), max(offset, 0)
        )
        return [
            AcceptedMatchItem(
                match_id=match.id,
                user=UserSummary.model_validate(user),
                matched_at=match.updated_at,
            )
            for match, user in rows
        ]

    @BaseService.measure_operation("potential_candidates")
    def potential_candidates(
        self, viewer_id: str, offset: int = 0, limit: Optional[int] = None
    ) -> List[CandidateProfile]:
        """
        Discovery feed in random order.

        Pagination is not stable across calls.
        """
        viewer = self.user_repository.get_active(viewer_id)
        if viewer is None:
            raise NotFoundException("User not found.")

        cutoff = utc_now() - self.cooldown
        candidates = self.match_repository.find_candidates(
            viewer_id, cutoff, settings.clamp_page_size(limit), max(offset, 0)
        )
        return [
            CandidateProfile(
                id=candidate.id,
                username=candidate.username,
                first_name=candidate.first_name,
                last_name=candidate.last_name,
                profile_photo=candidate.profile_photo,
                travel_preferences=list(candidate.travel_preferences or []),
                budget_preference=candidate.budget_preference,
                match_percentage=calculate_match_percentage(
                    viewer.travel_preferences,
                    viewer.budget_preference,
                    candidate.travel_preferences,
                    candidate.budget_preference,
                ),
            )
            for candidate in candidates
        ]
