# backend/travelgraph/actions/match_actions.py
"""Match and discovery actions."""

from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.enums import MatchOutcome
from ..schemas.match import AcceptedMatchItem, MatchRejectResult, MatchResponse, MatchResult
from ..schemas.results import ActionResult
from ..schemas.user import CandidateProfile
from ..services.match_service import MatchService
from .base import run_action

_OUTCOME_MESSAGES = {
    MatchOutcome.CREATED.value: "Interest recorded.",
    MatchOutcome.ACCEPTED.value: "It's a match!",
    MatchOutcome.REOPENED.value: "Interest recorded.",
    MatchOutcome.UNCHANGED.value: "Nothing changed.",
}


def like_profile(db: Session, actor_id: str, target_id: str) -> ActionResult[MatchResult]:
    """Swipe right on ``target_id``."""
    return run_action(
        "like_profile",
        lambda: MatchService(db).create_or_advance(actor_id, target_id, actor_id),
        on_success=lambda result: _OUTCOME_MESSAGES.get(result.outcome, ""),
    )


def pass_profile(db: Session, actor_id: str, target_id: str) -> ActionResult[MatchRejectResult]:
    """Swipe left on ``target_id``; accepted matches are left alone."""
    return run_action(
        "pass_profile",
        lambda: MatchService(db).reject(actor_id, target_id),
        on_success=lambda result: "Profile passed." if result.changed else "Nothing changed.",
    )


def dismiss_match_notice(
    db: Session, match_id: str, actor_id: str
) -> ActionResult[MatchResponse]:
    return run_action(
        "dismiss_match_notice",
        lambda: MatchResponse.model_validate(
            MatchService(db).dismiss_accepted_notice(match_id, actor_id)
        ),
        "Notification dismissed.",
    )


def list_matches(
    db: Session, user_id: str, limit: Optional[int] = None, offset: int = 0
) -> ActionResult[List[AcceptedMatchItem]]:
    return run_action("list_matches", lambda: MatchService(db).list_accepted(user_id, limit, offset))


def get_potential_matches(
    db: Session, viewer_id: str, offset: int = 0, limit: Optional[int] = None
) -> ActionResult[List[CandidateProfile]]:
    return run_action(
        "get_potential_matches",
        lambda: MatchService(db).potential_candidates(viewer_id, offset, limit),
    )
