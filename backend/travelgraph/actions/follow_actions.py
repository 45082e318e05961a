# backend/travelgraph/actions/follow_actions.py
"""Follow actions."""

from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.enums import FollowRequestOutcome
from ..schemas.follow import (
    FollowEdgeResponse,
    FollowListItem,
    FollowRequestResult,
    FollowStatusResponse,
)
from ..schemas.results import ActionResult
from ..schemas.user import UserSummary
from ..services.follow_service import FollowService
from .base import run_action


def _request_message(result: FollowRequestResult) -> str:
    if result.outcome == FollowRequestOutcome.AUTO_ACCEPTED.value:
        return "You now follow each other."
    return "Follow request sent."


def send_follow_request(
    db: Session, follower_id: str, target_id: str
) -> ActionResult[FollowRequestResult]:
    return run_action(
        "send_follow_request",
        lambda: FollowService(db).send_request(follower_id, target_id),
        on_success=_request_message,
    )


def accept_follow_request(
    db: Session, follower_id: str, actor_id: str
) -> ActionResult[FollowEdgeResponse]:
    """``actor_id`` accepts ``follower_id``'s request to follow them."""
    return run_action(
        "accept_follow_request",
        lambda: FollowEdgeResponse.model_validate(
            FollowService(db).accept(follower_id, actor_id, actor_id)
        ),
        "Follow request accepted.",
    )


def reject_follow_request(db: Session, follower_id: str, actor_id: str) -> ActionResult[None]:
    return run_action(
        "reject_follow_request",
        lambda: FollowService(db).reject(follower_id, actor_id, actor_id),
        "Follow request declined.",
    )


def cancel_follow_request(db: Session, actor_id: str, target_id: str) -> ActionResult[None]:
    return run_action(
        "cancel_follow_request",
        lambda: FollowService(db).cancel(actor_id, target_id, actor_id),
        "Follow request cancelled.",
    )


def unfollow(db: Session, actor_id: str, target_id: str) -> ActionResult[None]:
    return run_action(
        "unfollow",
        lambda: FollowService(db).unfollow(actor_id, target_id, actor_id),
        "Unfollowed.",
    )


def get_follow_status(
    db: Session, viewer_id: Optional[str], subject_id: str
) -> ActionResult[FollowStatusResponse]:
    return run_action(
        "get_follow_status",
        lambda: FollowStatusResponse(status=FollowService(db).status(viewer_id, subject_id)),
    )


def dismiss_follow_notice(db: Session, actor_id: str, target_id: str) -> ActionResult[None]:
    return run_action(
        "dismiss_follow_notice",
        lambda: FollowService(db).dismiss_accepted_notice(actor_id, target_id, actor_id),
        "Notification dismissed.",
    )


def list_follow_requests(
    db: Session, user_id: str, direction: str, limit: Optional[int] = None, offset: int = 0
) -> ActionResult[List[FollowListItem]]:
    return run_action(
        "list_follow_requests",
        lambda: FollowService(db).list_requests(user_id, direction, limit, offset),
    )


def list_followers(
    db: Session, user_id: str, limit: Optional[int] = None, offset: int = 0
) -> ActionResult[List[FollowListItem]]:
    return run_action(
        "list_followers", lambda: FollowService(db).list_followers(user_id, limit, offset)
    )


def list_following(
    db: Session, user_id: str, limit: Optional[int] = None, offset: int = 0
) -> ActionResult[List[FollowListItem]]:
    return run_action(
        "list_following", lambda: FollowService(db).list_following(user_id, limit, offset)
    )


def list_mutuals(
    db: Session, user_id: str, limit: Optional[int] = None, offset: int = 0
) -> ActionResult[List[UserSummary]]:
    return run_action(
        "list_mutuals", lambda: FollowService(db).list_mutuals(user_id, limit, offset)
    )
