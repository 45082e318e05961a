# backend/travelgraph/routes/v1/follows.py
"""
Follow routes - API v1

Versioned follow endpoints under /api/v1/follows.
All business logic delegated to the follow actions.

Endpoints:
    POST /{target_id}                      → Request to follow a user
    DELETE /{target_id}                    → Unfollow
    POST /{target_id}/dismiss              → Dismiss the "request accepted" card
    GET /status/{subject_id}               → Relationship to a user
    GET /requests                          → Pending requests (incoming/outgoing)
    POST /requests/{follower_id}/accept    → Accept a request
    POST /requests/{follower_id}/reject    → Decline a request
    DELETE /requests/{target_id}           → Cancel an outgoing request
    GET /users/{user_id}/followers         → Followers
    GET /users/{user_id}/following         → Following
    GET /mutuals                           → Mutual follows of the caller
"""

import asyncio
import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from ...actions import follow_actions
from ...database import get_db
from ...dependencies.auth import get_current_user_id, get_optional_user_id
from ...schemas.follow import (
    FollowEdgeResponse,
    FollowListItem,
    FollowRequestResult,
    FollowStatusResponse,
)
from ...schemas.results import ActionResult
from ...schemas.user import UserSummary
from ._results import ULID_PATH_PATTERN, unwrap

logger = logging.getLogger(__name__)

# V1 router - no prefix here, added when mounting in main.py
router = APIRouter(tags=["follows-v1"])


@router.get("/status/{subject_id}", response_model=ActionResult[FollowStatusResponse])
async def get_follow_status(
    subject_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    viewer_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[FollowStatusResponse]:
    """Relationship of the caller to ``subject_id``; anonymous callers get not_following."""
    result = await asyncio.to_thread(
        follow_actions.get_follow_status, db, viewer_id, subject_id
    )
    return unwrap(result)


@router.get("/requests", response_model=ActionResult[List[FollowListItem]])
async def list_follow_requests(
    direction: Literal["incoming", "outgoing"] = Query("incoming"),
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[List[FollowListItem]]:
    result = await asyncio.to_thread(
        follow_actions.list_follow_requests, db, user_id, direction, limit, offset
    )
    return unwrap(result)


@router.post(
    "/requests/{follower_id}/accept", response_model=ActionResult[FollowEdgeResponse]
)
async def accept_follow_request(
    follower_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[FollowEdgeResponse]:
    result = await asyncio.to_thread(
        follow_actions.accept_follow_request, db, follower_id, user_id
    )
    return unwrap(result)


@router.post("/requests/{follower_id}/reject", response_model=ActionResult[None])
async def reject_follow_request(
    follower_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[None]:
    result = await asyncio.to_thread(
        follow_actions.reject_follow_request, db, follower_id, user_id
    )
    return unwrap(result)


@router.delete("/requests/{target_id}", response_model=ActionResult[None])
async def cancel_follow_request(
    target_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[None]:
    result = await asyncio.to_thread(follow_actions.cancel_follow_request, db, user_id, target_id)
    return unwrap(result)


@router.get("/users/{subject_id}/followers", response_model=ActionResult[List[FollowListItem]])
async def list_followers(
    subject_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
) -> ActionResult[List[FollowListItem]]:
    result = await asyncio.to_thread(
        follow_actions.list_followers, db, subject_id, limit, offset
    )
    return unwrap(result)


@router.get("/users/{subject_id}/following", response_model=ActionResult[List[FollowListItem]])
async def list_following(
    subject_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
) -> ActionResult[List[FollowListItem]]:
    result = await asyncio.to_thread(
        follow_actions.list_following, db, subject_id, limit, offset
    )
    return unwrap(result)


@router.get("/mutuals", response_model=ActionResult[List[UserSummary]])
async def list_mutuals(
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[List[UserSummary]]:
    result = await asyncio.to_thread(follow_actions.list_mutuals, db, user_id, limit, offset)
    return unwrap(result)


@router.post("/{target_id}", response_model=ActionResult[FollowRequestResult])
async def send_follow_request(
    target_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[FollowRequestResult]:
    """
    Request to follow ``target_id``.

    If ``target_id`` already asked to follow the caller, both edges become
    accepted and the outcome is ``auto_accepted``.
    """
    result = await asyncio.to_thread(follow_actions.send_follow_request, db, user_id, target_id)
    return unwrap(result)


@router.delete("/{target_id}", response_model=ActionResult[None])
async def unfollow(
    target_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[None]:
    result = await asyncio.to_thread(follow_actions.unfollow, db, user_id, target_id)
    return unwrap(result)


@router.post("/{target_id}/dismiss", response_model=ActionResult[None])
async def dismiss_follow_notice(
    target_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[None]:
    result = await asyncio.to_thread(follow_actions.dismiss_follow_notice, db, user_id, target_id)
    return unwrap(result)
