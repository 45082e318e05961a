# backend/travelgraph/routes/v1/matches.py
"""
Match routes - API v1

Endpoints:
    GET /candidates                    → Discovery feed with match percentages
    GET /                              → Accepted matches
    POST /{target_id}/like             → Record interest (may complete a match)
    POST /{target_id}/pass             → Pass on a profile
    POST /{match_id}/dismiss           → Dismiss the accepted-match card
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from ...actions import match_actions
from ...database import get_db
from ...dependencies.auth import get_current_user_id
from ...schemas.match import AcceptedMatchItem, MatchRejectResult, MatchResponse, MatchResult
from ...schemas.results import ActionResult
from ...schemas.user import CandidateProfile
from ._results import ULID_PATH_PATTERN, unwrap

logger = logging.getLogger(__name__)

router = APIRouter(tags=["matches-v1"])


@router.get("/candidates", response_model=ActionResult[List[CandidateProfile]])
async def get_potential_matches(
    offset: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=1),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[List[CandidateProfile]]:
    """Random order; pages are not stable across calls."""
    result = await asyncio.to_thread(
        match_actions.get_potential_matches, db, user_id, offset, limit
    )
    return unwrap(result)


@router.get("", response_model=ActionResult[List[AcceptedMatchItem]])
async def list_matches(
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[List[AcceptedMatchItem]]:
    result = await asyncio.to_thread(match_actions.list_matches, db, user_id, limit, offset)
    return unwrap(result)


@router.post("/{target_id}/like", response_model=ActionResult[MatchResult])
async def like_profile(
    target_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[MatchResult]:
    result = await asyncio.to_thread(match_actions.like_profile, db, user_id, target_id)
    return unwrap(result)


@router.post("/{target_id}/pass", response_model=ActionResult[MatchRejectResult])
async def pass_profile(
    target_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[MatchRejectResult]:
    result = await asyncio.to_thread(match_actions.pass_profile, db, user_id, target_id)
    return unwrap(result)


@router.post("/{match_id}/dismiss", response_model=ActionResult[MatchResponse])
async def dismiss_match_notice(
    match_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActionResult[MatchResponse]:
    result = await asyncio.to_thread(match_actions.dismiss_match_notice, db, match_id, user_id)
    return unwrap(result)
