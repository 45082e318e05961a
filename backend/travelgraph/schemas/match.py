"""Match schemas."""

from typing import Optional

from ..core.enums import MatchOutcome, MatchStatus
from .base import StandardizedModel, UtcDatetime
from .user import UserSummary


class MatchResponse(StandardizedModel):
    id: str
    user_id_low: str
    user_id_high: str
    status: MatchStatus
    initiated_by: str
    dismissed_by_low: bool = False
    dismissed_by_high: bool = False
    created_at: UtcDatetime
    updated_at: UtcDatetime


class MatchResult(StandardizedModel):
    outcome: MatchOutcome
    match: MatchResponse


class MatchRejectResult(StandardizedModel):
    """``match`` is None only if the pair had no row and none could be written."""

    match: Optional[MatchResponse] = None
    changed: bool


class AcceptedMatchItem(StandardizedModel):
    match_id: str
    user: UserSummary
    matched_at: UtcDatetime
