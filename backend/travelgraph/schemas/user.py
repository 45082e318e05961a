"""Public user summaries embedded in relationship responses."""

from typing import List, Optional

from pydantic import Field

from .base import StandardizedModel


class UserSummary(StandardizedModel):
    id: str
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_photo: Optional[str] = None


class CandidateProfile(UserSummary):
    """A discovery candidate with its compatibility score."""

    travel_preferences: List[str] = Field(default_factory=list)
    budget_preference: Optional[str] = None
    match_percentage: int = Field(..., ge=0, le=100)
