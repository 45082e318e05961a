"""
Compatibility score shown on discovery candidates.

Score = Jaccard overlap of travel preferences weighted 70, plus 30 when both
users chose the same budget. Rounded half up, capped at 100. Candidates that
listed any travel preference never score below 40.
"""

import math
from typing import Iterable, Optional

PREFERENCE_WEIGHT = 70
BUDGET_WEIGHT = 30
MAX_SCORE = 100
POPULATED_FLOOR = 40


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_match_percentage(
    viewer_preferences: Optional[Iterable[str]],
    viewer_budget: Optional[str],
    candidate_preferences: Optional[Iterable[str]],
    candidate_budget: Optional[str],
) -> int:
    viewer_prefs = set(viewer_preferences or [])
    candidate_prefs = set(candidate_preferences or [])

    score = 0.0
    union = viewer_prefs | candidate_prefs
    if union:
        score += len(viewer_prefs & candidate_prefs) / len(union) * PREFERENCE_WEIGHT

    if viewer_budget and candidate_budget and viewer_budget == candidate_budget:
        score += BUDGET_WEIGHT

    final = _round_half_up(min(score, MAX_SCORE))
    if candidate_prefs:
        return max(final, POPULATED_FLOOR)
    return final
