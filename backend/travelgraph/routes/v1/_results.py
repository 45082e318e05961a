# backend/travelgraph/routes/v1/_results.py
"""Translate action results into HTTP responses."""

from typing import TypeVar

from fastapi import HTTPException

from ...core.exceptions import status_for_code
from ...schemas.results import ActionResult

T = TypeVar("T")

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def unwrap(result: ActionResult[T]) -> ActionResult[T]:
    """Return successful results unchanged; raise failed ones as HTTPException."""
    if result.success:
        return result
    raise HTTPException(
        status_code=status_for_code(result.code),
        detail={"message": result.message, "code": result.code},
    )
