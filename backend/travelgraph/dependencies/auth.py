# backend/travelgraph/dependencies/auth.py
"""
Acting-user resolution.

Authentication happens upstream; the gateway forwards the authenticated user
id in the ``X-User-Id`` header.
"""

from typing import Optional

from fastapi import Header, HTTPException, status

USER_ID_HEADER = "X-User-Id"


def get_optional_user_id(
    x_user_id: Optional[str] = Header(default=None, alias=USER_ID_HEADER),
) -> Optional[str]:
    """The acting user id, or None for anonymous callers."""
    if x_user_id is None:
        return None
    value = x_user_id.strip()
    return value or None


def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None, alias=USER_ID_HEADER),
) -> str:
    user_id = get_optional_user_id(x_user_id)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user_id
