# backend/travelgraph/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import conversations, feed, follows, matches, notifications, trips

__all__ = [
    "conversations",
    "feed",
    "follows",
    "matches",
    "notifications",
    "trips",
]
