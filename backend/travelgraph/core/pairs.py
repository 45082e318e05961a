"""
Canonical ordering for unordered two-party relationships.

Matches and direct conversations are stored once per pair with the smaller id
in the ``*_low`` column. Callers never pass their arguments through unsorted.
"""

from typing import Literal, NamedTuple

from .exceptions import SelfReferenceException, UnauthorizedException

Side = Literal["low", "high"]


class CanonicalPair(NamedTuple):
    low: str
    high: str

    def contains(self, user_id: str) -> bool:
        return user_id in (self.low, self.high)

    def side_of(self, user_id: str) -> Side:
        if user_id == self.low:
            return "low"
        if user_id == self.high:
            return "high"
        raise UnauthorizedException("User is not a participant of this pair.")

    def other(self, user_id: str) -> str:
        return self.high if self.side_of(user_id) == "low" else self.low


def canonical_pair(user_a: str, user_b: str) -> CanonicalPair:
    """Sort two distinct user ids into ``(low, high)``."""
    if user_a == user_b:
        raise SelfReferenceException("A relationship requires two different users.")
    if user_a < user_b:
        return CanonicalPair(user_a, user_b)
    return CanonicalPair(user_b, user_a)
