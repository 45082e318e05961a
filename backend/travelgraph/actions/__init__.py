"""
Public action boundary.

Functions here take a SQLAlchemy ``Session`` plus arguments and always
return an ``ActionResult``; domain errors never escape.
"""

from .base import GENERIC_FAILURE_MESSAGE, run_action

__all__ = ["GENERIC_FAILURE_MESSAGE", "run_action"]
