"""Pydantic schemas for travelgraph."""

from .results import ActionResult

__all__ = ["ActionResult"]
