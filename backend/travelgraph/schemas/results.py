"""
Uniform result shape returned by every public action.

``success`` is False for both domain failures (``code`` set to the domain
error code) and unexpected store failures (``code`` = SERVICE_ERROR).
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ActionResult(BaseModel, Generic[T]):
    success: bool = Field(..., description="Whether the action completed")
    message: str = Field(default="", description="Human readable outcome")
    data: Optional[T] = Field(default=None, description="Payload on success")
    code: Optional[str] = Field(default=None, description="Error code on failure")

    @classmethod
    def ok(cls, message: str = "", data: Optional[T] = None) -> "ActionResult[T]":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, code: Optional[str] = None) -> "ActionResult[T]":
        return cls(success=False, message=message, code=code)
