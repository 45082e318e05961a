"""
Base schemas with standardized field types for consistent responses.
"""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict

from ..core.timezone_utils import ensure_utc


def _as_utc(value: datetime) -> datetime:
    return ensure_utc(value)  # type: ignore[return-value]


# Timestamps read back from drivers that drop tzinfo are UTC
UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]
OptionalUtcDatetime = Optional[UtcDatetime]


class StandardizedModel(BaseModel):
    """Base model for responses built from ORM rows."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True, populate_by_name=True)


class StrictModel(BaseModel):
    """Strict base for request bodies: forbid extras, validate defaults and assignments."""

    model_config = ConfigDict(
        extra="forbid",
        validate_default=True,
        validate_assignment=True,
    )
