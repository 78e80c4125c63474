from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# Timestamps are stored as naive UTC; incoming offsets are normalized.
UtcDateTime = Annotated[datetime, AfterValidator(_to_naive_utc)]


class CamelModel(BaseModel):
    """Base schema: camelCase on the wire, attribute access for ORM rows."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    """Standard message response."""
    message: str = Field(..., description="Human readable message")
    details: Optional[dict] = Field(default=None, description="Optional extra data")


class SuccessResponse(CamelModel):
    """Acknowledgement for operations without a payload."""
    success: bool = Field(True)
    message: Optional[str] = Field(default=None)


class ErrorInfo(CamelModel):
    """Structured error description."""
    type: str = Field(..., description="Machine-readable error type code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Any] = Field(default=None, description="Optional error details (e.g., validation issues)")


# PUBLIC_INTERFACE
class ErrorResponse(CamelModel):
    """Standardized API error envelope returned by exception handlers."""
    message: str = Field(..., description="Human-readable error message")
    status: int = Field(..., description="HTTP status code")
    error: ErrorInfo = Field(..., description="Error details")
    correlation_id: Optional[str] = Field(default=None, description="Request correlation ID")
    path: Optional[str] = Field(default=None, description="Request path")
    method: Optional[str] = Field(default=None, description="HTTP method")
    timestamp: datetime = Field(..., description="Error timestamp (UTC)")
