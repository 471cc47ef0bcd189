"""Common response schemas."""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Uniform ``{success, data|error, message?}`` wrapper."""

    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    message: Optional[str] = None


class HealthResponse(BaseModel):
    success: bool = True
    message: str
    timestamp: str
    environment: str


def error_body(error: str, message: Optional[str] = None) -> dict[str, Any]:
    """Serialize an error envelope, omitting unset keys."""

    return ErrorResponse(error=error, message=message).model_dump(exclude_none=True)
