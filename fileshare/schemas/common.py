"""Response envelopes shared by every endpoint."""
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Successful response: ``{"success": true, "data": ...}``."""

    success: bool = True
    data: T | None = None


class ErrorResponse(BaseModel):
    """Failed response: ``{"success": false, "error": ..., "message": ...}``."""

    success: bool = False
    error: str
    message: str


def error_detail(error: str, message: str) -> dict:
    """Build an HTTPException detail rendered verbatim by the app's handler."""
    return ErrorResponse(error=error, message=message).model_dump()
