from typing import Literal

from pydantic import BaseModel, Field

ErrorCode = Literal[
    "NOT_FOUND",
    "DUPLICATE_RESOURCE",
    "VALIDATION_ERROR",
    "FORBIDDEN",
    "UNAUTHORIZED",
    "CONFLICT",
]


class ErrorResponse(BaseModel):
    """Body of every 4xx raised from a domain exception."""

    detail: str = Field(..., description="Human-readable error message")
    code: ErrorCode = Field(..., description="Machine-readable error code, see pos.errors")
