# backend/portfolio_analytics/schemas/errors.py
"""
Pydantic schemas for error responses.

Every non-2xx response body has the same shape so clients can parse errors
without knowing which handler produced them. Used by the exception handlers
in main.py.
"""

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Standard error response format."""

    error: str = Field(
        ...,
        description="Error type/code (e.g., 'InvalidDateError')"
    )
    message: str = Field(
        ...,
        description="Human-readable error message"
    )
    details: dict | None = Field(
        default=None,
        description="Additional error context, such as the offending field"
    )


class ValidationErrorDetail(BaseModel):
    """Request validation failures (422), one entry per invalid parameter."""

    error: str = Field(default="ValidationError")
    message: str = Field(default="Request validation failed")
    details: list[dict] = Field(
        ...,
        description="List of validation errors"
    )
