"""
Modern Blog API — Shared Response Schemas
===========================================

What:  Response models used across resources: errors, plain messages,
       health and upload results.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class FieldError(BaseModel):
    """One failing input field."""
    field: str = Field(description="Dotted location of the field, e.g. 'title' or 'query.limit'")
    message: str = Field(description="Why the value was rejected")


class ErrorResponse(BaseModel):
    """
    Standardized error body for every non-2xx response.

    Example:
        {
            "error": "validation_error",
            "message": "Invalid request",
            "errors": [{"field": "title", "message": "String should have at least 3 characters"}],
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    errors: Optional[List[FieldError]] = Field(
        default=None, description="Field-level validation failures"
    )
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")


class UploadResponse(BaseModel):
    url: str = Field(description="Public path under which the static server exposes the file")
    filename: str = Field(description="Stored file name")
    size: int = Field(description="Size in bytes")
