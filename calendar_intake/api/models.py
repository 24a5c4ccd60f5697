"""
Request and response models for the extraction API.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ProcessEventRequest(BaseModel):
    """Request model for text extraction.

    content is validated by the content screen rather than by pydantic,
    so that missing or non-string content gets the same 400 as empty text.
    """

    content: Any = Field(default=None, description="Free-form event text")


class EventModel(BaseModel):
    """An extracted calendar event in its JSON shape."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(default="", description="Event title")
    date: str = Field(default="", description="ISO date (YYYY-MM-DD)")
    start_time: str = Field(default="", alias="startTime", description="24-hour HH:MM")
    end_time: str = Field(default="", alias="endTime", description="24-hour HH:MM")
    location: str = Field(default="", description="Venue or address")
    description: str = Field(default="", description="Short description")
    timezone: str = Field(default="", description="IANA timezone identifier")


class DetectTimezoneRequest(BaseModel):
    """Request model for timezone validation."""

    timezone: Any = Field(default=None, description="IANA timezone reported by the client")


class ResolveTimezoneRequest(BaseModel):
    """Request model for timezone inference."""

    text: str = Field(..., max_length=50_000, description="Text to infer a timezone from")


class TimezoneResponse(BaseModel):
    """Response model for both timezone endpoints."""

    timezone: str


class AdminResetRequest(BaseModel):
    """Request model for operator resets."""

    action: str = Field(..., description="Only 'reset' is supported")
    ip: str = Field(..., min_length=1, max_length=100, description="Client identifier")


class AdminMessage(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """Response model for the liveness check."""

    status: str = Field(default="healthy")
    version: str
    ai_configured: bool = Field(..., description="Whether an AI provider key is set")
    tracked_clients: int = Field(..., description="Client records in the activity store")


class ErrorResponse(BaseModel):
    """Response model for errors."""

    error: str = Field(..., description="Human-readable error message")
    code: str | None = Field(default=None, description="Machine-readable reason code")
    retryAfter: int | None = Field(default=None, description="Seconds to wait before retrying")
