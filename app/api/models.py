"""API response models."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(..., example="ok")
    service: str = Field(..., example="smart-search-chat")
    version: str = Field(..., example="1.0.0")
