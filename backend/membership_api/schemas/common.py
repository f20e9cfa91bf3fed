"""
Common schemas used across the application.
"""
from typing import Optional
from pydantic import BaseModel


class MessageResponse(BaseModel):
    """Simple message response."""
    message: str


class ErrorResponse(BaseModel):
    """Error body: the message, plus every validation code when enabled."""
    message: str
    errors: Optional[list[str]] = None


class HealthResponse(BaseModel):
    """Health check response."""
    code: int = 200
    message: str = "API is healthy."
