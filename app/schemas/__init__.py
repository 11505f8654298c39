"""
Pydantic schemas for request/response models.
"""

from app.schemas.requests import CreateVideoRequest
from app.schemas.responses import (
    CreateVideoResponse,
    ErrorResponse,
    HealthResponse,
    JobStatusResponse,
)

__all__ = [
    "CreateVideoRequest",
    "CreateVideoResponse",
    "JobStatusResponse",
    "ErrorResponse",
    "HealthResponse",
]
