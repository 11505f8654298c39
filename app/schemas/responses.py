"""
Response schemas for the merge API.
"""

from typing import Optional

from pydantic import BaseModel, Field


class CreateVideoResponse(BaseModel):
    """Response after submitting a merge job."""

    uuid: str = Field(..., description="Job identifier to poll with")
    status: str = Field(..., description="Always 'processing' on submission")


class JobStatusResponse(BaseModel):
    """Response for a job status query.

    ``final_merged_video`` is only present once the job completed and
    ``error`` only once it failed.
    """

    status: str = Field(..., description="Job status: 'processing', 'completed', 'failed'")
    final_merged_video: Optional[str] = Field(
        default=None, description="Public URL of the merged video"
    )
    error: Optional[str] = Field(default=None, description="Error message if status is 'failed'")

    class Config:
        json_schema_extra = {
            "example": {
                "status": "completed",
                "final_merged_video": "https://example.com/downloads/merged-550e8400-1718000000000.mp4",
            }
        }


class ErrorResponse(BaseModel):
    """Error envelope used by every non-2xx response."""

    error: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Service status")
    time: str = Field(..., description="Current server time (ISO 8601)")
