"""
Request schemas for the merge API.
"""

from typing import Optional

from pydantic import BaseModel, Field


class CreateVideoRequest(BaseModel):
    """Request body for POST /api/create-video.

    The URL fields are optional at the schema level so that a missing value
    produces the API's own 400 error instead of a validation error.
    """

    uuid: Optional[str] = Field(
        default=None,
        description="Caller-supplied job identifier. Generated when omitted.",
    )
    final_stitch_video: Optional[str] = Field(
        default=None, description="URL of the video to put the music on"
    )
    final_music_url: Optional[str] = Field(
        default=None, description="URL of the music track"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "uuid": "550e8400-e29b-41d4-a716-446655440000",
                "final_stitch_video": "https://example.com/video.mp4",
                "final_music_url": "https://example.com/music.mp3",
            }
        }
