"""
Merge API Router - Submit video + music merge jobs and poll their status.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.schemas.requests import CreateVideoRequest
from app.schemas.responses import CreateVideoResponse, ErrorResponse, JobStatusResponse
from app.services.job_registry import JobRegistry
from app.services.job_runner import JobRunner
from app.services.merge_pipeline import MergePipeline, MergeRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Merge"])


# ============================================================================
# Dependencies
# ============================================================================


def get_job_registry(request: Request) -> JobRegistry:
    """Get the job registry from app state (created with the app)."""
    return request.app.state.job_registry


def get_job_runner(request: Request) -> JobRunner:
    return request.app.state.job_runner


def get_merge_pipeline(request: Request) -> MergePipeline:
    return request.app.state.merge_pipeline


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "/create-video",
    response_model=CreateVideoResponse,
    responses={400: {"model": ErrorResponse}},
)
async def create_video(
    body: Optional[CreateVideoRequest] = None,
    registry: JobRegistry = Depends(get_job_registry),
    runner: JobRunner = Depends(get_job_runner),
    pipeline: MergePipeline = Depends(get_merge_pipeline),
) -> CreateVideoResponse:
    """
    Submit a merge job.

    The job is processed in the background. Use GET /api/status/{uuid} to
    check on it.
    """
    # An absent or null body is treated like an empty object
    if body is None:
        body = CreateVideoRequest()
    if not body.final_stitch_video or not body.final_music_url:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="final_stitch_video and final_music_url required",
        )

    job_id = body.uuid or str(uuid.uuid4())
    job = registry.create(job_id)

    merge_request = MergeRequest(
        video_url=body.final_stitch_video,
        music_url=body.final_music_url,
    )
    runner.submit(job_id, lambda: pipeline.run(job, merge_request))

    logger.info(f"Job {job_id} submitted for video: {body.final_stitch_video[:100]}")

    return CreateVideoResponse(uuid=job_id, status=job.status.value)


@router.get(
    "/status/{job_id}",
    response_model=JobStatusResponse,
    response_model_exclude_none=True,
    responses={404: {"model": ErrorResponse}},
)
async def get_job_status(
    job_id: str,
    registry: JobRegistry = Depends(get_job_registry),
) -> JobStatusResponse:
    """
    Get the status of a merge job.

    Returns the merged video URL once completed, or the error once failed.
    """
    job = registry.get(job_id)
    if job is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Job not found",
        )

    return JobStatusResponse(
        status=job.status.value,
        final_merged_video=job.final_merged_video,
        error=job.error,
    )
