"""
Services for the merge worker.

Includes:
- Job tracking (registry, bounded runner)
- Merge pipeline (download, FFmpeg processing, publishing)
- Retention sweep of working directories
"""

from app.services.job_registry import Job, JobRegistry, JobStatus
from app.services.job_runner import JobRunner
from app.services.media_downloader import MediaDownloader
from app.services.media_processor import FFmpegMediaProcessor, MediaProcessor
from app.services.merge_pipeline import MergePipeline, MergeRequest
from app.services.publisher import Publisher
from app.services.retention_sweeper import RetentionSweeper

__all__ = [
    # Jobs
    "Job",
    "JobRegistry",
    "JobStatus",
    "JobRunner",
    # Merge
    "MediaDownloader",
    "MediaProcessor",
    "FFmpegMediaProcessor",
    "MergePipeline",
    "MergeRequest",
    "Publisher",
    # Housekeeping
    "RetentionSweeper",
]
