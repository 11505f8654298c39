"""
Merge Pipeline - Orchestrates one video + music merge job.

Steps (each must succeed before the next starts):
1. Download the video and the music
2. Probe the video duration
3. Trim, fade and attenuate the music to that duration
4. Mux the untouched video stream with the processed music
5. Publish the result under /downloads

Working files are left in place; the retention sweeper reclaims them once the
job has finished.
"""

import logging
import os
import time
from dataclasses import dataclass
from typing import Optional

from app.config import Settings, get_settings
from app.services.job_registry import Job, JobRegistry
from app.services.media_downloader import MediaDownloader
from app.services.media_processor import MediaProcessor
from app.services.publisher import Publisher

logger = logging.getLogger(__name__)


@dataclass
class MergeRequest:
    """Inputs for a merge job."""

    video_url: str
    music_url: str


@dataclass
class WorkingFiles:
    """Per-job files under the temp directory."""

    video: str
    music: str
    processed_music: str
    output: str

    @classmethod
    def for_job(cls, temp_directory: str, job_id: str) -> "WorkingFiles":
        return cls(
            video=os.path.join(temp_directory, f"video-{job_id}.mp4"),
            music=os.path.join(temp_directory, f"music-{job_id}.mp3"),
            processed_music=os.path.join(temp_directory, f"processed-music-{job_id}.mp3"),
            output=os.path.join(temp_directory, f"final-{job_id}.mp4"),
        )

    def all(self) -> list[str]:
        return [self.video, self.music, self.processed_music, self.output]


class MergePipeline:
    """
    Runs the merge steps for a job and records the outcome in the registry.
    """

    def __init__(
        self,
        registry: JobRegistry,
        media_processor: MediaProcessor,
        downloader: Optional[MediaDownloader] = None,
        publisher: Optional[Publisher] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry
        self.media_processor = media_processor
        self.downloader = downloader or MediaDownloader(self.settings)
        self.publisher = publisher or Publisher(self.settings)

    async def merge(self, job: Job, request: MergeRequest) -> str:
        """
        Produce the merged file for ``job``.

        Returns:
            Path to the final container in the temp directory

        Raises:
            Whatever the failing step raised; nothing is cleaned up.
        """
        os.makedirs(self.settings.temp_directory, exist_ok=True)
        files = WorkingFiles.for_job(self.settings.temp_directory, job.id)
        for path in files.all():
            self.registry.claim(job, path)

        await self.downloader.download(request.video_url, files.video)
        await self.downloader.download(request.music_url, files.music)

        duration = await self.media_processor.probe_duration(files.video)
        logger.info(f"Job {job.id}: video duration {duration:.2f}s")

        await self.media_processor.normalize_audio(files.music, files.processed_music, duration)
        await self.media_processor.mux(files.video, files.processed_music, files.output)

        return files.output

    async def run(self, job: Job, request: MergeRequest) -> Job:
        """
        Merge, publish and move the job to its terminal state.

        Never raises for pipeline failures; they are recorded on the job.
        """
        start_time = time.time()
        logger.info(f"Job {job.id} started")

        try:
            output_path = await self.merge(job, request)
            result = await self.publisher.publish(output_path, job.id, "merged")
        except Exception as e:
            logger.exception(f"Job {job.id} failed: {e}")
            return self.registry.fail(job, str(e) or e.__class__.__name__)

        logger.info(f"Job {job.id} completed in {time.time() - start_time:.1f}s: {result.url}")
        return self.registry.complete(job, result.url)
