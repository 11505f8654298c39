"""
Publisher Service - Moves finished files into the served downloads directory.

Files land in the outputs directory, which the app mounts at ``/downloads``.
"""

import asyncio
import logging
import os
import shutil
import time
from dataclasses import dataclass
from typing import Optional

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class PublishResult:
    """Result of publishing a file."""

    url: str
    file_path: str
    file_size_bytes: int


class Publisher:
    """
    Copies pipeline output into the public directory and builds its URL.

    Published filenames look like ``{type}-{job_id}-{epoch_ms}{ext}`` so that
    retries of the same job identifier never overwrite each other.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.output_directory = self.settings.outputs_directory
        self.base_url = self.settings.get_public_base_url()

    def build_filename(self, local_path: str, job_id: str, file_type: str) -> str:
        _, ext = os.path.splitext(local_path)
        return f"{file_type}-{job_id}-{int(time.time() * 1000)}{ext}"

    def build_url(self, filename: str) -> str:
        return f"{self.base_url}{self.settings.downloads_route}/{filename}"

    async def publish(self, local_path: str, job_id: str, file_type: str = "merged") -> PublishResult:
        """
        Copy ``local_path`` into the outputs directory.

        Args:
            local_path: File produced by the pipeline
            job_id: Job identifier, embedded in the filename
            file_type: Type tag, embedded in the filename

        Returns:
            PublishResult with the public URL
        """
        if not os.path.isfile(local_path):
            raise PublishError(f"File not found: {local_path}")

        os.makedirs(self.output_directory, exist_ok=True)
        filename = self.build_filename(local_path, job_id, file_type)
        public_path = os.path.join(self.output_directory, filename)

        loop = asyncio.get_event_loop()
        await loop.run_in_executor(
            None,
            lambda: shutil.copyfile(local_path, public_path),
        )

        file_size = os.path.getsize(public_path)
        url = self.build_url(filename)
        logger.info(f"Published {public_path} ({file_size / 1024 / 1024:.1f} MB) at {url}")

        return PublishResult(
            url=url,
            file_path=public_path,
            file_size_bytes=file_size,
        )


class PublishError(Exception):
    """Exception raised when a file cannot be published."""
    pass
