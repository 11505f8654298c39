"""
Media Downloader Service - Fetches remote video and music files over HTTP.
"""

import logging
import os
from typing import Optional

import httpx

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)


class MediaDownloader:
    """
    Streams a remote resource to a local file using httpx.

    A non-success HTTP status fails the download; nothing is retried.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        # Injected transport is used by tests (httpx.MockTransport)
        self._transport = transport

    async def download(self, url: str, output_path: str) -> str:
        """
        Download ``url`` to ``output_path``.

        Args:
            url: Remote file URL
            output_path: Local destination, overwritten if present

        Returns:
            The output path

        Raises:
            MediaDownloadError: On a non-success response or transport failure
        """
        logger.info(f"Downloading {url} -> {output_path}")

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.download_timeout_seconds,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                async with client.stream("GET", url) as response:
                    if not response.is_success:
                        raise MediaDownloadError(f"Failed to download: {response.reason_phrase}")

                    with open(output_path, "wb") as f:
                        async for chunk in response.aiter_bytes(self.settings.download_chunk_size):
                            f.write(chunk)
        except httpx.HTTPError as e:
            raise MediaDownloadError(f"Failed to download: {e}") from e

        file_size = os.path.getsize(output_path)
        logger.info(f"Downloaded {output_path} ({file_size / 1024 / 1024:.1f} MB)")
        return output_path


class MediaDownloadError(Exception):
    """Exception raised when a remote file cannot be fetched."""
    pass
