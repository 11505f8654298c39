"""
Pytest configuration and fixtures.
"""

import asyncio
import os
import sys
import threading
from typing import Optional

import pytest

# Add app directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app.config import Settings
from app.services.media_downloader import MediaDownloadError
from app.services.media_processor import MediaProcessingError


class FakeMediaProcessor:
    """In-memory MediaProcessor that records calls and writes placeholder files."""

    def __init__(
        self,
        duration: float = 12.5,
        fail_step: Optional[str] = None,
        gate: Optional[threading.Event] = None,
    ):
        self.duration = duration
        self.fail_step = fail_step
        self.gate = gate
        self.calls: list[tuple] = []

    async def _maybe_fail(self, step: str) -> None:
        if self.gate is not None:
            while not self.gate.is_set():
                await asyncio.sleep(0.01)
        if self.fail_step == step:
            raise MediaProcessingError(f"{step} exploded")

    async def probe_duration(self, path: str) -> float:
        self.calls.append(("probe_duration", path))
        await self._maybe_fail("probe_duration")
        return self.duration

    async def normalize_audio(self, audio_path: str, output_path: str, duration: float) -> str:
        self.calls.append(("normalize_audio", audio_path, output_path, duration))
        await self._maybe_fail("normalize_audio")
        with open(output_path, "wb") as f:
            f.write(b"processed-music")
        return output_path

    async def mux(self, video_path: str, audio_path: str, output_path: str) -> str:
        self.calls.append(("mux", video_path, audio_path, output_path))
        await self._maybe_fail("mux")
        with open(output_path, "wb") as f:
            f.write(b"merged-video")
        return output_path

    @property
    def steps(self) -> list[str]:
        return [call[0] for call in self.calls]


class FakeDownloader:
    """Downloader that writes the URL into the destination file."""

    def __init__(self, fail_urls: Optional[set[str]] = None):
        self.fail_urls = fail_urls or set()
        self.downloads: list[tuple[str, str]] = []

    async def download(self, url: str, output_path: str) -> str:
        self.downloads.append((url, output_path))
        if url in self.fail_urls:
            raise MediaDownloadError("Failed to download: Not Found")
        with open(output_path, "wb") as f:
            f.write(url.encode())
        return output_path


@pytest.fixture
def settings(tmp_path):
    """Settings pointing every working directory into a temp dir."""
    return Settings(
        _env_file=None,
        uploads_directory=str(tmp_path / "uploads"),
        outputs_directory=str(tmp_path / "outputs"),
        temp_directory=str(tmp_path / "temp"),
        public_base_url="https://merge.example.com",
        max_workers=2,
    )


@pytest.fixture
def fake_processor():
    return FakeMediaProcessor()


@pytest.fixture
def fake_downloader():
    return FakeDownloader()
