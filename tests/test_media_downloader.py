"""
Tests for the HTTP downloader using httpx's mock transport.
"""

import asyncio

import httpx
import pytest

from app.services.media_downloader import MediaDownloader, MediaDownloadError


def _downloader(settings, handler):
    return MediaDownloader(settings, transport=httpx.MockTransport(handler))


def test_download_writes_body(settings, tmp_path):
    payload = b"\x00\x01video-bytes" * 1000

    def handler(request):
        assert request.url == "https://x/v.mp4"
        return httpx.Response(200, content=payload)

    dest = tmp_path / "video.mp4"
    result = asyncio.run(_downloader(settings, handler).download("https://x/v.mp4", str(dest)))

    assert result == str(dest)
    assert dest.read_bytes() == payload


def test_follows_redirects(settings, tmp_path):
    def handler(request):
        if request.url.path == "/old.mp3":
            return httpx.Response(302, headers={"Location": "https://x/new.mp3"})
        return httpx.Response(200, content=b"music")

    dest = tmp_path / "music.mp3"
    asyncio.run(_downloader(settings, handler).download("https://x/old.mp3", str(dest)))

    assert dest.read_bytes() == b"music"


@pytest.mark.parametrize("status_code,reason", [(404, "Not Found"), (500, "Internal Server Error")])
def test_error_status_fails(settings, tmp_path, status_code, reason):
    def handler(request):
        return httpx.Response(status_code)

    with pytest.raises(MediaDownloadError, match=f"Failed to download: {reason}"):
        asyncio.run(_downloader(settings, handler).download("https://x/v.mp4", str(tmp_path / "v.mp4")))


def test_transport_error_fails(settings, tmp_path):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(MediaDownloadError, match="connection refused"):
        asyncio.run(_downloader(settings, handler).download("https://x/v.mp4", str(tmp_path / "v.mp4")))
