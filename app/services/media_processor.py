"""
Media Processor - FFmpeg/FFprobe operations used by the merge pipeline.

``MediaProcessor`` is the capability the pipeline depends on; the FFmpeg
implementation shells out to the ffmpeg and ffprobe binaries. Tests swap in
a fake so orchestration can be exercised without the real tools.
"""

import asyncio
import json
import logging
import subprocess
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from typing import Optional, Protocol

from app.config import AudioMixPolicy, Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class MediaInfo:
    """Subset of ffprobe output the pipeline cares about."""

    duration_seconds: float
    has_audio: bool
    has_video: bool


class MediaProcessor(Protocol):
    """Operations the merge pipeline needs from a media tool."""

    async def probe_duration(self, path: str) -> float:
        ...

    async def normalize_audio(self, audio_path: str, output_path: str, duration: float) -> str:
        ...

    async def mux(self, video_path: str, audio_path: str, output_path: str) -> str:
        ...


def fade_out_start(duration: float, fade_seconds: float) -> float:
    """Start time of a fade-out that ends exactly at ``duration``."""
    return max(0.0, duration - fade_seconds)


def format_seconds(seconds: float) -> str:
    """Seconds with microsecond precision, rounded down so a cut never lands past ``seconds``."""
    return str(Decimal(seconds).quantize(Decimal("0.000001"), rounding=ROUND_FLOOR))


def build_music_filters(duration: float, fade_seconds: float, gain_db: float) -> list[str]:
    """
    Audio filter chain that fits a music track to a video of ``duration`` seconds.

    Trims to ``[0, duration]``, fades out over the last ``fade_seconds`` and
    applies a fixed gain.
    """
    return [
        f"atrim=0:{format_seconds(duration)}",
        f"afade=t=out:st={format_seconds(fade_out_start(duration, fade_seconds))}:d={fade_seconds:g}",
        f"volume={gain_db:g}dB",
    ]


class FFmpegMediaProcessor:
    """
    MediaProcessor backed by the ffmpeg and ffprobe command line tools.

    Commands run through ``run_in_executor`` so the event loop keeps serving
    requests while a job is encoding.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        ffmpeg_path: Optional[str] = None,
        ffprobe_path: Optional[str] = None,
        mix_policy: Optional[AudioMixPolicy] = None,
    ):
        self.settings = settings or get_settings()
        self.ffmpeg_path = ffmpeg_path or self.settings.ffmpeg_path
        self.ffprobe_path = ffprobe_path or self.settings.ffprobe_path
        self.mix_policy = mix_policy or self.settings.audio_mix_policy

    # ------------------------------------------------------------------
    # Probe
    # ------------------------------------------------------------------

    def _build_probe_cmd(self, path: str) -> list[str]:
        return [
            self.ffprobe_path,
            "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            path,
        ]

    async def probe(self, path: str) -> MediaInfo:
        """Inspect a media file with ffprobe."""
        returncode, stdout, stderr = await self._run(self._build_probe_cmd(path))

        if returncode != 0:
            error_msg = stderr.decode(errors="replace")[-500:] if stderr else "Unknown error"
            raise MediaProcessingError(f"ffprobe failed for {path}: {error_msg}")

        try:
            info = json.loads(stdout.decode())
            streams = info.get("streams", [])
            duration = float(info.get("format", {}).get("duration", 0))
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            raise MediaProcessingError(f"Failed to parse ffprobe output for {path}: {e}")

        return MediaInfo(
            duration_seconds=duration,
            has_audio=any(s.get("codec_type") == "audio" for s in streams),
            has_video=any(s.get("codec_type") == "video" for s in streams),
        )

    async def probe_duration(self, path: str) -> float:
        """Duration of ``path`` in seconds."""
        info = await self.probe(path)
        if info.duration_seconds <= 0:
            raise MediaProcessingError(f"Could not determine duration of {path}")
        logger.debug(f"Probed {path}: {info.duration_seconds:.3f}s")
        return info.duration_seconds

    # ------------------------------------------------------------------
    # Music normalization
    # ------------------------------------------------------------------

    def _build_normalize_cmd(self, audio_path: str, output_path: str, duration: float) -> list[str]:
        filters = build_music_filters(
            duration,
            fade_seconds=self.settings.music_fade_out_seconds,
            gain_db=self.settings.music_gain_db,
        )
        return [
            self.ffmpeg_path,
            "-y",
            "-i", audio_path,
            "-af", ",".join(filters),
            "-t", format_seconds(duration),  # Hard cut at the video duration
            output_path,
        ]

    async def normalize_audio(self, audio_path: str, output_path: str, duration: float) -> str:
        """Trim, fade and attenuate the music so it fits the video."""
        logger.info(f"Normalizing music {audio_path} to {duration:.2f}s")
        await self._run_ffmpeg(self._build_normalize_cmd(audio_path, output_path, duration))
        return output_path

    # ------------------------------------------------------------------
    # Mux
    # ------------------------------------------------------------------

    def _build_mux_cmd(
        self,
        video_path: str,
        audio_path: str,
        output_path: str,
        policy: AudioMixPolicy,
    ) -> list[str]:
        cmd = [
            self.ffmpeg_path,
            "-y",
            "-i", video_path,
            "-i", audio_path,
        ]

        if policy == "mix":
            cmd.extend([
                "-filter_complex", "[0:a][1:a]amix=inputs=2:duration=first:dropout_transition=0[aout]",
                "-map", "0:v",
                "-map", "[aout]",
            ])
        else:
            cmd.extend(["-map", "0:v", "-map", "1:a"])

        cmd.extend([
            "-c:v", "copy",  # Video stream is never re-encoded
            "-c:a", self.settings.output_audio_codec,
            "-shortest",
            output_path,
        ])
        return cmd

    async def mux(self, video_path: str, audio_path: str, output_path: str) -> str:
        """Combine the video stream with the processed music into one container."""
        policy = self.mix_policy
        if policy == "mix":
            info = await self.probe(video_path)
            if not info.has_audio:
                logger.warning(f"{video_path} has no audio stream, replacing audio instead of mixing")
                policy = "replace"

        logger.info(f"Muxing {video_path} + {audio_path} ({policy})")
        await self._run_ffmpeg(self._build_mux_cmd(video_path, audio_path, output_path, policy))
        return output_path

    # ------------------------------------------------------------------
    # Process helpers
    # ------------------------------------------------------------------

    async def _run(self, cmd: list[str]) -> tuple[int, bytes, bytes]:
        """Run a command in the default executor."""
        logger.debug(f"Running: {' '.join(cmd[:10])}...")

        loop = asyncio.get_event_loop()
        try:
            result = await loop.run_in_executor(
                None,
                lambda: subprocess.run(cmd, capture_output=True),
            )
        except FileNotFoundError:
            raise MediaProcessingError(f"{cmd[0]} not found in PATH")
        return result.returncode, result.stdout, result.stderr

    async def _run_ffmpeg(self, cmd: list[str]) -> None:
        returncode, _, stderr = await self._run(cmd)
        if returncode != 0:
            error_msg = stderr.decode(errors="replace")[-1000:] if stderr else "Unknown error"
            raise MediaProcessingError(f"FFmpeg failed: {error_msg}")


class MediaProcessingError(Exception):
    """Exception raised when probing or encoding fails."""
    pass
