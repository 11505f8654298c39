"""
Configuration module using Pydantic Settings for environment variable management.

Only essential environment variables are exposed. Tuning constants for the
merge pipeline and retention sweep are hardcoded for consistency.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings


# How the downloaded music is combined with the video's own audio
AudioMixPolicy = Literal["replace", "mix"]


class Settings(BaseSettings):
    """
    Application settings.

    Only essential configuration is loaded from environment variables.
    All processing settings are hardcoded for consistency.
    """

    # ============================================================
    # ENVIRONMENT VARIABLES (minimal set)
    # ============================================================

    # Application
    app_name: str = "video-music-merge"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 3000

    # Public URL used when building download links.
    # PUBLIC_BASE_URL wins over RAILWAY_STATIC_URL (set by the Railway platform).
    public_base_url: Optional[str] = None
    railway_static_url: Optional[str] = None

    # Working directories
    uploads_directory: str = "./uploads"
    outputs_directory: str = "./outputs"
    temp_directory: str = "./temp"

    # External tools
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"

    # "replace" drops the video's own audio, "mix" blends it with the music
    audio_mix_policy: AudioMixPolicy = "replace"

    # Performance tuning
    max_workers: int = 4  # Max concurrent merge jobs

    # ============================================================
    # HARDCODED SETTINGS (not configurable via env vars)
    # ============================================================

    @property
    def max_concurrent_jobs(self) -> int:
        return self.max_workers

    @property
    def working_directories(self) -> list[str]:
        return [self.uploads_directory, self.outputs_directory, self.temp_directory]

    @property
    def downloads_route(self) -> str:
        return "/downloads"

    # Retention sweep
    @property
    def retention_seconds(self) -> int:
        return 3600  # Files older than one hour are removed

    @property
    def sweep_interval_seconds(self) -> int:
        return 3600

    # Downloads
    @property
    def download_timeout_seconds(self) -> int:
        return 300

    @property
    def download_chunk_size(self) -> int:
        return 1024 * 1024

    # Music processing
    @property
    def music_fade_out_seconds(self) -> float:
        return 2.0

    @property
    def music_gain_db(self) -> float:
        return -5.0

    @property
    def output_audio_codec(self) -> str:
        return "aac"  # MP4-compatible

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    def get_public_base_url(self) -> str:
        """
        Resolve the base URL for published files.

        A bare host (e.g. ``myapp.up.railway.app``) is coerced to HTTPS.
        """
        base_url = self.public_base_url or self.railway_static_url or f"http://localhost:{self.port}"
        if not base_url.startswith("http"):
            base_url = f"https://{base_url}"
        return base_url.rstrip("/")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
