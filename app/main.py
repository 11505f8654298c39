"""
FastAPI application entry point for the Video + Music Merge API.

Accepts a video URL and a music URL, lays the music onto the video with
FFmpeg in the background, and serves the merged file under /downloads.
"""

import logging
import os
import shutil
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import Settings, get_settings
from app.routers import health, videos
from app.services.job_registry import JobRegistry
from app.services.job_runner import JobRunner
from app.services.media_downloader import MediaDownloader
from app.services.media_processor import FFmpegMediaProcessor, MediaProcessor
from app.services.merge_pipeline import MergePipeline
from app.services.publisher import Publisher
from app.services.retention_sweeper import RetentionSweeper

# Configure logging
logging.basicConfig(
    level=getattr(logging, get_settings().log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for startup and shutdown events.
    Creates working directories, starts the retention sweeper and stops
    outstanding jobs on shutdown.
    """
    settings: Settings = app.state.settings
    logger.info(f"Starting {settings.app_name}...")

    for directory in settings.working_directories:
        os.makedirs(directory, exist_ok=True)
    logger.info(f"Working directories: {settings.working_directories}")
    logger.info(f"Max concurrent jobs: {settings.max_concurrent_jobs}")
    logger.info(f"Audio mix policy: {settings.audio_mix_policy}")
    logger.info(f"Public base URL: {settings.get_public_base_url()}")

    _verify_external_tools(settings)

    sweeper: RetentionSweeper = app.state.retention_sweeper
    sweeper.start()

    yield

    logger.info(f"Shutting down {settings.app_name}...")
    await sweeper.stop()
    await app.state.job_runner.shutdown()
    logger.info("Shutdown complete")


def _verify_external_tools(settings: Settings) -> None:
    """Verify that required external tools are available."""
    tools = {
        settings.ffmpeg_path: "FFmpeg for muxing",
        settings.ffprobe_path: "FFprobe for duration probing",
    }

    for tool, description in tools.items():
        if shutil.which(tool):
            logger.info(f"✓ {description} available")
        else:
            logger.warning(f"✗ {description} NOT FOUND - merge jobs will fail")


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors as ``{"error": ...}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are client errors, not 422s."""
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message},
    )


def create_app(
    settings: Optional[Settings] = None,
    media_processor: Optional[MediaProcessor] = None,
    downloader: Optional[MediaDownloader] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use, defaults to the environment
        media_processor: Media tool implementation, defaults to FFmpeg
        downloader: HTTP downloader, defaults to httpx
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Video + Music Merge API",
        description="""
Lays a music track onto a video.

## Usage

1. Submit a job: `POST /api/create-video`
2. Poll status: `GET /api/status/{uuid}`
3. Download the merged video from the `final_merged_video` URL
        """,
        version="1.0.0",
        lifespan=lifespan,
    )

    registry = JobRegistry()
    app.state.settings = settings
    app.state.job_registry = registry
    app.state.job_runner = JobRunner(settings.max_concurrent_jobs)
    app.state.merge_pipeline = MergePipeline(
        registry=registry,
        media_processor=media_processor or FFmpegMediaProcessor(settings),
        downloader=downloader or MediaDownloader(settings),
        publisher=Publisher(settings),
        settings=settings,
    )
    app.state.retention_sweeper = RetentionSweeper(
        directories=settings.working_directories,
        max_age_seconds=settings.retention_seconds,
        interval_seconds=settings.sweep_interval_seconds,
        claimed_paths=registry.claimed_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(health.router, tags=["Health"])
    app.include_router(videos.router)

    # Outputs directory is created in lifespan, so skip the existence check here
    app.mount(
        settings.downloads_route,
        StaticFiles(directory=settings.outputs_directory, check_dir=False),
        name="downloads",
    )

    @app.get("/", include_in_schema=False)
    async def root():
        """Landing page."""
        return FileResponse(STATIC_DIR / "index.html")

    return app


app = create_app()
