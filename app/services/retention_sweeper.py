"""
Retention Sweeper - Periodically deletes aged files from the working directories.

Best effort: a directory that cannot be listed or a file that vanishes between
listing and removal is skipped without raising.
"""

import asyncio
import logging
import os
import time
from typing import Callable, Iterable, Optional

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """
    Removes files older than ``max_age_seconds`` from ``directories``.

    Paths reported by ``claimed_paths`` belong to in-flight jobs and are never
    removed, however old they are.
    """

    def __init__(
        self,
        directories: Iterable[str],
        max_age_seconds: float,
        interval_seconds: float,
        claimed_paths: Optional[Callable[[], set[str]]] = None,
    ):
        self.directories = list(directories)
        self.max_age_seconds = max_age_seconds
        self.interval_seconds = interval_seconds
        self._claimed_paths = claimed_paths or set
        self._task: Optional[asyncio.Task] = None

    def sweep_once(self, now: Optional[float] = None) -> list[str]:
        """
        Run a single pass over every directory.

        Args:
            now: Reference time (epoch seconds), defaults to the current time

        Returns:
            Paths that were removed
        """
        now = time.time() if now is None else now
        claimed = self._claimed_paths()
        removed: list[str] = []

        for directory in self.directories:
            try:
                entries = os.listdir(directory)
            except OSError:
                continue

            for name in entries:
                path = os.path.join(directory, name)
                if os.path.abspath(path) in claimed:
                    continue
                try:
                    if not os.path.isfile(path):
                        continue
                    if now - os.stat(path).st_mtime > self.max_age_seconds:
                        os.remove(path)
                        removed.append(path)
                except OSError as e:
                    logger.debug(f"Skipping {path}: {e}")

        if removed:
            logger.info(f"Retention sweep removed {len(removed)} file(s)")
        return removed

    async def _run_forever(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            self.sweep_once()

    def start(self) -> asyncio.Task:
        """Start the periodic sweep on the running loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(
                self._run_forever(), name="retention-sweeper"
            )
            logger.info(
                f"Retention sweeper started: every {self.interval_seconds}s, "
                f"max age {self.max_age_seconds}s, dirs {self.directories}"
            )
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
