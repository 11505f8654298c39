"""
Job Registry - In-memory store of merge jobs owned by the server process.

Jobs live only for the lifetime of the process. The registry also records which
working files belong to in-flight jobs so the retention sweeper can leave them
alone.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class JobStatus(str, Enum):
    """Status of a merge job."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(eq=False)
class Job:
    """A single video + music merge request."""

    id: str
    status: JobStatus = JobStatus.PROCESSING
    final_merged_video: Optional[str] = None
    error: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status != JobStatus.PROCESSING


class JobRegistry:
    """
    Maps job identifiers to their current state.

    There is no locking: every mutation is a plain assignment made from the
    event loop thread. Creating a job with an identifier that is already in
    use replaces the previous entry (last write wins). A pipeline still working
    on the replaced entry can no longer change what status queries return.
    """

    def __init__(self):
        self._jobs: dict[str, Job] = {}
        self._claims: dict[Job, set[str]] = {}

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        return job_id in self._jobs

    def create(self, job_id: str) -> Job:
        """Register ``job_id`` in the processing state."""
        if job_id in self._jobs:
            logger.warning(f"Job {job_id} already exists, replacing it")
        job = Job(id=job_id)
        self._jobs[job_id] = job
        return job

    def get(self, job_id: str) -> Optional[Job]:
        return self._jobs.get(job_id)

    def set_result(self, job: Job, status: JobStatus, payload: Optional[str] = None) -> Job:
        """
        Move a job to a terminal state.

        Args:
            job: The job handed out by ``create``
            status: COMPLETED or FAILED
            payload: Result URL when completed, error message when failed

        Raises:
            JobStateError: If the status is not terminal or the job already finished
        """
        if status == JobStatus.PROCESSING:
            raise JobStateError(f"Job {job.id}: {status.value} is not a terminal status")
        if job.is_terminal:
            raise JobStateError(f"Job {job.id} already finished with status {job.status.value}")

        job.status = status
        job.finished_at = datetime.now(timezone.utc)
        if status == JobStatus.COMPLETED:
            job.final_merged_video = payload
        else:
            job.error = payload

        self._release(job)

        if self._jobs.get(job.id) is not job:
            logger.warning(f"Job {job.id} was replaced while running, result not published")
        return job

    def complete(self, job: Job, url: str) -> Job:
        return self.set_result(job, JobStatus.COMPLETED, url)

    def fail(self, job: Job, message: str) -> Job:
        return self.set_result(job, JobStatus.FAILED, message)

    # ------------------------------------------------------------------
    # Working file claims
    # ------------------------------------------------------------------

    def claim(self, job: Job, path: str) -> str:
        """Mark ``path`` as in use by ``job``. Returns the absolute path."""
        abs_path = os.path.abspath(path)
        self._claims.setdefault(job, set()).add(abs_path)
        return abs_path

    def _release(self, job: Job) -> None:
        self._claims.pop(job, None)

    def claimed_paths(self) -> set[str]:
        """Absolute paths of every working file held by an in-flight job."""
        paths: set[str] = set()
        for job_paths in self._claims.values():
            paths.update(job_paths)
        return paths


class JobStateError(Exception):
    """Exception raised on an invalid job state transition."""
    pass
