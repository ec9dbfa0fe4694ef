"""
Job persistence.

The pipeline depends on the ``JobStore`` protocol only. ``InMemoryJobStore`` is
the default implementation used by the worker and the CLI. Writes carry no
concurrency token: concurrent updates to one job are last-write-wins.
"""

from __future__ import annotations

import threading
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from .errors import JobNotFoundError
from .schema import Job, JobStatus


class JobStore(Protocol):
    def get(self, job_id: str) -> Optional[Job]:
        ...

    def update(self, job_id: str, **fields: Any) -> Job:
        ...


class InMemoryJobStore:
    def __init__(self) -> None:
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()

    def create(self, user_id: str, file_url: str) -> Job:
        job = Job(
            id=str(uuid.uuid4()),
            user_id=user_id,
            file_url=file_url,
            status=JobStatus.QUEUED,
            created_at=datetime.now(),
        )
        with self._lock:
            self._jobs[job.id] = job
        return job

    def get(self, job_id: str) -> Optional[Job]:
        with self._lock:
            return self._jobs.get(job_id)

    def update(self, job_id: str, **fields: Any) -> Job:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise JobNotFoundError(job_id)
            updated = job.model_copy(update=fields)
            self._jobs[job_id] = updated
            return updated

    def all(self) -> List[Job]:
        with self._lock:
            return list(self._jobs.values())
