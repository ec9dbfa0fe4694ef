"""
Hosting runtime for the extraction pipeline.

Jobs run on a bounded thread pool sized near the CPU count, so OCR and QR
decoding never block the thread that accepts new jobs. Jobs share no state
besides their own store record.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from .errors import JobNotFoundError
from .config import Settings, get_settings
from .pipeline import ExtractionPipeline, build_pipeline
from .schema import Job


def default_worker_count() -> int:
    return os.cpu_count() or 4


class JobWorker:
    def __init__(
        self,
        pipeline: ExtractionPipeline,
        max_workers: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.pipeline = pipeline
        self.max_workers = max_workers or default_worker_count()
        self.logger = logger or logging.getLogger(__name__)
        self._executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="ocr-job")

    def submit(self, job_id: str) -> "Future[Job]":
        self.logger.info(f"Dispatching job {job_id}")
        return self._executor.submit(self._run, job_id)

    def scan(self, user_id: str, file_url: str) -> Job:
        """
        Create a queued job for ``file_url`` and dispatch it.

        Returns the queued job without waiting for extraction.
        The pipeline store must support ``create`` (see ``InMemoryJobStore``).
        The future is not kept; callers that need the outcome should create
        the job themselves and use ``submit``.
        """
        job = self.pipeline.store.create(user_id, file_url)
        self.logger.info(f"Job created with ID: {job.id}")
        self.submit(job.id)
        return job

    def _run(self, job_id: str) -> Job:
        try:
            return self.pipeline.run(job_id)
        except JobNotFoundError:
            self.logger.error(f"Failed to process job {job_id}: not found")
            raise

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "JobWorker":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown(wait=True)


def build_worker(
    settings: Optional[Settings] = None,
    pipeline: Optional[ExtractionPipeline] = None,
    logger: Optional[logging.Logger] = None,
) -> JobWorker:
    """Build a worker sized by ``WORKER_COUNT`` (CPU count when unset)."""
    settings = settings or get_settings()
    if pipeline is None:
        pipeline = build_pipeline(settings=settings, logger=logger)
    return JobWorker(pipeline, max_workers=settings.WORKER_COUNT, logger=logger)
