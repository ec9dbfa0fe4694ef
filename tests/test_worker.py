"""
Tests for the thread-pool job worker.
"""

import pytest

from receipt_ocr.config import Settings
from receipt_ocr.errors import JobNotFoundError
from receipt_ocr.schema import JobStatus
from receipt_ocr.worker import JobWorker, build_worker, default_worker_count

from conftest import INVOICE_PAYLOAD, StubQrExtractor


class TestJobWorker:
    def test_pool_sized_to_cpu_count_by_default(self, make_pipeline):
        with JobWorker(make_pipeline()) as worker:
            assert worker.max_workers == default_worker_count()

    def test_scan_returns_queued_job_and_processes_it(self, store, make_pipeline):
        with JobWorker(make_pipeline(qr_extractor=StubQrExtractor(INVOICE_PAYLOAD)), max_workers=2) as worker:
            job = worker.scan("user-1", "https://cdn.example.com/a.png")
            assert job.status == JobStatus.QUEUED
            assert job.user_id == "user-1"

        final = store.get(job.id)
        assert final.status == JobStatus.COMPLETED
        assert final.result_json["expenseData"]["source"] == "qr"

    def test_many_jobs_run_independently(self, store, publisher, make_pipeline):
        jobs = [store.create(f"user-{i}", f"file-{i}") for i in range(8)]

        with JobWorker(make_pipeline(qr_extractor=StubQrExtractor(INVOICE_PAYLOAD)), max_workers=4) as worker:
            futures = [worker.submit(job.id) for job in jobs]
            results = [f.result(timeout=10) for f in futures]

        assert all(r.status == JobStatus.COMPLETED for r in results)
        assert len(publisher.events) == len(jobs)

    def test_unknown_job_surfaces_through_future(self, make_pipeline):
        with JobWorker(make_pipeline(), max_workers=1) as worker:
            future = worker.submit("missing")
            with pytest.raises(JobNotFoundError):
                future.result(timeout=10)


class TestBuildWorker:
    def test_worker_count_from_environment(self, monkeypatch, make_pipeline):
        monkeypatch.setenv("RECEIPT_OCR_WORKER_COUNT", "3")

        with build_worker(settings=Settings(), pipeline=make_pipeline()) as worker:
            assert worker.max_workers == 3

    def test_unset_worker_count_uses_cpu_count(self, monkeypatch, make_pipeline):
        monkeypatch.delenv("RECEIPT_OCR_WORKER_COUNT", raising=False)

        with build_worker(settings=Settings(), pipeline=make_pipeline()) as worker:
            assert worker.max_workers == default_worker_count()

    def test_builds_default_pipeline(self, monkeypatch):
        monkeypatch.setenv("RECEIPT_OCR_WORKER_COUNT", "2")

        with build_worker(settings=Settings()) as worker:
            assert worker.max_workers == 2
            assert worker.pipeline.languages == "eng+vie"
