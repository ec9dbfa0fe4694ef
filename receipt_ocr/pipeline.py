"""
QR-first extraction pipeline and job state machine.

Flow for one job:
1. Load the job and mark it ``processing``
2. Download the image once
3. Try the Vietnamese e-invoice QR payload
4. Fall back to free-text OCR when no usable QR payload exists
5. Persist the result as ``completed`` and publish ``job.completed``

Any error along the way marks the job ``failed`` with a readable message.
There is no retry and no guard against processing the same job twice.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Tuple

from .config import Settings, get_settings
from .errors import JobNotFoundError
from .events import JOB_COMPLETED_TOPIC, EventPublisher, InMemoryEventPublisher
from .fetch import HttpImageFetcher, ImageFetcher
from .ocr import DEFAULT_LANGUAGES, TesseractRecognizer, TextRecognizer
from .qr import QrExtractor, QrFound
from .schema import (
    ExpenseData,
    ExpenseSource,
    ExtractionResult,
    Job,
    JobCompletedEvent,
    JobResult,
    JobStatus,
    OcrExtraction,
    QrExtraction,
    VietnameseInvoiceQR,
)
from .store import InMemoryJobStore, JobStore
from .text_parser import parse_expense_text

DEFAULT_INVOICE_DESCRIPTION = "Hóa đơn điện tử"


def _parse_invoice_date(value: Optional[str]) -> datetime:
    """DD/MM/YYYY as a local datetime, or now when missing or malformed."""
    if value:
        parts = value.split("/")
        if len(parts) == 3:
            try:
                day, month, year = (int(p) for p in parts)
                return datetime(year, month, day)
            except ValueError:
                pass
    return datetime.now()


def invoice_to_expense(invoice: VietnameseInvoiceQR, confidence: float) -> ExpenseData:
    amount = invoice.total_payment
    if amount is None:
        amount = invoice.total_amount
    if amount is None:
        amount = 0.0

    description = invoice.seller_name or DEFAULT_INVOICE_DESCRIPTION
    if invoice.invoice_number:
        description += f" - {invoice.invoice_number}"

    return ExpenseData(
        amount=amount,
        description=description,
        spent_at=_parse_invoice_date(invoice.invoice_date),
        category=None,
        confidence=confidence,
        source=ExpenseSource.QR,
    )


class ExtractionPipeline:
    def __init__(
        self,
        store: JobStore,
        fetcher: ImageFetcher,
        qr_extractor: QrExtractor,
        recognizer: TextRecognizer,
        publisher: EventPublisher,
        languages: str = DEFAULT_LANGUAGES,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.store = store
        self.fetcher = fetcher
        self.qr_extractor = qr_extractor
        self.recognizer = recognizer
        self.publisher = publisher
        self.languages = languages
        self.logger = logger or logging.getLogger(__name__)

    def run(self, job_id: str) -> Job:
        """
        Process one job to a terminal state and return the final job record.

        Raises JobNotFoundError if the job does not exist. Every other error is
        recorded on the job as ``failed``.
        """
        self.logger.info(f"Starting OCR processing for job {job_id}")
        job = self.store.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)

        try:
            self.store.update(
                job_id,
                status=JobStatus.PROCESSING,
                result_json=None,
                error_message=None,
                completed_at=None,
            )
            image_bytes = self.fetcher.fetch(job.file_url)
            extraction, expense = self._extract(image_bytes)
            self.logger.info(f"Parsed expense data: {expense.model_dump_json(by_alias=True)}")

            result = JobResult.from_extraction(extraction, expense)
            completed = self.store.update(
                job_id,
                status=JobStatus.COMPLETED,
                result_json=result.to_json(),
                completed_at=datetime.now(),
            )
            self._emit_completed(completed, expense)
        except Exception as e:
            self.logger.error(f"Job {job_id} failed: {e}", exc_info=True)
            return self.store.update(
                job_id,
                status=JobStatus.FAILED,
                result_json=None,
                error_message=str(e),
                completed_at=datetime.now(),
            )

        self.logger.info(f"Job {job_id} completed successfully")
        return completed

    def _extract(self, image_bytes: bytes) -> Tuple[ExtractionResult, ExpenseData]:
        self.logger.info("Attempting QR code detection...")
        attempt = self.qr_extractor.attempt(image_bytes)

        if isinstance(attempt, QrFound):
            self.logger.info("QR code detected and parsed successfully")
            qr = attempt.result
            expense = invoice_to_expense(attempt.invoice, qr.confidence)
            return QrExtraction(text=qr.raw_data, confidence=qr.confidence, qr_data=qr), expense

        self.logger.info(f"QR not usable ({attempt.reason}). Falling back to OCR...")
        recognized = self.recognizer.recognize(image_bytes, self.languages)
        confidence = min(max(recognized.confidence, 0.0), 100.0)
        expense = parse_expense_text(recognized.text, confidence, logger=self.logger)
        return OcrExtraction(text=recognized.text, confidence=confidence), expense

    def _emit_completed(self, job: Job, expense: ExpenseData) -> None:
        event = JobCompletedEvent(
            job_id=job.id,
            user_id=job.user_id,
            expense_data=expense,
            file_url=job.file_url,
        )
        self.logger.info(f"Emitting {JOB_COMPLETED_TOPIC} event for job {job.id}")
        self.publisher.publish(JOB_COMPLETED_TOPIC, event.model_dump(mode="json", by_alias=True))


def build_pipeline(
    settings: Optional[Settings] = None,
    store: Optional[JobStore] = None,
    publisher: Optional[EventPublisher] = None,
    logger: Optional[logging.Logger] = None,
) -> ExtractionPipeline:
    """Wire the default collaborators (httpx, OpenCV, Tesseract) from settings."""
    settings = settings or get_settings()
    return ExtractionPipeline(
        store=store if store is not None else InMemoryJobStore(),
        fetcher=HttpImageFetcher(timeout=settings.DOWNLOAD_TIMEOUT, logger=logger),
        qr_extractor=QrExtractor(logger=logger),
        recognizer=TesseractRecognizer(
            tesseract_cmd=settings.TESSERACT_CMD,
            timeout=settings.RECOGNITION_TIMEOUT,
            logger=logger,
        ),
        publisher=publisher if publisher is not None else InMemoryEventPublisher(),
        languages=settings.LANGUAGES,
        logger=logger,
    )
