"""
Exception types raised by the extraction pipeline and its collaborators.

Only the top-level pipeline step converts these into a terminal job state.
"""

from __future__ import annotations


class ReceiptOcrError(Exception):
    """Base class for all errors raised by this package."""


class JobNotFoundError(ReceiptOcrError):
    def __init__(self, job_id: str) -> None:
        super().__init__(f"Job {job_id} not found")
        self.job_id = job_id


class DownloadError(ReceiptOcrError):
    """The image could not be fetched (network, HTTP status, timeout, missing file)."""


class RecognitionError(ReceiptOcrError):
    """The text recognition engine failed."""


class QrDecodeError(ReceiptOcrError):
    """The image bytes could not be decoded into pixels for QR detection."""
