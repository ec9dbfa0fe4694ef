"""
Data models shared by the extraction pipeline, its collaborators and the CLI.

All components (QR extractor, text parser, pipeline, job store, CLI) should use
these Pydantic models to ensure a consistent contract. Models that end up in a
persisted result or a published event serialize with camelCase aliases.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# QR decoding is binary success/fail; this signals "near-certain".
QR_CONFIDENCE = 98.0


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})


class ExpenseSource(str, Enum):
    QR = "qr"
    OCR = "ocr"
    HYBRID = "hybrid"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VietnameseInvoiceQR(CamelModel):
    """
    Fields of the 12-position pipe-delimited Vietnamese e-invoice QR payload.

    Any subset may be absent.
    """

    invoice_form: Optional[str] = Field(default=None, description="Invoice template number (Mẫu số).")
    invoice_serial: Optional[str] = Field(default=None, description="Invoice serial (Ký hiệu).")
    invoice_number: Optional[str] = Field(default=None, description="Invoice number (Số hóa đơn).")
    invoice_date: Optional[str] = Field(default=None, description="Invoice date, DD/MM/YYYY.")
    seller_tax_code: Optional[str] = Field(default=None, description="Seller tax code (MST người bán).")
    seller_name: Optional[str] = Field(default=None, description="Seller name.")
    buyer_tax_code: Optional[str] = Field(default=None, description="Buyer tax code (MST người mua).")
    buyer_name: Optional[str] = Field(default=None, description="Buyer name.")
    total_amount: Optional[float] = Field(default=None, description="Total before tax.")
    tax_amount: Optional[float] = Field(default=None, description="Tax amount.")
    total_payment: Optional[float] = Field(default=None, description="Total payment including tax.")
    lookup_code: Optional[str] = Field(default=None, description="Lookup code (Mã tra cứu).")

    def populated_field_count(self) -> int:
        return sum(1 for value in self.model_dump().values() if value is not None)


class QrResult(CamelModel):
    raw_data: str
    confidence: float = QR_CONFIDENCE
    parsed_data: Optional[VietnameseInvoiceQR] = None


class ExpenseData(CamelModel):
    """
    Expense record derived from one job. Immutable once built.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    amount: float = Field(..., ge=0, description="Amount spent, in the document's currency.")
    description: str = Field(..., min_length=1, description="Short human-readable label.")
    spent_at: datetime = Field(..., description="When the expense happened.")
    category: Optional[str] = Field(default=None, description="Category label, if one was detected.")
    confidence: float = Field(..., ge=0, le=100, description="Extraction reliability, 0-100.")
    source: ExpenseSource = Field(..., description="Which extraction path produced this record.")


class OcrExtraction(CamelModel):
    text: str
    confidence: float = Field(..., ge=0, le=100)
    has_qr_code: Literal[False] = False


class QrExtraction(CamelModel):
    text: str
    confidence: float = QR_CONFIDENCE
    has_qr_code: Literal[True] = True
    qr_data: QrResult


ExtractionResult = Union[OcrExtraction, QrExtraction]


class JobResult(CamelModel):
    """
    Payload persisted as a completed job's ``result_json``.
    """

    raw_text: str
    confidence: float
    has_qr_code: bool
    qr_data: Optional[QrResult] = None
    expense_data: ExpenseData

    @classmethod
    def from_extraction(cls, extraction: ExtractionResult, expense: ExpenseData) -> "JobResult":
        return cls(
            raw_text=extraction.text,
            confidence=extraction.confidence,
            has_qr_code=extraction.has_qr_code,
            qr_data=getattr(extraction, "qr_data", None),
            expense_data=expense,
        )

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Job(CamelModel):
    """
    One unit of work tracking one image's extraction lifecycle.

    ``completed_at`` is set only for terminal statuses, ``result_json`` only for
    completed jobs and ``error_message`` only for failed ones.
    """

    id: str
    user_id: str
    file_url: str
    status: JobStatus = JobStatus.QUEUED
    result_json: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class JobCompletedEvent(CamelModel):
    job_id: str
    user_id: str
    expense_data: ExpenseData
    file_url: str
