"""
QR-code extraction for Vietnamese e-invoices.

Features:
- Pixel conversion with Pillow (alpha-padded RGBA matrix) before decoding
- QR detection/decoding with OpenCV's ``QRCodeDetector``
- Parsing of the 12-field pipe-delimited e-invoice payload:
  <Mẫu số>|<Ký hiệu>|<Số HĐ>|<Ngày>|<MST người bán>|<Tên người bán>|
  <MST người mua>|<Tên người mua>|<Tổng tiền>|<Thuế>|<Tổng thanh toán>|<Mã tra cứu>
- A tagged attempt outcome (``QrFound`` / ``QrNotUsable``) so callers decide on
  fallback without catching exceptions
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import List, Optional, Union

import cv2
import numpy as np
from PIL import Image

from .errors import QrDecodeError
from .normalizer import normalize_amount
from .schema import QR_CONFIDENCE, QrResult, VietnameseInvoiceQR

MIN_INVOICE_FIELDS = 9
SCHEMA_FIELDS = 12

_TEXT_FIELDS = {
    0: "invoice_form",
    1: "invoice_serial",
    2: "invoice_number",
    3: "invoice_date",
    4: "seller_tax_code",
    5: "seller_name",
    6: "buyer_tax_code",
    7: "buyer_name",
    11: "lookup_code",
}
_AMOUNT_FIELDS = {
    8: "total_amount",
    9: "tax_amount",
    10: "total_payment",
}


def _segment(parts: List[str], index: int) -> Optional[str]:
    if index >= len(parts):
        return None
    return parts[index].strip() or None


def parse_invoice_qr(raw: str) -> Optional[VietnameseInvoiceQR]:
    """
    Parse a pipe-delimited e-invoice payload.

    Returns None when fewer than ``MIN_INVOICE_FIELDS`` of the first
    ``SCHEMA_FIELDS`` segments are non-empty.
    """
    parts = raw.split("|")
    if sum(1 for p in parts[:SCHEMA_FIELDS] if p.strip()) < MIN_INVOICE_FIELDS:
        return None

    fields = {name: _segment(parts, i) for i, name in _TEXT_FIELDS.items()}
    for i, name in _AMOUNT_FIELDS.items():
        fields[name] = normalize_amount(_segment(parts, i))
    return VietnameseInvoiceQR(**fields)


@dataclass(frozen=True)
class QrFound:
    result: QrResult
    invoice: VietnameseInvoiceQR


@dataclass(frozen=True)
class QrNotUsable:
    reason: str


QrAttempt = Union[QrFound, QrNotUsable]


def _to_pixels(image_bytes: bytes) -> np.ndarray:
    """Decode compressed image bytes into a BGR matrix, via an RGBA copy."""
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            rgba = np.asarray(img.convert("RGBA"))
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise QrDecodeError(f"Cannot decode image pixels: {e}") from e
    return cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGR)


class QrExtractor:
    """Detects a QR code in an image and parses it as a Vietnamese e-invoice."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger(__name__)

    def detect(self, image_bytes: bytes) -> Optional[QrResult]:
        """
        Return the decoded QR payload, or None when the image holds no code.

        Raises QrDecodeError only if the bytes cannot be turned into pixels.
        """
        self.logger.info("Detecting QR code in image...")
        pixels = _to_pixels(image_bytes)
        try:
            data, _points, _ = cv2.QRCodeDetector().detectAndDecode(pixels)
        except cv2.error as e:
            raise QrDecodeError(f"QR decoder rejected image: {e}") from e

        if not data:
            self.logger.info("No QR code detected in image")
            return None

        self.logger.info(f"QR code detected: {data[:50]}...")
        parsed = parse_invoice_qr(data)
        if parsed is None:
            self.logger.warning("QR data does not match Vietnamese invoice format")
        else:
            self.logger.info(f"Parsed invoice: {parsed.invoice_number} - {parsed.total_payment} VND")
        return QrResult(raw_data=data, confidence=QR_CONFIDENCE, parsed_data=parsed)

    def attempt(self, image_bytes: bytes) -> QrAttempt:
        """Run ``detect`` and classify the outcome as usable or not."""
        try:
            result = self.detect(image_bytes)
        except QrDecodeError as e:
            self.logger.warning(f"QR detection error: {e}")
            return QrNotUsable(str(e))

        if result is None:
            return QrNotUsable("no QR code found")
        invoice = result.parsed_data
        if invoice is None:
            return QrNotUsable("QR payload is not a Vietnamese e-invoice")
        populated = invoice.populated_field_count()
        if populated < MIN_INVOICE_FIELDS:
            return QrNotUsable(f"QR invoice has only {populated} populated fields")
        return QrFound(result=result, invoice=invoice)
