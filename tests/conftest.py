"""
Shared fixtures and fakes for the receipt OCR tests.
"""

import io
from typing import List, Optional

import cv2
import numpy as np
import pytest
from PIL import Image

from receipt_ocr.errors import DownloadError, RecognitionError
from receipt_ocr.events import InMemoryEventPublisher
from receipt_ocr.ocr import RecognizedText
from receipt_ocr.pipeline import ExtractionPipeline
from receipt_ocr.qr import QrExtractor, parse_invoice_qr
from receipt_ocr.schema import QrResult
from receipt_ocr.store import InMemoryJobStore

INVOICE_PAYLOAD = (
    "01GTKT0/001|AA/23E|0000123|25/12/2023|0101234567|"
    "Cong ty TNHH Cafe Sai Gon|0309876543|Nguyen Van A|"
    "100000|10000|110000|ABC123XYZ"
)


def qr_png(text: str) -> bytes:
    """Render ``text`` as a QR code PNG, scaled up with a quiet zone."""
    code = cv2.QRCodeEncoder.create().encode(text)
    code = cv2.resize(code, None, fx=8, fy=8, interpolation=cv2.INTER_NEAREST)
    code = cv2.copyMakeBorder(code, 40, 40, 40, 40, cv2.BORDER_CONSTANT, value=255)
    buf = io.BytesIO()
    Image.fromarray(np.ascontiguousarray(code)).save(buf, format="PNG")
    return buf.getvalue()


def png_bytes(color: str = "white", size=(64, 64)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


class FakeFetcher:
    def __init__(self, content: bytes = b"image-bytes", error: Optional[str] = None):
        self.content = content
        self.error = error
        self.urls: List[str] = []

    def fetch(self, url: str) -> bytes:
        self.urls.append(url)
        if self.error:
            raise DownloadError(f"Failed to download image: {self.error}")
        return self.content


class StubQrExtractor(QrExtractor):
    """Real ``attempt`` logic over a canned ``detect`` outcome."""

    def __init__(self, payload: Optional[str] = None):
        super().__init__()
        self.payload = payload

    def detect(self, image_bytes: bytes) -> Optional[QrResult]:
        if self.payload is None:
            return None
        return QrResult(raw_data=self.payload, parsed_data=parse_invoice_qr(self.payload))


class FakeRecognizer:
    def __init__(self, text: str = "", confidence: float = 87.5, fail: bool = False):
        self.text = text
        self.confidence = confidence
        self.fail = fail
        self.calls: List[str] = []

    def recognize(self, image_bytes: bytes, languages: str) -> RecognizedText:
        self.calls.append(languages)
        if self.fail:
            raise RecognitionError("Failed to perform OCR: engine crashed")
        return RecognizedText(text=self.text, confidence=self.confidence)


@pytest.fixture
def store():
    return InMemoryJobStore()


@pytest.fixture
def publisher():
    return InMemoryEventPublisher()


@pytest.fixture
def make_pipeline(store, publisher):
    def _make(fetcher=None, qr_extractor=None, recognizer=None):
        return ExtractionPipeline(
            store=store,
            fetcher=fetcher or FakeFetcher(),
            qr_extractor=qr_extractor or StubQrExtractor(),
            recognizer=recognizer or FakeRecognizer(),
            publisher=publisher,
        )

    return _make
