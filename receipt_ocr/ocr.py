"""
Free-text recognition of receipt images with pytesseract.

The recognizer is a pluggable capability: the pipeline only depends on the
``TextRecognizer`` protocol, and ``TesseractRecognizer`` is the default engine.
"""

from __future__ import annotations

import io
import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Tuple

import pytesseract
from PIL import Image

from .errors import RecognitionError

DEFAULT_LANGUAGES = "eng+vie"

# Default Windows install locations, used when no command is configured.
TESSERACT_PATHS = [
    r"C:\Program Files\Tesseract-OCR\tesseract.exe",
    r"C:\Program Files (x86)\Tesseract-OCR\tesseract.exe",
]


@dataclass(frozen=True)
class RecognizedText:
    text: str
    confidence: float


class TextRecognizer(Protocol):
    def recognize(self, image_bytes: bytes, languages: str) -> RecognizedText:
        ...


def configure_tesseract(cmd: Optional[str] = None) -> None:
    """Point pytesseract at ``cmd``, or at a known install path if one exists."""
    if cmd:
        pytesseract.pytesseract.tesseract_cmd = cmd
        return
    for p in TESSERACT_PATHS:
        if os.path.exists(p):
            pytesseract.pytesseract.tesseract_cmd = p
            break


def _lines_and_confidence(data: Dict[str, list]) -> Tuple[str, float]:
    """
    Rebuild text lines from ``image_to_data`` output and average word confidence.
    """
    lines: Dict[Tuple[int, int, int], List[str]] = {}
    confidences: List[float] = []
    for i, word in enumerate(data["text"]):
        if not word or not word.strip():
            continue
        key = (int(data["block_num"][i]), int(data["par_num"][i]), int(data["line_num"][i]))
        lines.setdefault(key, []).append(word.strip())
        try:
            conf = float(data["conf"][i])
        except (TypeError, ValueError):
            continue
        if conf >= 0:
            confidences.append(conf)

    text = "\n".join(" ".join(words) for _, words in sorted(lines.items()))
    confidence = round(sum(confidences) / len(confidences), 2) if confidences else 0.0
    return text, confidence


class TesseractRecognizer:
    """Runs Tesseract over an image and returns its text and mean word confidence."""

    def __init__(
        self,
        tesseract_cmd: Optional[str] = None,
        timeout: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        configure_tesseract(tesseract_cmd)
        # pytesseract treats 0 as "no timeout".
        self.timeout = timeout or 0
        self.logger = logger or logging.getLogger(__name__)

    def recognize(self, image_bytes: bytes, languages: str = DEFAULT_LANGUAGES) -> RecognizedText:
        self.logger.info("Running Tesseract OCR...")
        try:
            with Image.open(io.BytesIO(image_bytes)) as img:
                # if color mode is not RGB, convert
                if img.mode != "RGB":
                    img = img.convert("RGB")
                data = pytesseract.image_to_data(
                    img,
                    lang=languages,
                    output_type=pytesseract.Output.DICT,
                    timeout=self.timeout,
                )
        except Exception as e:
            raise RecognitionError(f"Failed to perform OCR: {e}") from e

        text, confidence = _lines_and_confidence(data)
        self.logger.info(f"OCR completed with confidence: {confidence}%")
        return RecognizedText(text=text, confidence=confidence)
