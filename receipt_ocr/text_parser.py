"""
Heuristic expense extraction from free-form recognized receipt text.

This path is best-effort: amount and date can be wrong when the receipt
layout deviates from the patterns below.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Optional

from .classifier import classify_category
from .schema import ExpenseData, ExpenseSource

DEFAULT_DESCRIPTION = "OCR Scanned Receipt"

# ---------------- Patterns ----------------
KEYWORD_AMOUNT = re.compile(r"(?:total|amount|tổng|thanh toán)[:\s]*([0-9,.]+)", re.IGNORECASE)
CURRENCY_AMOUNT = re.compile(r"([0-9,.]+)\s*(?:đ|vnd|₫|usd|\$)", re.IGNORECASE)
DATE_TOKEN = re.compile(r"(\d{1,2}[-/]\d{1,2}[-/]\d{2,4})")

# Month-first like a generic calendar parser, then day-first.
DATE_FORMATS = ("%m/%d/%Y", "%m/%d/%y", "%d/%m/%Y", "%d/%m/%y")


def _guess_amount(text: str) -> float:
    m = KEYWORD_AMOUNT.search(text) or CURRENCY_AMOUNT.search(text)
    if not m:
        return 0.0
    digits = re.sub(r"[,.]", "", m.group(1))
    try:
        return float(digits)
    except ValueError:
        return 0.0


def _parse_date_token(token: str) -> Optional[datetime]:
    value = token.replace("-", "/")
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def _guess_spent_at(text: str) -> datetime:
    m = DATE_TOKEN.search(text)
    if m:
        parsed = _parse_date_token(m.group(1))
        if parsed is not None:
            return parsed
    return datetime.now()


def _guess_description(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return DEFAULT_DESCRIPTION


def parse_expense_text(
    text: str,
    confidence: float,
    logger: Optional[logging.Logger] = None,
) -> ExpenseData:
    """
    Build an ``ExpenseData`` (source ``ocr``) from recognized receipt text.

    Parameters
    ----------
    text:
        Text produced by the recognition engine.
    confidence:
        Engine confidence, clamped into 0-100.
    """
    log = logger or logging.getLogger(__name__)
    log.info("Parsing OCR text to extract expense data...")

    return ExpenseData(
        amount=_guess_amount(text),
        description=_guess_description(text),
        spent_at=_guess_spent_at(text),
        category=classify_category(text),
        confidence=min(max(confidence, 0.0), 100.0),
        source=ExpenseSource.OCR,
    )
