"""
Top-level package for the receipt OCR worker.

This package exposes:
- QR-first expense extraction pipeline and job state machine
- Vietnamese e-invoice QR parsing
- Heuristic receipt text parsing and categorization
- A thread-pool worker and CLI entrypoints
"""

__all__ = [
    "schema",
    "pipeline",
    "qr",
    "text_parser",
    "worker",
]
