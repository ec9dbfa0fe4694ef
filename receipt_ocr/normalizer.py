"""
Currency token normalization.

Every character that is not a digit or a decimal point is dropped, then the
longest leading numeric prefix is parsed as a float. Thousands separators are
not interpreted: ``"150,000"`` becomes ``150000.0`` while ``"1.234.567đ"``
becomes ``1.234``. Locales that use ``.`` for thousands get a wrong value;
this is a known limitation.
"""

from __future__ import annotations

import re
from typing import Optional

_NON_NUMERIC = re.compile(r"[^0-9.]")
_LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def normalize_amount(token: Optional[str]) -> Optional[float]:
    """Convert a currency-like token such as ``"1,250,000 VND"`` to a float."""
    if not token:
        return None
    cleaned = _NON_NUMERIC.sub("", token)
    m = _LEADING_NUMBER.match(cleaned)
    if not m:
        return None
    return float(m.group(0))
