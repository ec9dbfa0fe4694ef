"""
Keyword-based expense categorization (English + Vietnamese).
"""

from __future__ import annotations

from typing import List, Optional, Tuple

# Ordered: the first category with a matching keyword wins.
CATEGORY_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    ("food", ("food", "restaurant", "cafe", "coffee", "đồ ăn", "nhà hàng", "quán")),
    ("transport", ("transport", "taxi", "grab", "uber", "xe")),
    ("shopping", ("shopping", "store", "market", "mua sắm", "siêu thị")),
    ("health", ("health", "hospital", "pharmacy", "y tế", "bệnh viện")),
    ("entertainment", ("entertainment", "movie", "cinema", "giải trí")),
]


def classify_category(text: str) -> Optional[str]:
    """Return the label of the first category whose keywords occur in ``text``."""
    low = text.lower()
    for label, keywords in CATEGORY_KEYWORDS:
        if any(k in low for k in keywords):
            return label
    return None
