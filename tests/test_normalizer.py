"""
Unit tests for currency token normalization.
"""

from receipt_ocr.normalizer import normalize_amount


class TestNormalizeAmount:
    def test_strips_currency_suffix(self):
        assert normalize_amount("1250000 VND") == 1250000.0
        assert normalize_amount("45000đ") == 45000.0

    def test_commas_are_stripped_not_interpreted(self):
        assert normalize_amount("150,000") == 150000.0

    def test_dot_thousands_separators_are_not_locale_aware(self):
        """Dots survive stripping; only the leading numeric prefix is parsed."""
        assert normalize_amount("1.234.567đ") == 1.234

    def test_decimal_point_kept(self):
        assert normalize_amount("$12.50") == 12.5

    def test_empty_and_missing(self):
        assert normalize_amount("") is None
        assert normalize_amount(None) is None

    def test_unparseable(self):
        assert normalize_amount("abc") is None
        assert normalize_amount(".") is None
