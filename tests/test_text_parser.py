"""
Tests for heuristic expense extraction from recognized text.
"""

from datetime import datetime, timedelta

from receipt_ocr.schema import ExpenseSource
from receipt_ocr.text_parser import DEFAULT_DESCRIPTION, parse_expense_text

RECEIPT = """
Highlands Coffee
123 Nguyen Hue, Q1
Date: 12/25/2023
Latte 2 x 45.000
Total: 90.000
Thank you!
"""


class TestParseExpenseText:
    def test_typical_receipt(self):
        expense = parse_expense_text(RECEIPT, 91.2)

        assert expense.amount == 90000.0
        assert expense.description == "Highlands Coffee"
        assert expense.spent_at == datetime(2023, 12, 25)
        assert expense.category == "food"
        assert expense.confidence == 91.2
        assert expense.source == ExpenseSource.OCR

    def test_vietnamese_total_keyword(self):
        expense = parse_expense_text("Cửa hàng ABC\nTổng thanh toán: 1,250,000", 80)
        assert expense.amount == 1250000.0

    def test_currency_suffix_fallback(self):
        expense = parse_expense_text("Grab ride\n56.000 đ", 75)

        assert expense.amount == 56000.0
        assert expense.category == "transport"

    def test_amount_defaults_to_zero(self):
        assert parse_expense_text("Just some words", 50).amount == 0.0

    def test_day_first_date_when_month_first_is_invalid(self):
        expense = parse_expense_text("Shop\n25/12/2023\nTotal 10", 50)
        assert expense.spent_at == datetime(2023, 12, 25)

    def test_dash_separated_two_digit_year(self):
        expense = parse_expense_text("Shop\n01-31-24", 50)
        assert expense.spent_at == datetime(2024, 1, 31)

    def test_missing_date_defaults_to_now(self):
        before = datetime.now()
        expense = parse_expense_text("Shop\nTotal 10", 50)
        assert before - timedelta(seconds=1) <= expense.spent_at <= datetime.now()

    def test_unparseable_date_defaults_to_now(self):
        before = datetime.now()
        expense = parse_expense_text("Shop\n99/99/2023", 50)
        assert expense.spent_at >= before - timedelta(seconds=1)

    def test_blank_text_uses_default_description(self):
        expense = parse_expense_text("  \n\n   \n", 0)

        assert expense.description == DEFAULT_DESCRIPTION
        assert expense.category is None

    def test_confidence_is_clamped(self):
        assert parse_expense_text("x", -1).confidence == 0
        assert parse_expense_text("x", 250).confidence == 100
