"""Tests for financial summary helpers."""

from datetime import UTC, datetime

import pytest

from ledgerdesk.core.modules.finance.service import build_date_query, build_summary, to_category_totals
from ledgerdesk.errors import ValidationError

JAN = datetime(2025, 1, 1, tzinfo=UTC)
FEB = datetime(2025, 2, 1, tzinfo=UTC)


class TestBuildDateQuery:
    def test_no_bounds(self):
        assert build_date_query(None, None) == {}

    def test_start_only(self):
        assert build_date_query(JAN, None) == {"date": {"$gte": JAN}}

    def test_end_only(self):
        assert build_date_query(None, FEB) == {"date": {"$lt": FEB}}

    def test_both_bounds(self):
        assert build_date_query(JAN, FEB) == {"date": {"$gte": JAN, "$lt": FEB}}

    def test_empty_or_inverted_range_is_rejected(self):
        with pytest.raises(ValidationError, match="before its end"):
            build_date_query(FEB, JAN)
        with pytest.raises(ValidationError):
            build_date_query(JAN, JAN)


class TestSummary:
    def test_category_totals_are_sorted_largest_first(self):
        totals = to_category_totals([{"_id": "Rent", "total": 500}, {"_id": "Travel", "total": 1200.456}])
        assert [(t.category, t.total) for t in totals] == [("Travel", 1200.46), ("Rent", 500)]

    def test_summary_totals_and_profit(self):
        summary = build_summary(
            income_rows=[{"_id": "Sales", "total": 10000}, {"_id": "Interest", "total": 250.5}],
            expense_rows=[{"_id": "Rent", "total": 4000}, {"_id": "Utilities", "total": 650.25}],
            start=JAN,
            end=FEB,
        )
        assert summary.total_income == 10250.5
        assert summary.total_expenses == 4650.25
        assert summary.net_profit == 5600.25
        assert summary.income_by_category[0].category == "Sales"
        assert summary.start == JAN

    def test_loss_is_negative(self):
        summary = build_summary([], [{"_id": "Rent", "total": 100}])
        assert summary.total_income == 0
        assert summary.net_profit == -100

    def test_empty_period(self):
        summary = build_summary([], [])
        assert summary.net_profit == 0
        assert summary.income_by_category == []

    def test_payroll_is_taken_from_the_profit(self):
        summary = build_summary(
            [{"_id": "Sales", "total": 9000}], [{"_id": "Rent", "total": 2000}], payroll_total=4500.456
        )
        assert summary.payroll_expenses == 4500.46
        assert summary.net_profit == 2499.54
        assert summary.total_expenses == 2000
