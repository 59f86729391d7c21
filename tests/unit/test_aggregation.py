"""Tests for expense_tracker.aggregation."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal

from expense_tracker.aggregation import (
    category_breakdown,
    day_header,
    filter_by_category,
    filter_by_item,
    filter_by_payee,
    group_for_timeline,
    item_spend_total,
    normalize_item_name,
    total_amount,
    totals_by_category,
    totals_by_item,
    totals_by_payee,
)
from expense_tracker.models import ExpenseCategory, ExpenseRecord, LineItem


def _expense(
    payee: str,
    amount: str,
    category: ExpenseCategory = ExpenseCategory.FOOD,
    date: dt.date = dt.date(2025, 6, 1),
    items: list[LineItem] | None = None,
) -> ExpenseRecord:
    return ExpenseRecord(
        payee=payee,
        amount=Decimal(amount),
        category=category,
        date=date,
        items=items or [],
    )


class TestTotalsByCategory:
    """Tests for totals_by_category."""

    def test_sums_per_category(self) -> None:
        expenses = [_expense("A", "10"), _expense("B", "5")]
        assert totals_by_category(expenses) == {ExpenseCategory.FOOD: Decimal(15)}

    def test_sorted_descending(self, sample_expenses: list[ExpenseRecord]) -> None:
        totals = totals_by_category(sample_expenses)
        assert list(totals) == [
            ExpenseCategory.GROCERIES,
            ExpenseCategory.FOOD,
            ExpenseCategory.TRANSPORT,
        ]
        assert totals[ExpenseCategory.GROCERIES] == Decimal("50.00")

    def test_input_order_does_not_change_totals(
        self, sample_expenses: list[ExpenseRecord]
    ) -> None:
        forward = totals_by_category(sample_expenses)
        backward = totals_by_category(list(reversed(sample_expenses)))
        assert forward == backward
        assert totals_by_category(sample_expenses) == forward

    def test_empty(self) -> None:
        assert totals_by_category([]) == {}


class TestTotalsByPayee:
    """Tests for totals_by_payee."""

    def test_exact_payee_match(self) -> None:
        expenses = [_expense("Cafe", "3"), _expense("cafe", "4"), _expense("Cafe", "2")]
        assert totals_by_payee(expenses) == {"Cafe": Decimal(5), "cafe": Decimal(4)}
        assert list(totals_by_payee(expenses)) == ["Cafe", "cafe"]


class TestTotalsByItem:
    """Tests for totals_by_item."""

    def test_normalized_names_merge(self, sample_expenses: list[ExpenseRecord]) -> None:
        totals = totals_by_item(sample_expenses)

        assert list(totals) == ["milk", "bread"]
        assert totals["milk"].display_name == "Milk"
        assert totals["milk"].total == Decimal("5.25")
        assert totals["bread"].total == Decimal("3.00")

    def test_first_seen_spelling_wins(self) -> None:
        expenses = [
            _expense("A", "1", items=[LineItem(name="  eGGs", price=Decimal(1))]),
            _expense("B", "1", items=[LineItem(name="Eggs", price=Decimal(2))]),
        ]
        totals = totals_by_item(expenses)
        assert totals["eggs"].display_name == "eGGs"
        assert totals["eggs"].total == Decimal(3)

    def test_blank_names_ignored(self) -> None:
        expenses = [_expense("A", "1", items=[LineItem(name="  ", price=Decimal(1))])]
        assert totals_by_item(expenses) == {}

    def test_item_prices_not_reconciled_with_amount(self) -> None:
        expenses = [_expense("A", "1", items=[LineItem(name="TV", price=Decimal(500))])]
        assert totals_by_item(expenses)["tv"].total == Decimal(500)
        assert total_amount(expenses) == Decimal(1)


class TestCategoryBreakdown:
    """Tests for category_breakdown."""

    def test_enum_order_without_empty(self, sample_expenses: list[ExpenseRecord]) -> None:
        assert category_breakdown(sample_expenses) == [
            (ExpenseCategory.FOOD, Decimal("12.50")),
            (ExpenseCategory.TRANSPORT, Decimal("2.00")),
            (ExpenseCategory.GROCERIES, Decimal("50.00")),
        ]

    def test_zero_totals_omitted(self) -> None:
        assert category_breakdown([_expense("Free", "0")]) == []


class TestDrillDown:
    """Tests for the filter helpers."""

    def test_filter_by_category(self, sample_expenses: list[ExpenseRecord]) -> None:
        groceries = filter_by_category(sample_expenses, ExpenseCategory.GROCERIES)
        assert {e.payee for e in groceries} == {"FreshMart"}
        assert total_amount(groceries) == Decimal("50.00")

    def test_filter_by_payee_and_category(self) -> None:
        expenses = [
            _expense("Mart", "1", ExpenseCategory.GROCERIES),
            _expense("Mart", "2", ExpenseCategory.SHOPPING),
        ]
        assert len(filter_by_payee(expenses, "Mart")) == 2
        only = filter_by_payee(expenses, "Mart", ExpenseCategory.SHOPPING)
        assert [e.amount for e in only] == [Decimal(2)]

    def test_filter_by_item(self, sample_expenses: list[ExpenseRecord]) -> None:
        with_milk = filter_by_item(sample_expenses, "MILK ")
        assert len(with_milk) == 2
        assert item_spend_total(with_milk, "milk") == Decimal("5.25")

    def test_normalize_item_name(self) -> None:
        assert normalize_item_name("  Oat Milk ") == "oat milk"


class TestGroupForTimeline:
    """Tests for group_for_timeline."""

    def test_month_then_day_newest_first(
        self, sample_expenses: list[ExpenseRecord]
    ) -> None:
        timeline = group_for_timeline(sample_expenses, today=dt.date(2025, 6, 15))

        assert list(timeline) == ["June 2025", "May 2025"]
        assert list(timeline["June 2025"]) == ["Today", "Yesterday"]
        assert {e.payee for e in timeline["June 2025"]["Today"]} == {
            "Corner Cafe",
            "City Bus",
        }
        assert list(timeline["May 2025"]) == ["May 30"]

    def test_empty(self) -> None:
        assert group_for_timeline([]) == {}


class TestDayHeader:
    """Tests for day_header."""

    def test_labels(self) -> None:
        today = dt.date(2025, 3, 2)
        assert day_header(today, today) == "Today"
        assert day_header(dt.date(2025, 3, 1), today) == "Yesterday"
        assert day_header(dt.date(2025, 2, 28), today) == "Feb 28"
        assert day_header(dt.date(2024, 3, 2), today) == "Mar 2"
