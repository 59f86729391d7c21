"""Grouping and totals over lists of expenses."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, TypeVar

from expense_tracker.models import ExpenseCategory

if TYPE_CHECKING:
    from collections.abc import Iterable

    from expense_tracker.models import ExpenseRecord

K = TypeVar("K")

ZERO = Decimal(0)

DayGroup = dict[str, list["ExpenseRecord"]]
TimelineGroup = dict[str, DayGroup]


@dataclass
class ItemTotal:
    """Accumulated spend on one line item across expenses."""

    display_name: str
    total: Decimal = ZERO


def normalize_item_name(name: str) -> str:
    """Grouping key for a line item: trimmed and case-folded."""
    return name.strip().casefold()


def _sorted_desc(totals: dict[K, Decimal]) -> dict[K, Decimal]:
    return dict(sorted(totals.items(), key=lambda kv: kv[1], reverse=True))


def total_amount(expenses: Iterable[ExpenseRecord]) -> Decimal:
    return sum((e.amount for e in expenses), ZERO)


def totals_by_category(
    expenses: Iterable[ExpenseRecord],
) -> dict[ExpenseCategory, Decimal]:
    totals: dict[ExpenseCategory, Decimal] = {}
    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, ZERO) + expense.amount
    return _sorted_desc(totals)


def totals_by_payee(expenses: Iterable[ExpenseRecord]) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = {}
    for expense in expenses:
        totals[expense.payee] = totals.get(expense.payee, ZERO) + expense.amount
    return _sorted_desc(totals)


def totals_by_item(expenses: Iterable[ExpenseRecord]) -> dict[str, ItemTotal]:
    """Sum line-item prices by normalized name, largest first.

    The display name is the first trimmed spelling seen for each key.
    Blank item names are ignored.
    """
    totals: dict[str, ItemTotal] = {}
    for expense in expenses:
        for item in expense.items:
            key = normalize_item_name(item.name)
            if not key:
                continue
            entry = totals.setdefault(key, ItemTotal(display_name=item.name.strip()))
            entry.total += item.price
    return dict(sorted(totals.items(), key=lambda kv: kv[1].total, reverse=True))


def category_breakdown(
    expenses: Iterable[ExpenseRecord],
) -> list[tuple[ExpenseCategory, Decimal]]:
    """Per-category totals in category order, omitting empty categories."""
    totals = totals_by_category(expenses)
    return [(c, totals[c]) for c in ExpenseCategory if totals.get(c, ZERO) > 0]


def filter_by_category(
    expenses: Iterable[ExpenseRecord], category: ExpenseCategory
) -> list[ExpenseRecord]:
    return [e for e in expenses if e.category == category]


def filter_by_payee(
    expenses: Iterable[ExpenseRecord],
    payee: str,
    category: ExpenseCategory | None = None,
) -> list[ExpenseRecord]:
    return [
        e
        for e in expenses
        if e.payee == payee and (category is None or e.category == category)
    ]


def filter_by_item(
    expenses: Iterable[ExpenseRecord], item_key: str
) -> list[ExpenseRecord]:
    """Expenses with at least one line item matching the normalized key."""
    key = normalize_item_name(item_key)
    return [
        e for e in expenses if any(normalize_item_name(i.name) == key for i in e.items)
    ]


def item_spend_total(expenses: Iterable[ExpenseRecord], item_key: str) -> Decimal:
    """Total spent on one item, summing only the matching line items."""
    key = normalize_item_name(item_key)
    return sum(
        (i.price for e in expenses for i in e.items if normalize_item_name(i.name) == key),
        ZERO,
    )


def day_header(day: dt.date, today: dt.date) -> str:
    """'Today', 'Yesterday', or a short label such as 'Oct 20'."""
    if day == today:
        return "Today"
    if day == today - dt.timedelta(days=1):
        return "Yesterday"
    return f"{day:%b} {day.day}"


def month_header(day: dt.date) -> str:
    """Month and year label such as 'October 2024'."""
    return f"{day:%B %Y}"


def group_for_timeline(
    expenses: Iterable[ExpenseRecord], *, today: dt.date | None = None
) -> TimelineGroup:
    """Group expenses by month, then by day, newest first."""
    today = today or dt.date.today()
    timeline: TimelineGroup = {}
    for expense in sorted(expenses, key=lambda e: e.date, reverse=True):
        days = timeline.setdefault(month_header(expense.date), {})
        days.setdefault(day_header(expense.date, today), []).append(expense)
    return timeline
