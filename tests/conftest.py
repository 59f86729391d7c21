"""Shared test fixtures."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import TYPE_CHECKING

import pymupdf
import pytest

from expense_tracker.models import (
    ExpenseCategory,
    ExpenseRecord,
    LineItem,
    ReceiptExtraction,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


@pytest.fixture
def store_root(tmp_path: Path) -> Path:
    """Provide a temporary directory as the expense store root."""
    root = tmp_path / "data"
    root.mkdir()
    return root


@pytest.fixture
def sample_extraction() -> ReceiptExtraction:
    """Provide a typical extraction result."""
    return ReceiptExtraction(
        payee="Corner Cafe",
        amount=Decimal("12.50"),
        date=dt.date(2025, 6, 15),
        category=ExpenseCategory.FOOD,
        description="Lunch for one.",
        items=[
            LineItem(name="Sandwich", price=Decimal("8.00")),
            LineItem(name="Coffee", price=Decimal("4.50")),
        ],
    )


@pytest.fixture
def sample_expenses() -> list[ExpenseRecord]:
    """Provide a small mixed list of expenses."""
    return [
        ExpenseRecord(
            payee="FreshMart",
            amount=Decimal("30.00"),
            date=dt.date(2025, 6, 14),
            category=ExpenseCategory.GROCERIES,
            items=[
                LineItem(name="Milk", price=Decimal("2.50")),
                LineItem(name="Bread", price=Decimal("3.00")),
            ],
        ),
        ExpenseRecord(
            payee="Corner Cafe",
            amount=Decimal("12.50"),
            date=dt.date(2025, 6, 15),
            category=ExpenseCategory.FOOD,
        ),
        ExpenseRecord(
            payee="FreshMart",
            amount=Decimal("20.00"),
            date=dt.date(2025, 5, 30),
            category=ExpenseCategory.GROCERIES,
            items=[LineItem(name=" milk ", price=Decimal("2.75"))],
        ),
        ExpenseRecord(
            payee="City Bus",
            amount=Decimal("2.00"),
            date=dt.date(2025, 6, 15),
            category=ExpenseCategory.TRANSPORT,
        ),
    ]


def make_pdf(num_pages: int) -> bytes:
    """Build a small in-memory PDF with one line of text per page."""
    doc = pymupdf.open()
    for number in range(1, num_pages + 1):
        page = doc.new_page(width=200, height=300)
        page.insert_text((20, 40), f"Receipt page {number}")
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def three_page_pdf() -> bytes:
    return make_pdf(3)


@pytest.fixture
def pdf_factory() -> Callable[[int], bytes]:
    """Provide a builder for in-memory PDFs with a given page count."""
    return make_pdf
