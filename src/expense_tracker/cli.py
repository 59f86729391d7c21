"""CLI entry point for expense-tracker."""

from __future__ import annotations

import asyncio
import datetime as dt
import functools
import logging
from collections.abc import Callable
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
from pydantic import ValidationError

from expense_tracker.aggregation import (
    ZERO,
    category_breakdown,
    filter_by_category,
    filter_by_item,
    filter_by_payee,
    group_for_timeline,
    item_spend_total,
    total_amount,
    totals_by_category,
    totals_by_item,
    totals_by_payee,
)
from expense_tracker.config import get_jpeg_quality, get_render_scale, get_store_path
from expense_tracker.errors import ExpenseTrackerError, ExtractionError
from expense_tracker.extraction import create_extraction_agent, extract_receipt
from expense_tracker.models import ExpenseCategory, ExpenseDraft, LineItem, UploadedFile
from expense_tracker.periods import (
    TimeRange,
    filter_by_period,
    format_period_display,
    is_next_disabled,
    shift_period,
)
from expense_tracker.pipeline import (
    IngestResult,
    UploadKind,
    classify_upload,
    ingest_upload,
)
from expense_tracker.rasterizer import rasterize_pdf
from expense_tracker.store import ExpenseStore, JsonFileKeyValueStore

if TYPE_CHECKING:
    from expense_tracker.models import ExpenseRecord, PageImage

CATEGORY_CHOICE = click.Choice([c.value for c in ExpenseCategory], case_sensitive=False)
RANGE_CHOICE = click.Choice([r.value for r in TimeRange], case_sensitive=False)


class DecimalAmount(click.ParamType):
    """A non-negative decimal currency amount."""

    name = "amount"

    def convert(self, value: Any, param: Any, ctx: Any) -> Decimal:
        if isinstance(value, Decimal):
            return value
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            self.fail(f"{value!r} is not a valid amount", param, ctx)
        if not amount.is_finite() or amount < 0:
            self.fail(f"{value!r} is not a non-negative amount", param, ctx)
        return amount


AMOUNT = DecimalAmount()


@click.group()
@click.option(
    "--store",
    "store_path",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding the expense data (default: EXPENSE_STORE_PATH).",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, store_path: Path | None, verbose: bool) -> None:
    """Expense Tracker: scan receipts, track spending."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    store = ExpenseStore(JsonFileKeyValueStore(store_path or get_store_path()))
    store.load()
    ctx.obj = store


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def scan(store: ExpenseStore, file: Path) -> None:
    """Scan a receipt image (reviewed before saving) or a PDF (saved per page)."""
    upload = UploadedFile.from_path(file)
    previews: list[str] = []
    try:
        result = _ingest(upload, previews.append)
    except ExtractionError as exc:
        # Only the single-image path raises this; keep the preview for manual entry
        click.echo(exc.message, err=True)
        result = IngestResult(
            kind=UploadKind.IMAGE,
            draft=ExpenseDraft(image_preview=previews[0] if previews else None),
        )
    except ExpenseTrackerError as exc:
        raise click.ClickException(exc.message) from exc
    except ValueError as exc:
        # Configuration problems, e.g. a missing API key
        raise click.ClickException(str(exc)) from exc

    if result.kind is UploadKind.PDF:
        store.add(result.records)
        click.echo(f"Saved {len(result.records)} expense(s) from {upload.filename}.")
        for record in result.records:
            click.echo(f"  {_format_expense(record)}")
        return

    record = store.add_draft(_review_draft(result.draft or ExpenseDraft()))
    click.echo(f"Saved: {_format_expense(record)}")


def _ingest(upload: UploadedFile, on_preview: Callable[[str], None]) -> IngestResult:
    """Run the pipeline with one agent shared by every page of the upload."""
    classify_upload(upload)
    scale = get_render_scale()
    quality = get_jpeg_quality()
    extractor = functools.partial(extract_receipt, agent=create_extraction_agent())

    def rasterizer(data: bytes, on_progress: Callable[[str], None]) -> list[PageImage]:
        return rasterize_pdf(data, on_progress, scale=scale, jpeg_quality=quality)

    click.echo(f"Analyzing {upload.filename}...", err=True)
    return asyncio.run(
        ingest_upload(
            upload,
            lambda status: click.echo(status, err=True),
            on_preview=on_preview,
            extractor=extractor,
            rasterizer=rasterizer,
        )
    )


@cli.command()
@click.pass_obj
def add(store: ExpenseStore) -> None:
    """Enter an expense manually."""
    record = store.add_draft(_review_draft(ExpenseDraft()))
    click.echo(f"Saved: {_format_expense(record)}")


def _review_draft(draft: ExpenseDraft) -> ExpenseDraft:
    """Prompt for each field, offering the draft's values as defaults."""
    payee = click.prompt("Payee", default=draft.payee)
    amount = click.prompt("Total amount", type=AMOUNT, default=draft.amount)
    date = click.prompt(
        "Date",
        type=click.DateTime(formats=["%Y-%m-%d"]),
        default=(draft.date or dt.date.today()).isoformat(),
    )
    category = click.prompt(
        "Category",
        type=CATEGORY_CHOICE,
        default=(draft.category or ExpenseCategory.OTHER).value,
    )
    description = click.prompt(
        "Description", default=draft.description or "", show_default=False
    )

    items = list(draft.items)
    for item in items:
        click.echo(f"  item: {item.name} {item.price:,.2f}")
    if items and not click.confirm(f"Keep these {len(items)} item(s)?", default=True):
        items = []
    while click.confirm("Add a line item?", default=False):
        name = click.prompt("  Item name").strip()
        price = click.prompt("  Price", type=AMOUNT)
        if name:
            items.append(LineItem(name=name, price=price))

    updated = draft.model_copy(
        update={
            "payee": payee.strip(),
            "amount": amount,
            "date": date.date(),
            "category": ExpenseCategory.coerce(category.title()),
            "description": description or None,
            "items": items,
        }
    )
    try:
        updated.to_record()
    except ValidationError as exc:
        raise click.ClickException(f"Invalid expense: {exc.errors()[0]['msg']}") from exc
    return updated


def _period_options(func: Any) -> Any:
    func = click.option(
        "--back",
        type=click.IntRange(min=0),
        default=0,
        help="How many periods before the current one.",
    )(func)
    return click.option(
        "--range",
        "time_range",
        type=RANGE_CHOICE,
        default=TimeRange.ALL.value,
        help="Period length.",
    )(func)


def _select_period(
    store: ExpenseStore, time_range: str, back: int
) -> list[ExpenseRecord]:
    """Echo the period header and return the expenses inside it."""
    selected = TimeRange(time_range.lower())
    reference = shift_period(selected, dt.date.today(), -back)
    header = format_period_display(selected, reference)
    if selected is not TimeRange.ALL and not is_next_disabled(selected, reference):
        header += f"  (newer: --back {back - 1})"
    click.echo(header)
    return filter_by_period(store.expenses, selected, reference)


@cli.command()
@click.option(
    "--by",
    "group_by",
    type=click.Choice(["category", "payee", "item"]),
    default="category",
    show_default=True,
)
@click.option("--category", type=CATEGORY_CHOICE, default=None, help="Limit to one category.")
@_period_options
@click.pass_obj
def summary(
    store: ExpenseStore,
    group_by: str,
    category: str | None,
    time_range: str,
    back: int,
) -> None:
    """Show totals grouped by category, payee or item."""
    expenses = _select_period(store, time_range, back)
    if category:
        expenses = filter_by_category(expenses, ExpenseCategory.coerce(category.title()))

    click.echo(f"Total: {total_amount(expenses):,.2f}")
    rows: list[tuple[str, Decimal]]
    if group_by == "category":
        rows = [(str(c), t) for c, t in totals_by_category(expenses).items()]
    elif group_by == "payee":
        rows = list(totals_by_payee(expenses).items())
    else:
        rows = [(v.display_name, v.total) for v in totals_by_item(expenses).values()]

    if not rows:
        click.echo("No expenses in this period.")
        return
    width = max(len(label) for label, _total in rows)
    for label, total in rows:
        click.echo(f"  {label:<{width}}  {total:>12,.2f}")

    if group_by == "category":
        _echo_breakdown(expenses)


def _echo_breakdown(expenses: list[ExpenseRecord]) -> None:
    """Each category's share of the total, in category order."""
    grand_total = total_amount(expenses)
    if grand_total == ZERO:
        return
    click.echo("Breakdown:")
    for category, total in category_breakdown(expenses):
        click.echo(f"  {category}: {total / grand_total:.0%}")


@cli.command()
@click.option("--category", type=CATEGORY_CHOICE, default=None)
@click.option("--payee", default=None)
@click.option("--item", default=None, help="Only expenses containing this item.")
@_period_options
@click.pass_obj
def timeline(
    store: ExpenseStore,
    category: str | None,
    payee: str | None,
    item: str | None,
    time_range: str,
    back: int,
) -> None:
    """List expenses newest first, grouped by month and day."""
    expenses = _select_period(store, time_range, back)
    selected_category = ExpenseCategory.coerce(category.title()) if category else None
    if selected_category is not None:
        expenses = filter_by_category(expenses, selected_category)
    if payee is not None:
        expenses = filter_by_payee(expenses, payee, selected_category)

    if item is not None:
        expenses = filter_by_item(expenses, item)
        click.echo(f'Spent on "{item.strip()}": {item_spend_total(expenses, item):,.2f}')
    else:
        click.echo(f"Total: {total_amount(expenses):,.2f}")

    for month, days in group_for_timeline(expenses).items():
        click.echo(month)
        for day, day_expenses in days.items():
            click.echo(f"  {day}")
            for expense in day_expenses:
                click.echo(f"    {_format_expense(expense)}")


def _format_expense(expense: ExpenseRecord) -> str:
    return (
        f"{expense.date.isoformat()}  {expense.payee}  "
        f"{expense.amount:,.2f}  [{expense.category}]"
    )
