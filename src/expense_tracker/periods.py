"""Calendar periods (week, month, year) for filtering and navigation."""

from __future__ import annotations

import calendar
import datetime as dt
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from expense_tracker.models import ExpenseRecord

_END_OF_DAY = dt.time(23, 59, 59, 999000)


class TimeRange(StrEnum):
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL = "all"


@dataclass(frozen=True)
class Period:
    """An inclusive [start, end] window."""

    start: dt.datetime
    end: dt.datetime

    def contains(self, moment: dt.date | dt.datetime) -> bool:
        if not isinstance(moment, dt.datetime):
            moment = dt.datetime.combine(moment, dt.time.min)
        return self.start <= moment <= self.end


def _as_date(value: dt.date | dt.datetime) -> dt.date:
    return value.date() if isinstance(value, dt.datetime) else value


def _span(first: dt.date, last: dt.date) -> Period:
    return Period(
        start=dt.datetime.combine(first, dt.time.min),
        end=dt.datetime.combine(last, _END_OF_DAY),
    )


def get_week_range(value: dt.date | dt.datetime) -> Period:
    """Sunday 00:00:00 through the following Saturday 23:59:59.999."""
    day = _as_date(value)
    # date.weekday() counts from Monday == 0
    sunday = day - dt.timedelta(days=(day.weekday() + 1) % 7)
    return _span(sunday, sunday + dt.timedelta(days=6))


def get_month_range(value: dt.date | dt.datetime) -> Period:
    """First through last calendar day of the month."""
    day = _as_date(value)
    _weekday, days_in_month = calendar.monthrange(day.year, day.month)
    return _span(day.replace(day=1), day.replace(day=days_in_month))


def get_year_range(value: dt.date | dt.datetime) -> Period:
    """January 1 through December 31."""
    year = _as_date(value).year
    return _span(dt.date(year, 1, 1), dt.date(year, 12, 31))


def get_period(time_range: TimeRange, value: dt.date | dt.datetime) -> Period | None:
    """Return the period containing ``value``, or None for all time."""
    if time_range is TimeRange.WEEK:
        return get_week_range(value)
    if time_range is TimeRange.MONTH:
        return get_month_range(value)
    if time_range is TimeRange.YEAR:
        return get_year_range(value)
    return None


def shift_period(
    time_range: TimeRange, value: dt.date | dt.datetime, step: int = 1
) -> dt.date:
    """Move the reference date ``step`` periods forward (negative: back)."""
    day = _as_date(value)
    if time_range is TimeRange.WEEK:
        return day + dt.timedelta(days=7 * step)
    if time_range is TimeRange.MONTH:
        months = day.year * 12 + (day.month - 1) + step
        return dt.date(months // 12, months % 12 + 1, 1)
    if time_range is TimeRange.YEAR:
        year = day.year + step
        if day.month == 2 and day.day == 29 and not calendar.isleap(year):
            return dt.date(year, 2, 28)
        return day.replace(year=year)
    return day


def is_next_disabled(
    time_range: TimeRange,
    value: dt.date | dt.datetime,
    *,
    now: dt.datetime | None = None,
) -> bool:
    """True when the period containing ``value`` has not ended yet."""
    period = get_period(time_range, value)
    if period is None:
        return True
    return period.end > (now or dt.datetime.now())


def format_period_display(time_range: TimeRange, value: dt.date | dt.datetime) -> str:
    """Human-readable label for the period containing ``value``."""
    if time_range is TimeRange.WEEK:
        week = get_week_range(value)
        start, end = week.start, week.end
        if start.year != end.year:
            return (
                f"{start:%b} {start.day}, {start.year} - {end:%b} {end.day}, {end.year}"
            )
        if start.month == end.month:
            return f"{start:%b} {start.day} - {end.day}, {start.year}"
        return f"{start:%b} {start.day} - {end:%b} {end.day}, {start.year}"
    if time_range is TimeRange.MONTH:
        return f"{value:%B %Y}"
    if time_range is TimeRange.YEAR:
        return str(value.year)
    return "All Time"


def filter_by_period(
    expenses: Iterable[ExpenseRecord],
    time_range: TimeRange,
    value: dt.date | dt.datetime,
) -> list[ExpenseRecord]:
    """Keep the expenses dated inside the period containing ``value``."""
    period = get_period(time_range, value)
    if period is None:
        return list(expenses)
    return [e for e in expenses if period.contains(e.date)]
