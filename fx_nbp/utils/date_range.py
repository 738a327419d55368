"""Date helpers shared by the NBP ingestion and query code."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Tuple

from fx_nbp.exceptions import InvalidDateError

ISO_DATE_FORMAT = "%Y-%m-%d"
ISO_MONTH_FORMAT = "%Y-%m"


@dataclass(frozen=True)
class DateRange:
    """Container representing a closed date range."""

    start: date
    end: date

    def as_tuple(self) -> Tuple[date, date]:
        """Return the range as a tuple of ``(start, end)``."""
        return (self.start, self.end)

    def __str__(self) -> str:
        return f"{format_date(self.start)}:{format_date(self.end)}"


def parse_date(value: str | date) -> date:
    """Parse a ``YYYY-MM-DD`` string to :class:`date`."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value.strip(), ISO_DATE_FORMAT).date()
    except (AttributeError, ValueError) as exc:
        raise InvalidDateError(f"failed to parse date {value!r}; expected YYYY-MM-DD") from exc


def parse_month(value: str) -> date:
    """Parse a ``YYYY-MM`` selector and return the first day of that month."""

    try:
        return datetime.strptime(value.strip(), ISO_MONTH_FORMAT).date()
    except (AttributeError, ValueError) as exc:
        raise InvalidDateError(f"failed to parse month {value!r}; expected YYYY-MM") from exc


def format_date(day: date) -> str:
    return day.strftime(ISO_DATE_FORMAT)


def format_month(day: date) -> str:
    return day.strftime(ISO_MONTH_FORMAT)


def month_range(year_month: str | date, max_date: date | None = None) -> DateRange:
    """Return the range covering ``year_month``, clipped at ``max_date``.

    The end of the range is ``min(last day of month, max_date)`` so that a
    request for the running month never reaches into the future.
    """

    start = year_month.replace(day=1) if isinstance(year_month, date) else parse_month(year_month)
    end = end_of_month(start)
    if max_date is not None:
        if start > max_date:
            raise InvalidDateError(
                f"month {format_month(start)} starts after {format_date(max_date)}"
            )
        end = min(end, max_date)
    return DateRange(start=start, end=end)


def first_day_of_month(day: date) -> date:
    return day.replace(day=1)


def first_day_of_year(day: date) -> date:
    return date(day.year, 1, 1)


def end_of_month(day: date) -> date:
    """Return the last day of the month for ``day``."""

    if day.month == 12:
        return date(day.year, 12, 31)
    first_next_month = date(day.year, day.month + 1, 1)
    return first_next_month - timedelta(days=1)


__all__ = [
    "DateRange",
    "end_of_month",
    "first_day_of_month",
    "first_day_of_year",
    "format_date",
    "format_month",
    "month_range",
    "parse_date",
    "parse_month",
]
