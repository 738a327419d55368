"""Range queries over stored NBP rates with min/max summaries."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, Iterable, List

from fx_nbp.db.base_backend import BackendStrategy
from fx_nbp.exceptions import UnsupportedCurrencyError
from fx_nbp.ingestion.models import PRIMARY_CURRENCY, SUPPORTED_CURRENCIES, RateRecord
from fx_nbp.utils.date_range import (
    first_day_of_month,
    first_day_of_year,
    format_date,
    parse_date,
)
from fx_nbp.utils.logger import get_logger

LOGGER = get_logger(__name__)


@dataclass(slots=True, frozen=True)
class PricePoint:
    rate_date: date
    price: float

    def to_dict(self) -> Dict[str, Any]:
        return {"date": format_date(self.rate_date), "price": self.price}


@dataclass(slots=True)
class QueryResult:
    """Prices for one currency within a range plus the cheapest and dearest day."""

    currency: str
    prices: List[PricePoint] = field(default_factory=list)
    min: PricePoint | None = None
    max: PricePoint | None = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currency": self.currency,
            "min": self.min.to_dict() if self.min is not None else None,
            "max": self.max.to_dict() if self.max is not None else None,
            "prices": [point.to_dict() for point in self.prices],
        }


def parse_currency(value: str | None) -> str:
    """Validate a currency selector; an empty value means the primary currency."""

    if value is None or not value.strip():
        return PRIMARY_CURRENCY
    code = value.strip().upper()
    if code not in SUPPORTED_CURRENCIES:
        raise UnsupportedCurrencyError(
            f"currency {value!r} is not supported; expected one of {', '.join(SUPPORTED_CURRENCIES)}"
        )
    return code


def summarise(records: Iterable[RateRecord], currency: str) -> QueryResult:
    """Collect ``records`` in order and track the extremes in one pass.

    Comparisons are strict, so on ties the first record seen keeps the title.
    """

    result = QueryResult(currency=currency)
    for record in records:
        point = PricePoint(rate_date=record.rate_date, price=record.price)
        if result.min is None or point.price < result.min.price:
            result.min = point
        if result.max is None or point.price > result.max.price:
            result.max = point
        result.prices.append(point)
    return result


class RateQueryService:
    """Answer ``[start, end]`` queries against a storage backend."""

    def __init__(self, backend: BackendStrategy, *, today: Callable[[], date] = date.today) -> None:
        self.backend = backend
        self._today = today

    def query(
        self,
        currency: str | None = None,
        start: date | str | None = None,
        end: date | str | None = None,
    ) -> QueryResult:
        code = parse_currency(currency)
        start_date = parse_date(start) if start is not None else None
        end_date = parse_date(end) if end is not None else None

        rows = self.backend.get_all(code)
        in_range = (
            row
            for row in rows
            if (start_date is None or row.rate_date >= start_date)
            and (end_date is None or row.rate_date <= end_date)
        )
        result = summarise(in_range, code)
        LOGGER.debug(
            "Query %s %s..%s matched %s of %s rows",
            code,
            start_date,
            end_date,
            len(result.prices),
            len(rows),
        )
        return result

    def month_to_date(self, currency: str | None = None) -> QueryResult:
        return self.query(currency, start=first_day_of_month(self._today()))

    def year_to_date(self, currency: str | None = None) -> QueryResult:
        return self.query(currency, start=first_day_of_year(self._today()))


__all__ = ["PricePoint", "QueryResult", "RateQueryService", "parse_currency", "summarise"]
