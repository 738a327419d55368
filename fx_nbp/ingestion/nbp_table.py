"""Parser for NBP exchange-rate tables fetched from the web API."""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Iterable, Sequence

from fx_nbp.exceptions import ParseError
from fx_nbp.ingestion.models import SUPPORTED_CURRENCIES, RateRecord, RateTable


class NBPTableParser:
    """Turn :class:`RateTable` objects into :class:`RateRecord` rows.

    Only currencies in ``supported`` are kept; anything else in the table is
    dropped without complaint.
    """

    def __init__(self, *, supported: Sequence[str] = SUPPORTED_CURRENCIES) -> None:
        self.supported = frozenset(code.upper() for code in supported)

    def parse(self, table: RateTable) -> list[RateRecord]:
        rate_date = self._effective_date(table.effective_date)
        rows: list[RateRecord] = []
        for rate in table.rates:
            code = str(rate.code).strip().upper()
            if code not in self.supported:
                continue
            rows.append(RateRecord(rate_date=rate_date, currency=code, price=self._mid(rate.mid, code)))
        return rows

    def parse_many(self, tables: Iterable[RateTable]) -> list[RateRecord]:
        rows: list[RateRecord] = []
        for table in tables:
            rows.extend(self.parse(table))
        return rows

    @staticmethod
    def _effective_date(value: date | str) -> date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return datetime.strptime(str(value).strip(), "%Y-%m-%d").date()
        except ValueError as exc:
            raise ParseError(f"invalid effective date {value!r}") from exc

    @staticmethod
    def _mid(value: object, code: str) -> float:
        try:
            mid = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ParseError(f"invalid mid rate {value!r} for {code}") from exc
        if not math.isfinite(mid) or mid <= 0:
            raise ParseError(f"mid rate for {code} must be positive, got {value!r}")
        return mid


__all__ = ["NBPTableParser"]
