"""Data models shared across ingestion, storage and query modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping

from fx_nbp.exceptions import ParseError

PRIMARY_CURRENCY = "USD"
SUPPORTED_CURRENCIES: tuple[str, ...] = ("USD", "EUR")


@dataclass(slots=True, frozen=True)
class RateRecord:
    """A single NBP mid rate: PLN paid for one unit of ``currency`` on ``rate_date``."""

    rate_date: date
    currency: str
    price: float


@dataclass(slots=True, frozen=True)
class TableRate:
    """One ``(code, mid)`` row of an NBP exchange-rate table."""

    code: str
    mid: float
    name: str | None = None


@dataclass(slots=True, frozen=True)
class RateTable:
    """An NBP exchange-rate table as returned by the web API.

    ``effective_date`` is kept as received (``date`` or ``YYYY-MM-DD``
    string); :class:`~fx_nbp.ingestion.nbp_table.NBPTableParser` validates it.
    """

    effective_date: date | str
    rates: tuple[TableRate, ...] = field(default_factory=tuple)
    table: str = "A"
    number: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "RateTable":
        """Build a table from one element of the NBP ``tables`` JSON array."""

        try:
            effective_date = payload["effectiveDate"]
            rates = tuple(
                TableRate(code=item["code"], mid=item["mid"], name=item.get("currency"))
                for item in payload["rates"]
            )
        except (KeyError, TypeError) as exc:
            raise ParseError(f"malformed NBP table payload: missing {exc}") from exc
        return cls(
            effective_date=effective_date,
            rates=rates,
            table=payload.get("table", "A"),
            number=payload.get("no"),
        )


__all__ = [
    "PRIMARY_CURRENCY",
    "SUPPORTED_CURRENCIES",
    "RateRecord",
    "RateTable",
    "TableRate",
]
