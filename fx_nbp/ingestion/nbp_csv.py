"""Parser for the NBP bulk historical archive (``archiwum_tab_a_YYYY.csv``)."""

from __future__ import annotations

import csv
import io
import re
from datetime import date, datetime
from typing import Mapping

from fx_nbp.exceptions import ParseError
from fx_nbp.ingestion.models import RateRecord

# Zero-based column positions of each currency in the table A archive.
DEFAULT_COLUMNS: dict[str, int] = {"USD": 2, "EUR": 8}
ARCHIVE_ENCODING = "cp1250"
HEADER_LITERALS = frozenset({"data", "kod iso", "nazwa waluty", "liczba jednostek"})

_DATE_PATTERN = re.compile(r"^\d{8}$")
_DECIMAL_PATTERN = re.compile(r"^\d+(?:\.\d+)?$")


class NBPArchiveCSVParser:
    """Parse the semicolon-delimited NBP archive into :class:`RateRecord` rows.

    Parsing is all-or-nothing: the first malformed data row raises
    :class:`~fx_nbp.exceptions.ParseError` and nothing is returned.
    """

    def __init__(
        self,
        *,
        columns: Mapping[str, int] | None = None,
        encoding: str = ARCHIVE_ENCODING,
    ) -> None:
        self.columns = {code.upper(): index for code, index in (columns or DEFAULT_COLUMNS).items()}
        if not self.columns:
            raise ValueError("at least one currency column is required")
        self.encoding = encoding
        self._min_width = max(self.columns.values()) + 1

    def parse(self, payload: bytes | str) -> list[RateRecord]:
        text = self._decode(payload)
        reader = csv.reader(io.StringIO(text), delimiter=";")
        rows: list[RateRecord] = []
        for line_no, fields in enumerate(reader, start=1):
            if self._is_header(fields):
                continue
            if len(fields) < self._min_width:
                raise ParseError(
                    f"line {line_no}: expected at least {self._min_width} columns, got {len(fields)}"
                )
            rate_date = self._parse_date(fields[0], line_no)
            for currency, index in self.columns.items():
                price = self._parse_decimal(fields[index], line_no, currency)
                rows.append(RateRecord(rate_date=rate_date, currency=currency, price=price))
        return rows

    def _decode(self, payload: bytes | str) -> str:
        if isinstance(payload, str):
            return payload
        try:
            return payload.decode(self.encoding)
        except UnicodeDecodeError as exc:
            raise ParseError(f"archive is not valid {self.encoding}") from exc

    @staticmethod
    def _is_header(fields: list[str]) -> bool:
        if not fields:
            return True
        first = fields[0].strip()
        return not first or first.lower() in HEADER_LITERALS

    @staticmethod
    def _parse_date(raw: str, line_no: int) -> date:
        value = raw.strip()
        if not _DATE_PATTERN.match(value):
            raise ParseError(f"line {line_no}: invalid date {raw!r}; expected YYYYMMDD")
        try:
            return datetime.strptime(value, "%Y%m%d").date()
        except ValueError as exc:
            raise ParseError(f"line {line_no}: invalid date {raw!r}") from exc

    @staticmethod
    def _parse_decimal(raw: str, line_no: int, currency: str) -> float:
        value = raw.strip().replace(",", ".")
        if not _DECIMAL_PATTERN.match(value):
            raise ParseError(f"line {line_no}: invalid {currency} rate {raw!r}")
        price = float(value)
        if price <= 0:
            raise ParseError(f"line {line_no}: {currency} rate must be positive, got {raw!r}")
        return price


__all__ = ["NBPArchiveCSVParser", "DEFAULT_COLUMNS", "HEADER_LITERALS"]
