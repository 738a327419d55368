"""CLI + helpers for populating the rates database from the NBP."""

from __future__ import annotations

import argparse
import os
from datetime import date
from typing import Callable, Sequence, cast

from fx_nbp.config import DatabaseConnectionInfo, create_backend
from fx_nbp.db.base_backend import BackendStrategy, PersistenceResult
from fx_nbp.exceptions import FxNbpError, NoDataError
from fx_nbp.ingestion.models import RateRecord
from fx_nbp.ingestion.nbp_api import NBPApiClient
from fx_nbp.ingestion.nbp_csv import NBPArchiveCSVParser
from fx_nbp.ingestion.nbp_table import NBPTableParser
from fx_nbp.ingestion.strategy import ArchiveProvider, RateTableProvider
from fx_nbp.utils.date_range import DateRange, format_month, month_range, parse_date
from fx_nbp.utils.logger import get_logger

LOGGER = get_logger(__name__)

__all__ = ["RateIngestor", "parse_args", "main"]


class RateIngestor:
    """Drive fetch → parse → persist for each ingestion trigger.

    Every trigger persists its records as one batch. A failure in any stage
    propagates unchanged and nothing from that trigger is written.
    """

    def __init__(
        self,
        backend: BackendStrategy,
        provider: RateTableProvider | None = None,
        *,
        table_parser: NBPTableParser | None = None,
        csv_parser: NBPArchiveCSVParser | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.backend = backend
        self.provider = provider if provider is not None else NBPApiClient()
        self.table_parser = table_parser or NBPTableParser()
        self.csv_parser = csv_parser or NBPArchiveCSVParser()
        self._today = today

    def ingest_current(self) -> list[RateRecord]:
        """Fetch and store today's table."""

        tables = self.provider.fetch_current_table()
        if not tables:
            raise NoDataError("NBP returned no current table")
        return self._persist("current table", self.table_parser.parse(tables[0]))

    def ingest_by_date(self, day: date | str) -> list[RateRecord]:
        """Fetch and store the table published on ``day``."""

        rate_date = parse_date(day)
        tables = self.provider.fetch_tables_for_range(DateRange(rate_date, rate_date))
        if not tables:
            raise NoDataError(f"NBP returned no table for {rate_date.isoformat()}")
        return self._persist(f"table {rate_date.isoformat()}", self.table_parser.parse(tables[0]))

    def ingest_by_month(self, year_month: str | None = None) -> list[RateRecord]:
        """Fetch and store every table of ``year_month`` (``YYYY-MM``) up to today.

        An empty selector means the current month.
        """

        today = self._today()
        selector = year_month or format_month(today)
        date_range = month_range(selector, max_date=today)
        tables = self.provider.fetch_tables_for_range(date_range)
        LOGGER.info("Fetched %s table(s) for %s", len(tables), date_range)
        return self._persist(f"month {selector}", self.table_parser.parse_many(tables))

    def ingest_archive(self) -> list[RateRecord]:
        """Fetch the bulk CSV archive and store every row it contains."""

        if not callable(getattr(self.provider, "fetch_bulk_archive", None)):
            raise TypeError(f"{type(self.provider).__name__} cannot fetch the bulk archive")
        payload = cast(ArchiveProvider, self.provider).fetch_bulk_archive()
        return self._persist("bulk archive", self.csv_parser.parse(payload))

    def _persist(self, label: str, records: list[RateRecord]) -> list[RateRecord]:
        if not records:
            LOGGER.info("%s → nothing to store", label)
            return records
        try:
            result = self.backend.save_batch(records)
        except FxNbpError as exc:
            LOGGER.warning("%s → failed to store %s rate(s): %s", label, len(records), exc)
            raise
        _log_result(label, result)
        return records


def _log_result(label: str, result: PersistenceResult) -> None:
    LOGGER.info(
        "%s → inserted %s rows, updated %s rows (total %s)",
        label,
        result.inserted,
        result.updated,
        result.total,
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--db",
        dest="db_url",
        default=os.environ.get("FX_NBP_DB_URL"),
        help="Database URL (defaults to $FX_NBP_DB_URL or the bundled SQLite file)",
    )
    parser.add_argument("--timeout", type=int, default=30, help="HTTP timeout in seconds")
    subparsers = parser.add_subparsers(dest="trigger", required=True)
    subparsers.add_parser("current", help="Store today's table")
    by_date = subparsers.add_parser("date", help="Store the table for one day")
    by_date.add_argument("day", help="Date (YYYY-MM-DD)")
    by_month = subparsers.add_parser("month", help="Store every table of a month")
    by_month.add_argument("month", nargs="?", default=None, help="Month (YYYY-MM), default current")
    subparsers.add_parser("archive", help="Store the bulk CSV archive for the current year")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    backend = create_backend(DatabaseConnectionInfo.resolve(args.db_url))
    try:
        backend.ensure_schema()
        with NBPApiClient(timeout=args.timeout) as client:
            ingestor = RateIngestor(backend, client)
            if args.trigger == "current":
                records = ingestor.ingest_current()
            elif args.trigger == "date":
                records = ingestor.ingest_by_date(args.day)
            elif args.trigger == "month":
                records = ingestor.ingest_by_month(args.month)
            else:
                records = ingestor.ingest_archive()
    except FxNbpError as exc:
        LOGGER.error("Ingestion failed: %s", exc)
        return 1
    finally:
        backend.close()
    LOGGER.info("Stored %s rate(s)", len(records))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
