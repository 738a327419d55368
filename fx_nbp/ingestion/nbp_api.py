"""``requests``-based client for the NBP web API and CSV archive."""

from __future__ import annotations

from datetime import date
from typing import Any, Callable

import requests

from fx_nbp.exceptions import ParseError, ProviderError
from fx_nbp.ingestion.models import RateTable
from fx_nbp.utils.date_range import DateRange, format_date
from fx_nbp.utils.logger import get_logger

LOGGER = get_logger(__name__)

NBP_API_URL = "https://api.nbp.pl/api"
NBP_ARCHIVE_URL_TEMPLATE = "https://static.nbp.pl/dane/kursy/Archiwum/archiwum_tab_a_{year}.csv"
USER_AGENT = "fx-nbp-ingestor/1.0"


class NBPApiClient:
    """Fetch exchange-rate tables and yearly archives from the NBP.

    A ``404`` from the tables endpoint is how NBP reports "no data" for a
    date or range, so it maps to an empty list rather than an error.
    """

    def __init__(
        self,
        *,
        session: requests.Session | None = None,
        base_url: str = NBP_API_URL,
        archive_url_template: str = NBP_ARCHIVE_URL_TEMPLATE,
        table: str = "A",
        timeout: int = 30,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})
        self.base_url = base_url.rstrip("/")
        self.archive_url_template = archive_url_template
        self.table = table
        self.timeout = timeout
        self._today = today

    def fetch_current_table(self) -> list[RateTable]:
        url = f"{self.base_url}/exchangerates/tables/{self.table}/"
        return self._fetch_tables(url)

    def fetch_tables_for_range(self, date_range: DateRange) -> list[RateTable]:
        start, end = date_range.as_tuple()
        if start == end:
            url = f"{self.base_url}/exchangerates/tables/{self.table}/{format_date(start)}/"
        else:
            url = (
                f"{self.base_url}/exchangerates/tables/{self.table}/"
                f"{format_date(start)}/{format_date(end)}/"
            )
        return self._fetch_tables(url)

    def fetch_bulk_archive(self, year: int | None = None) -> bytes:
        url = self.archive_url_template.format(year=year or self._today().year)
        response = self._get(url)
        self._raise_with_context(response, url)
        LOGGER.info("Downloaded NBP archive %s (%s bytes)", url, len(response.content))
        return response.content

    def _fetch_tables(self, url: str) -> list[RateTable]:
        response = self._get(url, params={"format": "json"})
        if response.status_code == 404:
            LOGGER.info("NBP has no table data for %s", url)
            return []
        self._raise_with_context(response, url)
        try:
            payload: Any = response.json()
        except ValueError as exc:
            raise ParseError(f"NBP returned a non-JSON body for {url}") from exc
        if not isinstance(payload, list):
            raise ParseError(f"expected a list of tables from {url}, got {type(payload).__name__}")
        tables = [RateTable.from_payload(item) for item in payload]
        LOGGER.info("Fetched %s NBP table(s) from %s", len(tables), url)
        return tables

    def _get(self, url: str, **kwargs: Any) -> requests.Response:
        try:
            return self.session.get(url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            LOGGER.debug("Request to %s failed: %s", url, exc)
            raise ProviderError(f"unable to reach NBP at {url}: {exc}") from exc

    @staticmethod
    def _raise_with_context(response: requests.Response, url: str) -> None:
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise ProviderError(f"NBP responded with HTTP {response.status_code} for {url}") from exc

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "NBPApiClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = ["NBPApiClient", "NBP_API_URL", "NBP_ARCHIVE_URL_TEMPLATE"]
