"""NBP client tests with the HTTP session replaced by an in-memory fake."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List

import pytest
import requests

from fx_nbp.exceptions import ParseError, ProviderError
from fx_nbp.ingestion.nbp_api import NBPApiClient
from fx_nbp.utils.date_range import DateRange

TABLES = [
    {
        "table": "A",
        "no": "004/A/NBP/2024",
        "effectiveDate": "2024-01-05",
        "rates": [
            {"currency": "dolar amerykański", "code": "USD", "mid": 3.985},
            {"currency": "euro", "code": "EUR", "mid": 4.355},
        ],
    }
]


class _DummyResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, content: bytes = b"") -> None:
        self.status_code = status_code
        self._payload = payload
        self.content = content

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class _DummySession:
    def __init__(self, response: _DummyResponse | Exception) -> None:
        self.response = response
        self.headers: Dict[str, str] = {}
        self.calls: List[tuple[str, Dict[str, Any]]] = []
        self.closed = False

    def get(self, url: str, **kwargs: Any) -> _DummyResponse:
        self.calls.append((url, kwargs))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response

    def close(self) -> None:
        self.closed = True


def _client(response: _DummyResponse | Exception) -> tuple[NBPApiClient, _DummySession]:
    session = _DummySession(response)
    return NBPApiClient(session=session, timeout=5, today=lambda: date(2024, 2, 14)), session


def test_fetch_current_table_parses_payload() -> None:
    client, session = _client(_DummyResponse(payload=TABLES))

    tables = client.fetch_current_table()

    assert len(tables) == 1
    assert tables[0].effective_date == "2024-01-05"
    assert [rate.code for rate in tables[0].rates] == ["USD", "EUR"]
    url, kwargs = session.calls[0]
    assert url == "https://api.nbp.pl/api/exchangerates/tables/A/"
    assert kwargs == {"timeout": 5, "params": {"format": "json"}}
    assert session.headers["User-Agent"].startswith("fx-nbp")


def test_fetch_tables_for_range_builds_range_and_single_day_urls() -> None:
    client, session = _client(_DummyResponse(payload=TABLES))

    client.fetch_tables_for_range(DateRange(date(2024, 2, 1), date(2024, 2, 14)))
    client.fetch_tables_for_range(DateRange(date(2024, 1, 5), date(2024, 1, 5)))

    assert [call[0] for call in session.calls] == [
        "https://api.nbp.pl/api/exchangerates/tables/A/2024-02-01/2024-02-14/",
        "https://api.nbp.pl/api/exchangerates/tables/A/2024-01-05/",
    ]


def test_not_found_means_no_tables() -> None:
    client, _ = _client(_DummyResponse(status_code=404))

    assert client.fetch_tables_for_range(DateRange(date(2024, 1, 6), date(2024, 1, 6))) == []


def test_server_errors_raise_provider_error() -> None:
    client, _ = _client(_DummyResponse(status_code=503))

    with pytest.raises(ProviderError, match="HTTP 503"):
        client.fetch_current_table()


def test_connection_errors_raise_provider_error() -> None:
    client, _ = _client(requests.ConnectionError("connection refused"))

    with pytest.raises(ProviderError, match="unable to reach NBP"):
        client.fetch_current_table()


def test_non_json_body_raises_parse_error() -> None:
    client, _ = _client(_DummyResponse(payload=None))

    with pytest.raises(ParseError):
        client.fetch_current_table()


def test_unexpected_json_shape_raises_parse_error() -> None:
    client, _ = _client(_DummyResponse(payload={"status": "ok"}))

    with pytest.raises(ParseError, match="expected a list"):
        client.fetch_current_table()


def test_fetch_bulk_archive_defaults_to_current_year() -> None:
    client, session = _client(_DummyResponse(content=b"data;1USD\n"))

    payload = client.fetch_bulk_archive()

    assert payload == b"data;1USD\n"
    assert session.calls[0][0].endswith("archiwum_tab_a_2024.csv")


def test_fetch_bulk_archive_for_explicit_year() -> None:
    client, session = _client(_DummyResponse(content=b""))

    client.fetch_bulk_archive(2022)

    assert session.calls[0][0].endswith("archiwum_tab_a_2022.csv")


def test_context_manager_closes_session() -> None:
    client, session = _client(_DummyResponse(payload=TABLES))

    with client:
        pass

    assert session.closed is True
