"""Relational backend integration tests using SQLite."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from pathlib import Path

import pytest

from fx_nbp.db.relational_backend import RelationalBackend, _normalise_rate_date
from fx_nbp.exceptions import StorageError
from fx_nbp.ingestion.models import RateRecord


@pytest.fixture()
def backend(tmp_path: Path):
    instance = RelationalBackend(f"sqlite:///{tmp_path / 'relational.db'}")
    instance.ensure_schema()
    yield instance
    instance.close()


BATCH = [
    RateRecord(rate_date=date(2024, 1, 2), currency="USD", price=3.9432),
    RateRecord(rate_date=date(2024, 1, 2), currency="EUR", price=4.3434),
    RateRecord(rate_date=date(2024, 1, 3), currency="USD", price=3.9909),
]


def test_save_batch_inserts_then_updates(backend: RelationalBackend) -> None:
    first = backend.save_batch(BATCH)
    assert (first.inserted, first.updated) == (3, 0)

    second = backend.save_batch(
        [RateRecord(rate_date=date(2024, 1, 2), currency="USD", price=3.95)]
    )
    assert (second.inserted, second.updated) == (0, 1)

    usd = backend.get_all("USD")
    assert [row.price for row in usd] == [3.95, 3.9909]


def test_save_batch_is_idempotent(backend: RelationalBackend) -> None:
    backend.save_batch(BATCH)
    once = backend.get_all()

    result = backend.save_batch(BATCH)
    twice = backend.get_all()

    assert result.inserted == 0
    assert result.updated == len(BATCH)
    assert twice == once
    assert len(twice) == 3


def test_save_batch_is_atomic(backend: RelationalBackend) -> None:
    broken = [
        RateRecord(rate_date=date(2024, 2, 1), currency="USD", price=4.0),
        RateRecord(rate_date=date(2024, 2, 2), currency="USD", price=None),  # type: ignore[arg-type]
        RateRecord(rate_date=date(2024, 2, 3), currency="USD", price=4.1),
    ]

    with pytest.raises(StorageError):
        backend.save_batch(broken)

    assert backend.get_all() == []


def test_failed_batch_leaves_existing_rows_untouched(backend: RelationalBackend) -> None:
    backend.save_batch(BATCH)

    with pytest.raises(StorageError):
        backend.save_batch(
            [
                RateRecord(rate_date=date(2024, 1, 2), currency="USD", price=9.99),
                RateRecord(rate_date=date(2024, 1, 4), currency="EUR", price=None),  # type: ignore[arg-type]
            ]
        )

    assert backend.get_all("USD")[0].price == 3.9432
    assert len(backend.get_all()) == 3


def test_duplicate_keys_within_a_batch_keep_the_last_value(backend: RelationalBackend) -> None:
    result = backend.save_batch(
        [
            RateRecord(rate_date=date(2024, 1, 2), currency="USD", price=3.90),
            RateRecord(rate_date=date(2024, 1, 2), currency="USD", price=3.91),
        ]
    )

    assert result.total == 1
    assert backend.get_all("USD")[0].price == 3.91


def test_get_all_filters_by_currency_and_orders_by_date(backend: RelationalBackend) -> None:
    backend.save_batch(list(reversed(BATCH)))

    assert [row.currency for row in backend.get_all("EUR")] == ["EUR"]
    assert [(row.rate_date, row.currency) for row in backend.get_all()] == [
        (date(2024, 1, 2), "EUR"),
        (date(2024, 1, 2), "USD"),
        (date(2024, 1, 3), "USD"),
    ]


def test_empty_batch_is_a_no_op(backend: RelationalBackend) -> None:
    result = backend.save_batch([])

    assert result.total == 0
    assert backend.get_all() == []


def test_unreachable_database_raises_storage_error(tmp_path: Path) -> None:
    backend = RelationalBackend(f"sqlite:///{tmp_path / 'missing' / 'nested' / 'rates.db'}")

    with pytest.raises(StorageError):
        backend.ensure_schema()


def test_normalise_rate_date_handles_multiple_input_types() -> None:
    assert _normalise_rate_date(date(2024, 5, 1)) == date(2024, 5, 1)
    assert _normalise_rate_date(datetime(2024, 5, 2, 15, 0)) == date(2024, 5, 2)
    assert _normalise_rate_date("2024-05-03") == date(2024, 5, 3)


def test_upsert_overwrites_a_row_stored_after_the_existence_check(
    backend: RelationalBackend, monkeypatch
) -> None:
    # Another writer stores the key between the lookup and the insert.
    monkeypatch.setattr(backend, "_existing_keys", lambda session, keys: set())
    backend.save_batch([RateRecord(rate_date=date(2024, 1, 2), currency="USD", price=3.90)])

    result = backend.save_batch(
        [RateRecord(rate_date=date(2024, 1, 2), currency="USD", price=3.95)]
    )

    assert (result.inserted, result.updated) == (1, 0)
    stored = backend.get_all()
    assert len(stored) == 1
    assert stored[0].price == 3.95


def test_overlapping_batches_from_two_writers_both_commit(tmp_path: Path, monkeypatch) -> None:
    url = f"sqlite:///{tmp_path / 'shared.db'}"
    writers = [RelationalBackend(url, connect_args={"timeout": 30, "check_same_thread": False}) for _ in range(2)]
    writers[0].ensure_schema()
    barrier = threading.Barrier(len(writers), timeout=10)

    for writer in writers:
        lookup = writer._existing_keys

        def lookup_then_wait(session, keys, _lookup=lookup):
            found = _lookup(session, keys)
            # Both writers have seen an empty table before either inserts.
            barrier.wait()
            return found

        monkeypatch.setattr(writer, "_existing_keys", lookup_then_wait)

    batches = [
        [
            RateRecord(rate_date=date(2024, 1, 2), currency="USD", price=3.9432),
            RateRecord(rate_date=date(2024, 1, 2), currency="EUR", price=4.3434),
        ],
        [
            RateRecord(rate_date=date(2024, 1, 2), currency="USD", price=3.9500),
            RateRecord(rate_date=date(2024, 1, 3), currency="USD", price=3.9909),
        ],
    ]
    try:
        with ThreadPoolExecutor(max_workers=len(writers)) as pool:
            futures = [
                pool.submit(writer.save_batch, batch) for writer, batch in zip(writers, batches)
            ]
            results = [future.result() for future in futures]
        stored = writers[0].get_all()
    finally:
        for writer in writers:
            writer.close()

    assert [result.total for result in results] == [2, 2]
    assert [(row.rate_date, row.currency) for row in stored] == [
        (date(2024, 1, 2), "EUR"),
        (date(2024, 1, 2), "USD"),
        (date(2024, 1, 3), "USD"),
    ]
    assert stored[1].price in {3.9432, 3.9500}
