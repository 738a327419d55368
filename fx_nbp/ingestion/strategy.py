"""Contracts for the upstream providers the ingestion layer consumes."""

from __future__ import annotations

from typing import Protocol, Sequence

from fx_nbp.ingestion.models import RateTable
from fx_nbp.utils.date_range import DateRange


class RateTableProvider(Protocol):
    """Source of published NBP rate tables.

    Implementations return an empty sequence when the provider has no table
    for the request (weekends, holidays, not yet published).
    """

    def fetch_current_table(self) -> Sequence[RateTable]:
        ...  # pragma: no cover - protocol definition

    def fetch_tables_for_range(self, date_range: DateRange) -> Sequence[RateTable]:
        ...  # pragma: no cover - protocol definition


class ArchiveProvider(Protocol):
    """Source of the bulk historical CSV archive."""

    def fetch_bulk_archive(self) -> bytes:
        ...  # pragma: no cover - protocol definition


__all__ = ["ArchiveProvider", "RateTableProvider"]
