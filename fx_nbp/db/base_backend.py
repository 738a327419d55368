"""Backend strategy interfaces for fx_nbp."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence

from fx_nbp.ingestion.models import RateRecord


@dataclass(slots=True)
class PersistenceResult:
    """Represents how many rows were inserted or updated in a batch."""

    inserted: int = 0
    updated: int = 0

    @property
    def total(self) -> int:
        """Return the total number of affected rows."""

        return self.inserted + self.updated


class BackendStrategy(ABC):
    """Common interface implemented by every storage backend."""

    @abstractmethod
    def ensure_schema(self) -> None:
        """Create required tables and verify connectivity."""

    @abstractmethod
    def save_batch(self, records: Sequence[RateRecord]) -> PersistenceResult:
        """Upsert ``records`` by ``(rate_date, currency)`` in a single transaction.

        Either every record is written or none is; failures raise
        :class:`~fx_nbp.exceptions.StorageError`.
        """

    @abstractmethod
    def get_all(self, currency: str | None = None) -> list[RateRecord]:
        """Return stored rates, optionally for one currency, in a stable order."""

    def close(self) -> None:  # pragma: no cover - optional cleanup hook
        """Backends may override to release connections/resources."""

    def __enter__(self) -> "BackendStrategy":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["BackendStrategy", "PersistenceResult"]
