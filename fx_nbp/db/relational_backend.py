"""SQLAlchemy powered storage shared by the SQLite, Postgres and MySQL backends."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable, Sequence

from sqlalchemy import Column, Date, DateTime, Float, String, create_engine, func, select, text
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.sql.dml import Insert

from fx_nbp.db.base_backend import BackendStrategy, PersistenceResult
from fx_nbp.exceptions import StorageError
from fx_nbp.ingestion.models import RateRecord
from fx_nbp.utils.logger import get_logger

LOGGER = get_logger(__name__)

# Rows per INSERT statement; keeps bound parameters under SQLite's limit.
UPSERT_CHUNK_SIZE = 200


class Base(DeclarativeBase):
    pass


class _ExchangeRate(Base):
    __tablename__ = "exchange_rates"

    rate_date = Column(Date, primary_key=True)
    currency = Column(String(3), primary_key=True)
    price = Column(Float(precision=53), nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())


class RelationalBackend(BackendStrategy):
    """Base class that encapsulates SQLAlchemy powered interactions.

    The engine is created on first use so constructing a backend never opens
    a connection.
    """

    def __init__(self, url: str, **engine_options: Any) -> None:
        self.url = url
        self._engine_options = engine_options
        self._engine_instance: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    def _get_engine(self) -> Engine:
        if self._engine_instance is None:
            self._engine_instance = create_engine(self.url, future=True, **self._engine_options)
        return self._engine_instance

    def _get_session_factory(self) -> sessionmaker[Session]:
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self._get_engine(), expire_on_commit=False, future=True
            )
        return self._session_factory

    def ensure_schema(self) -> None:
        try:
            engine = self._get_engine()
            with engine.begin() as connection:
                LOGGER.info("Ensuring exchange_rates schema exists")
                connection.execute(text("SELECT 1"))
            Base.metadata.create_all(engine)
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to ensure exchange_rates schema: {exc}") from exc

    def save_batch(self, records: Sequence[RateRecord]) -> PersistenceResult:
        result = PersistenceResult()
        if not records:
            return result
        # Later duplicates in one batch win, as if upserted one after another.
        latest: dict[tuple[date, str], RateRecord] = {}
        for record in records:
            latest[(record.rate_date, record.currency)] = record
        rows = [
            {"rate_date": rate_date, "currency": currency, "price": record.price}
            for (rate_date, currency), record in latest.items()
        ]
        try:
            with self._get_session_factory().begin() as session:
                existing = self._existing_keys(session, latest.keys())
                for offset in range(0, len(rows), UPSERT_CHUNK_SIZE):
                    session.execute(
                        self._upsert_statement(rows[offset : offset + UPSERT_CHUNK_SIZE])
                    )
        except SQLAlchemyError as exc:
            LOGGER.warning("Rolled back batch of %s rate(s): %s", len(records), exc)
            raise StorageError(f"Failed to save batch of {len(records)} rate(s): {exc}") from exc
        result.updated = len(existing)
        result.inserted = len(rows) - result.updated
        LOGGER.info(
            "Inserted %s rows, updated %s rows (total %s)",
            result.inserted,
            result.updated,
            result.total,
        )
        return result

    def _existing_keys(
        self, session: Session, keys: Iterable[tuple[date, str]]
    ) -> set[tuple[date, str]]:
        """Return which of ``keys`` are already stored; used for the counters only."""

        wanted = set(keys)
        stmt = select(_ExchangeRate.rate_date, _ExchangeRate.currency).where(
            _ExchangeRate.rate_date.in_(sorted({rate_date for rate_date, _ in wanted})),
            _ExchangeRate.currency.in_(sorted({currency for _, currency in wanted})),
        )
        found = {
            (_normalise_rate_date(rate_date), str(currency))
            for rate_date, currency in session.execute(stmt)
        }
        return found & wanted

    def _upsert_statement(self, rows: list[dict[str, Any]]) -> Insert:
        """Build an insert-or-replace on ``(rate_date, currency)`` for the bound dialect."""

        table = _ExchangeRate.__table__
        dialect = self._get_engine().dialect.name
        if dialect == "mysql":
            mysql_stmt = mysql_insert(table).values(rows)
            return mysql_stmt.on_duplicate_key_update(
                price=mysql_stmt.inserted.price, updated_at=func.now()
            )
        if dialect == "postgresql":
            stmt = postgresql_insert(table).values(rows)
        elif dialect == "sqlite":
            stmt = sqlite_insert(table).values(rows)
        else:
            raise StorageError(f"Upserts are not supported for the {dialect!r} dialect")
        return stmt.on_conflict_do_update(
            index_elements=[table.c.rate_date, table.c.currency],
            set_={"price": stmt.excluded.price, "updated_at": func.now()},
        )

    def get_all(self, currency: str | None = None) -> list[RateRecord]:
        stmt = select(_ExchangeRate).order_by(_ExchangeRate.rate_date, _ExchangeRate.currency)
        if currency is not None:
            stmt = stmt.where(_ExchangeRate.currency == currency)
        try:
            with self._get_session_factory()() as session:
                return [
                    RateRecord(
                        rate_date=_normalise_rate_date(model.rate_date),
                        currency=str(model.currency),
                        price=float(model.price),
                    )
                    for model in session.execute(stmt).scalars()
                ]
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to read exchange rates: {exc}") from exc

    def close(self) -> None:
        if self._engine_instance is not None:
            self._engine_instance.dispose()
            self._engine_instance = None
            self._session_factory = None


def _normalise_rate_date(value: object) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


__all__ = ["RelationalBackend"]
