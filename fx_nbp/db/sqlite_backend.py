"""SQLite backend strategy implementation."""

from __future__ import annotations

from pathlib import Path

from fx_nbp.db import DEFAULT_SQLITE_DB_PATH
from fx_nbp.db.relational_backend import RelationalBackend


class SQLiteBackend(RelationalBackend):
    """Backend strategy that stores rates in a local SQLite file."""

    def __init__(self, db_path: str | Path = DEFAULT_SQLITE_DB_PATH) -> None:
        self.db_path = Path(db_path).expanduser().resolve()
        super().__init__(
            f"sqlite:///{self.db_path}",
            connect_args={"check_same_thread": False},
        )
        # The bundled database must be usable straight after construction.
        self.ensure_schema()


__all__ = ["SQLiteBackend"]
