"""MySQL backend strategy."""

from __future__ import annotations

from typing import Any

from fx_nbp.db.relational_backend import RelationalBackend

# MySQL drops idle connections after ``wait_timeout`` (8h by default).
MYSQL_POOL_RECYCLE_SECONDS = 3600


class MySQLBackend(RelationalBackend):
    """Concrete relational backend for MySQL engines."""

    def __init__(self, url: str, **engine_options: Any) -> None:
        engine_options.setdefault("pool_pre_ping", True)
        engine_options.setdefault("pool_recycle", MYSQL_POOL_RECYCLE_SECONDS)
        super().__init__(url, **engine_options)


__all__ = ["MySQLBackend", "MYSQL_POOL_RECYCLE_SECONDS"]
