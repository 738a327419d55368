"""PostgreSQL backend strategy."""

from __future__ import annotations

from typing import Any

from fx_nbp.db.relational_backend import RelationalBackend


class PostgresBackend(RelationalBackend):
    """Concrete relational backend for PostgreSQL engines.

    Pooled connections are pinged before use since a scheduler may leave the
    pool idle between daily fetches.
    """

    def __init__(self, url: str, **engine_options: Any) -> None:
        engine_options.setdefault("pool_pre_ping", True)
        super().__init__(url, **engine_options)


__all__ = ["PostgresBackend"]
