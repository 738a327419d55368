"""Database configuration: DSN parsing and backend construction."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from urllib.parse import quote, urlparse, urlunparse

from fx_nbp.db import DEFAULT_SQLITE_DB_PATH
from fx_nbp.db.base_backend import BackendStrategy
from fx_nbp.db.mysql_backend import MySQLBackend
from fx_nbp.db.postgres_backend import PostgresBackend
from fx_nbp.db.sqlite_backend import SQLiteBackend

DB_URL_ENV_VAR = "FX_NBP_DB_URL"

__all__ = [
    "DB_URL_ENV_VAR",
    "DatabaseBackend",
    "DatabaseConnectionInfo",
    "create_backend",
]


class DatabaseBackend(str, Enum):
    """Supported database engines."""

    SQLITE = "sqlite"
    MYSQL = "mysql"
    POSTGRES = "postgres"

    @classmethod
    def resolve_backend_and_scheme(cls, scheme: str) -> tuple["DatabaseBackend", str]:
        """Return backend enum + canonical scheme used in connection URLs."""

        if not scheme:
            raise ValueError("DB URL must include a scheme (e.g. mysql:// or postgres://)")
        scheme_lower = scheme.lower()
        base_scheme, _, driver = scheme_lower.partition("+")
        if base_scheme in {"postgresql", "postgres"}:
            # Keep driver hints such as ``postgresql+psycopg``.
            return cls.POSTGRES, f"postgresql+{driver}" if driver else "postgresql"
        if base_scheme == "sqlite":
            return cls.SQLITE, "sqlite"
        if base_scheme == "mysql":
            return cls.MYSQL, scheme_lower if driver else "mysql"
        raise ValueError(
            "Unsupported database backend. Supported values are SQLite, MySQL and Postgres."
        )


@dataclass(slots=True)
class DatabaseConnectionInfo:
    """Represents how fx_nbp should talk to the persistence layer."""

    backend: DatabaseBackend
    url: str
    name: str | None
    username: str | None = None
    password: str | None = None
    host: str | None = None
    port: int | None = None

    @classmethod
    def from_url(cls, url: str) -> "DatabaseConnectionInfo":
        """Create a connection object by parsing a database URL/DSN."""

        parsed = urlparse(url.strip())
        if not parsed.scheme:
            raise ValueError("DB URL must include a scheme (e.g. mysql:// or postgres://)")
        backend, canonical_scheme = DatabaseBackend.resolve_backend_and_scheme(parsed.scheme)
        if parsed.scheme != canonical_scheme:
            parsed = parsed._replace(scheme=canonical_scheme)
        name = parsed.path[1:] if parsed.path and parsed.path != "/" else None
        return cls(
            backend=backend,
            url=urlunparse(parsed),
            name=name,
            username=parsed.username,
            password=parsed.password,
            host=parsed.hostname,
            port=parsed.port,
        )

    @classmethod
    def sqlite(cls, db_path: os.PathLike[str] | str = DEFAULT_SQLITE_DB_PATH) -> "DatabaseConnectionInfo":
        path = os.fspath(db_path)
        return cls(
            backend=DatabaseBackend.SQLITE,
            url=f"sqlite:///{quote(path.replace(os.sep, '/'), safe='/:')}",
            name=path,
        )

    @classmethod
    def resolve(cls, url: str | None = None) -> "DatabaseConnectionInfo":
        """Use ``url``, else ``$FX_NBP_DB_URL``, else the bundled SQLite file."""

        candidate = url or os.environ.get(DB_URL_ENV_VAR)
        if candidate:
            return cls.from_url(candidate)
        return cls.sqlite()

    @property
    def is_sqlite(self) -> bool:
        return self.backend is DatabaseBackend.SQLITE


def create_backend(info: DatabaseConnectionInfo) -> BackendStrategy:
    """Instantiate the storage backend described by ``info``."""

    if info.backend is DatabaseBackend.SQLITE:
        # ``sqlite:///relative.db`` leaves the file path in ``name``.
        return SQLiteBackend(info.name or DEFAULT_SQLITE_DB_PATH)
    if info.backend is DatabaseBackend.POSTGRES:
        return PostgresBackend(info.url)
    if info.backend is DatabaseBackend.MYSQL:
        return MySQLBackend(info.url)
    raise ValueError(f"Unsupported backend: {info.backend}")
