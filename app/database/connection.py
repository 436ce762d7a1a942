from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg
from psycopg_pool import ConnectionPool

from app.config.settings import Settings

SCHEMA_PATH = Path(__file__).with_name("schema.sql")

_pool: ConnectionPool | None = None


def init_pool(settings: Settings) -> None:
    """Initialize the global connection pool from settings."""
    global _pool  # noqa: PLW0603
    conninfo = (
        f"host={settings.db_host} "
        f"port={settings.db_port} "
        f"dbname={settings.db_database} "
        f"user={settings.db_username} "
        f"password={settings.db_password}"
    )
    _pool = ConnectionPool(
        conninfo,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        open=True,
    )


def close_pool() -> None:
    """Close the global connection pool."""
    global _pool  # noqa: PLW0603
    if _pool is not None:
        _pool.close()
        _pool = None


@contextmanager
def get_connection() -> Generator[psycopg.Connection[Any], None, None]:
    """Yield a connection from the pool. Caller manages commit/rollback."""
    if _pool is None:
        raise RuntimeError("Connection pool not initialized. Call init_pool() first.")
    with _pool.connection() as conn:
        yield conn


def apply_schema(schema_path: Path | None = None) -> None:
    """Create the registry tables if they do not exist yet."""
    ddl = (schema_path or SCHEMA_PATH).read_text(encoding="utf-8")
    with get_connection() as conn:
        conn.execute(ddl)
        conn.commit()
