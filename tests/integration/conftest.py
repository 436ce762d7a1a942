import os
import uuid
from collections.abc import Generator
from typing import Any

import psycopg
import pytest

from app.actions.actions import Actions, build_actions
from app.config.settings import Settings
from app.database.connection import apply_schema, close_pool, get_connection, init_pool


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "report_registry_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        apply_schema()
    except Exception as e:
        close_pool()
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a disposable database."
        )
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def user_ids(integration_pool: None) -> Generator[dict[str, str], None, None]:
    """Fresh user ids per test; every row they own is removed afterwards."""
    suffix = uuid.uuid4().hex[:8]
    users = {"a": f"user-a-{suffix}", "b": f"user-b-{suffix}", "c": f"user-c-{suffix}"}
    yield users
    owned = list(users.values())
    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute("DELETE FROM searches WHERE user_id = ANY(%s)", (owned,))
            cur.execute("DELETE FROM reports WHERE user_id = ANY(%s)", (owned,))
        conn.commit()


@pytest.fixture
def actions(integration_pool: None) -> Actions:
    return build_actions()
