import os
from collections.abc import Generator
from typing import Any

import psycopg
import pytest

from doclens.config.settings import Settings
from doclens.database.connection import apply_schema, close_pool, get_connection, init_pool


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "doclens_test")
    return Settings()


def _clear_tables() -> None:
    with get_connection() as conn:
        conn.execute("DELETE FROM translation_jobs")
        conn.execute("DELETE FROM documents")
        conn.execute("DELETE FROM app_settings")
        conn.execute("DELETE FROM downloaded_models")
        conn.commit()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def database(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        apply_schema()
    except Exception as e:
        close_pool()
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env or see tests/integration/README.md"
        )
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def integration_pool(database: None) -> Generator[None, None, None]:
    """An initialized pool with empty tables; rows written by the test are removed after it."""
    _clear_tables()
    yield
    _clear_tables()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn
