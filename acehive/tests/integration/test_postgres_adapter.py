"""
tests/integration/test_postgres_adapter.py
──────────────────────────────────────────────────────────────────────────────
Integration tests for PostgresStorageAdapter.

Requires a running PostgreSQL instance reachable through DB_DSN.  The tests
create and drop their own scratch table, so any empty database will do.
They are marked @pytest.mark.integration and are SKIPPED in the standard
test run.

Run with:
  pytest -m integration acehive/tests/integration/test_postgres_adapter.py -v

Environment:
  DB_DSN defaults to "dbname=acehive"
"""
from __future__ import annotations

import pytest

pytestmark = pytest.mark.integration

_TABLE = "acehive_it_resources"


@pytest.fixture(scope="module")
def pg_adapter():
    """Create a real PostgresStorageAdapter with a scratch table."""
    from acehive.adapters.postgres_db import PostgresStorageAdapter
    from acehive.config.settings import get_settings
    adapter = PostgresStorageAdapter(get_settings())
    conn = adapter._get_conn()
    with conn.cursor() as cur:
        cur.execute(f"DROP TABLE IF EXISTS {_TABLE}")
        cur.execute(
            f"""CREATE TABLE {_TABLE} (
                    id serial PRIMARY KEY,
                    title text,
                    year text,
                    tags text[],
                    created_at timestamptz DEFAULT now()
                )"""
        )
    yield adapter
    with adapter._get_conn().cursor() as cur:
        cur.execute(f"DROP TABLE IF EXISTS {_TABLE}")
    adapter.close()


class TestRoundTrip:
    def test_empty_table_returns_no_rows(self, pg_adapter):
        assert pg_adapter.select_all(_TABLE) == []

    def test_insert_then_select(self, pg_adapter):
        pg_adapter.insert(_TABLE, {"title": "Thermo CT", "year": "2nd Year", "tags": ["a", "b"]})
        rows = pg_adapter.select_all(_TABLE)
        assert rows[0]["title"] == "Thermo CT"
        assert rows[0]["tags"] == ["a", "b"]
        # timestamps come back as ISO strings, not datetime objects
        assert isinstance(rows[0]["created_at"], str)

    def test_column_order_follows_table(self, pg_adapter):
        rows = pg_adapter.select_all(_TABLE)
        assert list(rows[0]) == ["id", "title", "year", "tags", "created_at"]

    def test_select_where_and_count(self, pg_adapter):
        pg_adapter.insert(_TABLE, {"title": "Maths", "year": "1st Year", "tags": []})
        assert [r["title"] for r in pg_adapter.select_where(_TABLE, {"year": "1st Year"})] == ["Maths"]
        assert pg_adapter.count_where(_TABLE, "year", "2nd Year") == 1


class TestErrors:
    def test_unknown_table_is_storage_error(self, pg_adapter):
        from acehive.domain.exceptions import StorageError
        with pytest.raises(StorageError, match="does not exist"):
            pg_adapter.select_all("acehive_no_such_table")

    def test_connection_survives_failed_query(self, pg_adapter):
        from acehive.domain.exceptions import StorageError
        with pytest.raises(StorageError):
            pg_adapter.insert(_TABLE, {"no_such_column": 1})
        assert pg_adapter.count_where(_TABLE, "year", "2nd Year") == 1
