"""
adapters/postgres_db.py
──────────────────────────────────────────────────────────────────────────────
Implements StoragePort directly against PostgreSQL using psycopg2.

Useful when the console runs next to the database (or against a local copy
of the Supabase schema) instead of through the REST gateway.

Expected tables (created by the Supabase project, not by this adapter):
  resources       title, description, year, degree, specialisation, subject,
                  elective, tags text[], resource_type, file_urls text[], ...
  auth            user, pwd, ...
  feedback, collaborations, ...   browsed generically

Table and column names are always quoted with psycopg2.sql.Identifier, so
arbitrary table names from the browsing UI cannot inject SQL.

Connection management:
  - A single connection is opened lazily and reused.
  - Reads: on OperationalError the connection is reset and one retry is made.
  - Inserts: never retried; the caller decides whether to resubmit.
  - connect_timeout and statement_timeout both come from STORE_TIMEOUT.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any
from uuid import UUID

import psycopg2
import psycopg2.extras
from psycopg2 import sql

from acehive.config.settings import Settings
from acehive.domain.exceptions import StorageError

logger = logging.getLogger(__name__)


class PostgresStorageAdapter:
    """psycopg2 implementation of StoragePort.

    Injected via services/container.py when ``STORE_PROVIDER=postgres``.
    """

    def __init__(self, settings: Settings) -> None:
        self._dsn = settings.db_dsn
        self._timeout = settings.store_timeout
        self._conn: Any = None
        logger.debug("PostgresStorageAdapter ready | dsn=%s", self._dsn)

    # ── StoragePort implementation ─────────────────────────────────────────

    def insert(self, table: str, record: dict[str, Any]) -> None:
        columns = list(record)
        query = sql.SQL("INSERT INTO {table} ({cols}) VALUES ({vals})").format(
            table=sql.Identifier(table),
            cols=sql.SQL(", ").join(sql.Identifier(c) for c in columns),
            vals=sql.SQL(", ").join(sql.Placeholder() * len(columns)),
        )
        self._execute(query, tuple(record[c] for c in columns), fetch=False, retry=False)

    def select_all(self, table: str) -> list[dict[str, Any]]:
        query = sql.SQL("SELECT * FROM {table}").format(table=sql.Identifier(table))
        return self._execute(query, ())

    def select_where(
        self,
        table: str,
        filters: dict[str, Any],
    ) -> list[dict[str, Any]]:
        if not filters:
            return self.select_all(table)
        query = sql.SQL("SELECT * FROM {table} WHERE {where}").format(
            table=sql.Identifier(table),
            where=_where_clause(filters),
        )
        return self._execute(query, tuple(filters.values()))

    def count_where(self, table: str, column: str, value: Any) -> int:
        query = sql.SQL("SELECT COUNT(*) AS n FROM {table} WHERE {where}").format(
            table=sql.Identifier(table),
            where=_where_clause({column: value}),
        )
        rows = self._execute(query, (value,))
        return int(rows[0]["n"]) if rows else 0

    def check_credential(self, user: str, password: str) -> list[dict[str, Any]]:
        return self.select_where("auth", {"user": user, "pwd": password})

    def sign_out(self) -> None:
        """Direct connections carry no user session; just release the socket."""
        self.close()

    # ── Connection helpers ─────────────────────────────────────────────────

    def _get_conn(self) -> Any:
        """Return an open connection, creating or reusing one."""
        if self._conn is None or self._conn.closed:
            self._conn = self._new_conn()
        return self._conn

    def _new_conn(self) -> Any:
        """Open a fresh autocommit connection with bounded timeouts."""
        try:
            conn = psycopg2.connect(
                self._dsn,
                connect_timeout=self._timeout,
                options=f"-c statement_timeout={self._timeout * 1000}",
            )
            conn.autocommit = True
            logger.debug("PostgresStorageAdapter: new connection opened")
            return conn
        except psycopg2.Error as exc:
            raise StorageError(f"Cannot connect to database: {exc}") from exc

    def _execute(
        self,
        query: sql.Composable,
        params: tuple,
        fetch: bool = True,
        retry: bool = True,
    ) -> list[dict]:
        """Execute a statement and return rows as dicts.

        With ``retry`` a dropped connection is reopened once; otherwise the
        first OperationalError is reported.
        """
        attempts = (1, 2) if retry else (1,)
        for attempt in attempts:
            conn = self._get_conn()
            try:
                with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                    cur.execute(query, params)
                    return [_plain_row(row) for row in cur.fetchall()] if fetch else []
            except psycopg2.OperationalError as exc:
                self._conn = None
                if attempt < len(attempts):
                    logger.warning("DB OperationalError — reconnecting: %s", exc)
                    continue
                raise StorageError(str(exc).strip()) from exc
            except psycopg2.Error as exc:
                raise StorageError(str(exc).strip()) from exc
        return []  # unreachable

    def close(self) -> None:
        """Explicitly close the connection (optional — GC handles it otherwise)."""
        if self._conn and not self._conn.closed:
            self._conn.close()
            logger.debug("PostgresStorageAdapter: connection closed")


def _where_clause(filters: dict[str, Any]) -> sql.Composable:
    return sql.SQL(" AND ").join(
        sql.SQL("{col} = {ph}").format(col=sql.Identifier(col), ph=sql.Placeholder())
        for col in filters
    )


def _plain_row(row: dict[str, Any]) -> dict[str, Any]:
    """Coerce driver-specific cell types to str / int / float / bool / list / dict."""
    return {col: _plain_value(val) for col, val in row.items()}


def _plain_value(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_plain_value(v) for v in value]
    return value
