"""
adapters/supabase_rest.py
──────────────────────────────────────────────────────────────────────────────
Implements StoragePort against a Supabase project's PostgREST API.

Key behaviour:
  - Uses /rest/v1/<table> via raw requests (no supabase SDK dependency)
  - Equality filters are encoded as PostgREST ``col=eq.value`` params
  - Counts use ``Prefer: count=exact`` on a HEAD request and parse the
    ``Content-Range`` header (``0-24/3573`` or ``*/0``)
  - Reads retry on 429 / 500 / 503 with exponential back-off
  - Inserts are sent exactly once; a failure is reported, never retried
  - Every call is bounded by STORE_TIMEOUT

Required env vars:
  SUPABASE_URL   — e.g. https://abcd1234.supabase.co
  SUPABASE_KEY   — anon or service-role key

To enable:
  STORE_PROVIDER=supabase (the default).
"""
from __future__ import annotations

import logging
import time
from typing import Any

import requests

from acehive.config.settings import Settings
from acehive.domain.exceptions import ConfigurationError, StorageError

logger = logging.getLogger(__name__)

_RETRY_STATUSES = (429, 500, 503)


class SupabaseRestAdapter:
    """PostgREST implementation of StoragePort.

    Injected into the services via services/container.py when
    ``STORE_PROVIDER=supabase``.
    """

    def __init__(self, settings: Settings) -> None:
        if not settings.supabase_url or not settings.supabase_key:
            raise ConfigurationError(
                "SUPABASE_URL and SUPABASE_KEY must both be set. "
                "Add them to your .env file or environment."
            )
        self._settings = settings
        self._base_url = settings.supabase_url.rstrip("/")
        self._headers = {
            "apikey": settings.supabase_key,
            "Authorization": f"Bearer {settings.supabase_key}",
            "Content-Type": "application/json",
        }
        logger.debug("SupabaseRestAdapter ready | url=%s", self._base_url)

    # ── StoragePort implementation ─────────────────────────────────────────

    def insert(self, table: str, record: dict[str, Any]) -> None:
        """POST a single row.  One attempt only."""
        try:
            resp = requests.request(
                "POST",
                self._table_url(table),
                headers={**self._headers, "Prefer": "return=minimal"},
                json=record,
                timeout=self._settings.store_timeout,
            )
        except requests.RequestException as exc:
            raise StorageError(f"insert into {table} failed: {exc}") from exc

        if not resp.ok:
            message = _error_message(resp)
            logger.error("Supabase insert %s HTTP %d: %s", table, resp.status_code, message)
            raise StorageError(message)
        logger.debug("Supabase insert %s OK", table)

    def select_all(self, table: str) -> list[dict[str, Any]]:
        resp = self._read("GET", table, params={"select": "*"})
        return _rows(resp)

    def select_where(
        self,
        table: str,
        filters: dict[str, Any],
    ) -> list[dict[str, Any]]:
        params = {"select": "*", **_eq_params(filters)}
        resp = self._read("GET", table, params=params)
        return _rows(resp)

    def count_where(self, table: str, column: str, value: Any) -> int:
        params = {"select": "*", **_eq_params({column: value})}
        resp = self._read(
            "HEAD", table, params=params, extra_headers={"Prefer": "count=exact"}
        )
        return _parse_count(resp.headers.get("Content-Range", ""))

    def check_credential(self, user: str, password: str) -> list[dict[str, Any]]:
        return self.select_where("auth", {"user": user, "pwd": password})

    def sign_out(self) -> None:
        """Best-effort logout; a failure is logged and otherwise ignored."""
        try:
            resp = requests.request(
                "POST",
                f"{self._base_url}/auth/v1/logout",
                headers=self._headers,
                timeout=self._settings.store_timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Supabase sign-out failed: %s", exc)
            return
        if not resp.ok:
            logger.warning("Supabase sign-out HTTP %d: %s", resp.status_code, _error_message(resp))

    # ── Private helpers ────────────────────────────────────────────────────

    def _table_url(self, table: str) -> str:
        return f"{self._base_url}/rest/v1/{table}"

    def _read(
        self,
        method: str,
        table: str,
        params: dict[str, str],
        extra_headers: dict[str, str] | None = None,
    ) -> requests.Response:
        """Idempotent request with back-off on 429 / 5xx and transport errors."""
        retries = max(1, self._settings.store_retries)
        headers = {**self._headers, **(extra_headers or {})}
        delay = 1.0
        last_error = "no attempts made"

        for attempt in range(1, retries + 1):
            try:
                resp = requests.request(
                    method,
                    self._table_url(table),
                    headers=headers,
                    params=params,
                    timeout=self._settings.store_timeout,
                )
            except requests.RequestException as exc:
                last_error = str(exc)
                logger.warning(
                    "Supabase %s %s request error (attempt %d/%d): %s",
                    method, table, attempt, retries, exc,
                )
            else:
                if resp.status_code in _RETRY_STATUSES:
                    last_error = _error_message(resp)
                    logger.warning(
                        "Supabase %s %s HTTP %d (attempt %d/%d) — back-off %.1fs",
                        method, table, resp.status_code, attempt, retries, delay,
                    )
                elif not resp.ok:
                    message = _error_message(resp)
                    logger.error(
                        "Supabase %s %s HTTP %d: %s", method, table, resp.status_code, message
                    )
                    raise StorageError(message)
                else:
                    return resp

            if attempt < retries:
                time.sleep(delay)
                delay *= 2

        raise StorageError(last_error)


# ── Module helpers ─────────────────────────────────────────────────────────

def _eq_params(filters: dict[str, Any]) -> dict[str, str]:
    """Encode equality filters as PostgREST query params."""
    params: dict[str, str] = {}
    for column, value in filters.items():
        if value is None:
            params[column] = "is.null"
        elif isinstance(value, bool):
            params[column] = f"eq.{str(value).lower()}"
        else:
            params[column] = f"eq.{value}"
    return params


def _rows(resp: requests.Response) -> list[dict[str, Any]]:
    try:
        body = resp.json()
    except ValueError as exc:
        raise StorageError(f"unparseable response body: {exc}") from exc
    if not isinstance(body, list):
        raise StorageError(f"expected a list of rows, got {type(body).__name__}")
    return body


def _parse_count(content_range: str) -> int:
    """``0-24/3573`` → 3573; ``*/0`` → 0."""
    _, _, total = content_range.rpartition("/")
    try:
        return int(total)
    except ValueError as exc:
        raise StorageError(f"missing row count in Content-Range {content_range!r}") from exc


def _error_message(resp: requests.Response) -> str:
    """Pull PostgREST's ``message`` out of an error body, falling back to text."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    text = (resp.text or "").strip()
    return text[:300] if text else f"HTTP {resp.status_code}"
