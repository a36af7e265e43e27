"""
ports/storage_port.py
──────────────────────────────────────────────────────────────────────────────
Abstract interface for the storage collaborator.

The backing store is opaque to the core: it is reached only through the
operations below, and every row comes back as a plain column → value dict.
No schema is assumed — the browsing services infer columns from the rows.

Current implementations:
  SupabaseRestAdapter    (PostgREST over requests)
  PostgresStorageAdapter (psycopg2)
To swap: write a new adapter implementing this Protocol and add a branch in
services/container.py.
"""
from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class StoragePort(Protocol):
    """Contract for the query / insert / credential backend."""

    def insert(self, table: str, record: dict[str, Any]) -> None:
        """Insert one row.

        Implementations must not retry: a failed insert is reported once and
        the caller decides whether to resubmit.

        Raises:
            StorageError: On any failure, carrying the backend's message.
        """
        ...

    def select_all(self, table: str) -> list[dict[str, Any]]:
        """Return every row of ``table`` (possibly empty).

        Raises:
            StorageError: On connection or query failure.
        """
        ...

    def select_where(
        self,
        table: str,
        filters: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """Return rows of ``table`` where every column equals its filter value.

        Raises:
            StorageError: On connection or query failure.
        """
        ...

    def count_where(self, table: str, column: str, value: Any) -> int:
        """Count rows of ``table`` where ``column`` equals ``value``.

        Raises:
            StorageError: On connection or query failure.
        """
        ...

    def check_credential(self, user: str, password: str) -> list[dict[str, Any]]:
        """Return the ``auth`` rows matching user + password (0 or more).

        Raises:
            StorageError: On connection or query failure.
        """
        ...

    def sign_out(self) -> None:
        """End the backend session, if the backend has one."""
        ...
