"""
services/table_reader.py
──────────────────────────────────────────────────────────────────────────────
Generic table browsing: fetch any named table and work out its columns.

There is no schema registry.  The column set is the key order of the first
row returned; an empty table therefore has no columns, and the view shows
"no data" rather than an error.

SchemaInferringReader.load_table()
  One select-all call → immutable TableSnapshot.  Collaborator failures are
  raised as FetchError(table, message).

TableBrowser
  The stateful selector used by the interfaces.  It is the error boundary:
  FetchError becomes BrowseStatus.ERROR and never propagates further.
  Each selection gets a generation token; a result arriving for an older
  token is discarded, so a slow response for table A cannot overwrite a
  newer selection of table B.  A second load of the table already in flight
  is not started.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional, Sequence, Union

from pydantic import ValidationError

from acehive.domain.exceptions import FetchError, StorageError
from acehive.domain.models import BrowseStatus, CellValue, Row, TableSnapshot
from acehive.ports.storage_port import StoragePort
from acehive.services.filtering import FilterState
from acehive.services.sanitizer import ColumnPolicy

logger = logging.getLogger(__name__)


def infer_columns(rows: Sequence[Row]) -> tuple[str, ...]:
    """Column names from the first row's keys; () for an empty result."""
    if not rows:
        return ()
    return tuple(rows[0].keys())


class SchemaInferringReader:
    """Reads whole tables through StoragePort.

    Args:
        storage: Any object satisfying StoragePort.
    """

    def __init__(self, storage: StoragePort) -> None:
        self._storage = storage

    def load_table(self, table: str) -> TableSnapshot:
        """Fetch every row of ``table``.

        Returns:
            TableSnapshot with rows and inferred columns.

        Raises:
            FetchError: If the collaborator fails or returns unusable rows.
        """
        logger.info("Loading table | table=%s", table)
        try:
            rows = self._storage.select_all(table)
        except StorageError as exc:
            raise FetchError(table, str(exc)) from exc

        try:
            snapshot = TableSnapshot(
                table=table,
                columns=infer_columns(rows),
                rows=tuple(rows),
            )
        except ValidationError as exc:
            raise FetchError(
                table, f"unsupported row shape ({exc.error_count()} invalid values)"
            ) from exc

        logger.info(
            "Table loaded | table=%s rows=%d columns=%d",
            table, len(snapshot.rows), len(snapshot.columns),
        )
        return snapshot


LoadOutcome = Union[TableSnapshot, FetchError]


class TableBrowser:
    """Selected table + its snapshot, filters, sanitised view and status.

    Args:
        reader: SchemaInferringReader used for every fetch.
        policy: Column visibility policy.
    """

    def __init__(self, reader: SchemaInferringReader, policy: ColumnPolicy) -> None:
        self._reader = reader
        self._policy = policy
        self._lock = threading.Lock()
        self._selected: Optional[str] = None
        self._generation = 0
        self._in_flight: Optional[int] = None
        self._snapshot: Optional[TableSnapshot] = None
        self._filters = FilterState()
        self._status = BrowseStatus.IDLE
        self._error: Optional[FetchError] = None

    # ── Views ──────────────────────────────────────────────────────────────

    @property
    def selected_table(self) -> Optional[str]:
        return self._selected

    @property
    def snapshot(self) -> Optional[TableSnapshot]:
        return self._snapshot

    @property
    def filters(self) -> FilterState:
        return self._filters

    @property
    def error(self) -> Optional[FetchError]:
        return self._error

    @property
    def status(self) -> BrowseStatus:
        """LOADING / ERROR / EMPTY / READY; EMPTY also covers "filtered to nothing"."""
        if self._status == BrowseStatus.READY and not self._filters.rows:
            return BrowseStatus.EMPTY
        return self._status

    @property
    def is_loading(self) -> bool:
        return self._in_flight is not None

    def visible_columns(self) -> list[str]:
        if self._snapshot is None:
            return []
        return self._policy.visible_columns(self._snapshot.table, self._snapshot.columns)

    def visible_rows(self) -> list[list[CellValue]]:
        """Filtered rows projected onto visible_columns(), same order as headers."""
        columns = self.visible_columns()
        return [self._policy.project_row(row, columns) for row in self._filters.rows]

    def visible_records(self) -> list[dict[str, CellValue]]:
        """visible_rows() keyed by column name (for DataFrames / JSON)."""
        columns = self.visible_columns()
        return [dict(zip(columns, values)) for values in self.visible_rows()]

    # ── Loading ────────────────────────────────────────────────────────────

    def begin_load(self, table: str) -> Optional[int]:
        """Start a load of ``table`` and return its token.

        Returns None when the same table is already being loaded; the caller
        must not issue another fetch.  Selecting a different table
        invalidates any load still in flight.
        """
        with self._lock:
            if self._in_flight is not None and table == self._selected:
                logger.debug("Load of %s already in flight; not starting another", table)
                return None
            self._generation += 1
            self._selected = table
            self._in_flight = self._generation
            self._status = BrowseStatus.LOADING
            self._error = None
            return self._generation

    def complete_load(self, token: int, outcome: LoadOutcome) -> bool:
        """Install a finished load.  Returns False if ``token`` is stale."""
        with self._lock:
            if token != self._generation:
                logger.warning(
                    "Discarding stale result | token=%d current=%d table=%s",
                    token, self._generation, self._selected,
                )
                return False

            self._in_flight = None
            table = self._selected or ""
            if isinstance(outcome, FetchError):
                logger.warning("Fetch failed | table=%s error=%s", table, outcome.message)
                self._snapshot = None
                self._filters = FilterState(table_name=table)
                self._error = outcome
                self._status = BrowseStatus.ERROR
            else:
                self._snapshot = outcome
                self._filters = FilterState(outcome.rows, table_name=table)
                self._error = None
                self._status = BrowseStatus.EMPTY if outcome.is_empty else BrowseStatus.READY
            return True

    def fetch(self, table: str) -> LoadOutcome:
        """Run the reader, capturing any failure as a FetchError value.

        Every started load must finish through complete_load(), so nothing
        raised by the reader may escape here.
        """
        try:
            return self._reader.load_table(table)
        except FetchError as exc:
            return exc
        except Exception as exc:
            logger.exception("Unexpected failure loading %s", table)
            return FetchError(table, str(exc) or type(exc).__name__)

    def select_table(self, table: str) -> BrowseStatus:
        """Select ``table`` and load it synchronously."""
        token = self.begin_load(table)
        if token is None:
            return self.status
        self.complete_load(token, self.fetch(table))
        return self.status

    def refresh(self) -> BrowseStatus:
        """Reload the currently selected table (retry after an error)."""
        if self._selected is None:
            return self.status
        return self.select_table(self._selected)

    def dismiss_error(self) -> None:
        """Hide the error banner; the table stays unloaded."""
        with self._lock:
            if self._status == BrowseStatus.ERROR:
                self._error = None
                self._status = BrowseStatus.IDLE
