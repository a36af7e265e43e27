"""
services/stats.py
──────────────────────────────────────────────────────────────────────────────
Aggregate counts for the dashboard widgets (resources per year / per type).

Each count is a separate count_where() call; the storage backend does the
counting, nothing is fetched row by row.
"""
from __future__ import annotations

import logging

from acehive.domain.exceptions import FetchError, StorageError
from acehive.domain.models import ResourceType, Year
from acehive.ports.storage_port import StoragePort
from acehive.services.filtering import RESOURCE_TYPE_COLUMN, YEAR_COLUMN
from acehive.services.submission import RESOURCES_TABLE

logger = logging.getLogger(__name__)


class ResourceStats:
    """Count widgets backed by StoragePort.count_where()."""

    def __init__(self, storage: StoragePort, table: str = RESOURCES_TABLE) -> None:
        self._storage = storage
        self._table = table

    def by_year(self) -> dict[str, int]:
        return self._counts(YEAR_COLUMN, [y.value for y in Year])

    def by_resource_type(self) -> dict[str, int]:
        return self._counts(RESOURCE_TYPE_COLUMN, [t.value for t in ResourceType])

    def _counts(self, column: str, values: list[str]) -> dict[str, int]:
        try:
            counts = {v: self._storage.count_where(self._table, column, v) for v in values}
        except StorageError as exc:
            raise FetchError(self._table, str(exc)) from exc
        logger.debug("Counts | table=%s column=%s %s", self._table, column, counts)
        return counts
