"""
services/filtering.py
──────────────────────────────────────────────────────────────────────────────
Client-side filtering and title search over a fetched row set.

apply_query() is a pure function: it reads the rows it is given and returns
a new list; the source rows are never modified.  Predicates AND together:
  • year          — equality on the ``year`` column (when set)
  • resource type — equality on the ``resource_type`` column (when set)
  • search text   — case-insensitive substring of ``title`` (when set);
                    rows without a string title never match

FilterState wraps it with the two ways the console triggers filtering:
  apply_filters()     recompute every predicate, raise the "applied" flag
  on_search_change()  live title search while typing, always against the
                      full snapshot, so clearing the box restores every row
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

from acehive.domain.models import BrowseQuery, Row

logger = logging.getLogger(__name__)

YEAR_COLUMN          = "year"
RESOURCE_TYPE_COLUMN = "resource_type"
TITLE_COLUMN         = "title"


# ── Pure functions ─────────────────────────────────────────────────────────

def row_matches(row: Row, query: BrowseQuery) -> bool:
    """True if ``row`` satisfies every predicate set on ``query``."""
    if query.year and row.get(YEAR_COLUMN) != query.year:
        return False
    if query.resource_type and row.get(RESOURCE_TYPE_COLUMN) != query.resource_type:
        return False
    if query.search_text:
        title = row.get(TITLE_COLUMN)
        if not isinstance(title, str) or not title:
            return False
        return query.search_text.casefold() in title.casefold()
    return True


def apply_query(rows: Sequence[Row], query: BrowseQuery) -> list[Row]:
    """Rows matching ``query``, in their original order."""
    if query.is_blank:
        return list(rows)
    return [row for row in rows if row_matches(row, query)]


# ── Stateful filter session ────────────────────────────────────────────────

class FilterState:
    """Filter fields, the filtered view and the "filters applied" indicator.

    Every recomputation starts from the snapshot given at construction.
    """

    def __init__(self, rows: Sequence[Row] = (), table_name: str = "resources") -> None:
        self._source: tuple[Row, ...] = tuple(rows)
        self._query = BrowseQuery(table_name=table_name)
        self._filtered: list[Row] = list(self._source)
        self._applied = False

    # ── Views ──────────────────────────────────────────────────────────────

    @property
    def source(self) -> tuple[Row, ...]:
        return self._source

    @property
    def query(self) -> BrowseQuery:
        return self._query

    @property
    def rows(self) -> list[Row]:
        return list(self._filtered)

    @property
    def filters_applied(self) -> bool:
        return self._applied

    # ── Field edits (no recompute until apply) ─────────────────────────────

    def set_year(self, year: Optional[str]) -> None:
        self._query = self._query.model_copy(update={"year": year or None})

    def set_resource_type(self, resource_type: Optional[str]) -> None:
        self._query = self._query.model_copy(update={"resource_type": resource_type or None})

    # ── Triggers ───────────────────────────────────────────────────────────

    def apply_filters(self) -> list[Row]:
        """Explicit "Apply": all predicates over the full snapshot."""
        self._filtered = apply_query(self._source, self._query)
        self._applied = True
        logger.debug(
            "Filters applied | table=%s %d/%d rows",
            self._query.table_name, len(self._filtered), len(self._source),
        )
        return self.rows

    def on_search_change(self, text: str) -> list[Row]:
        """Live search: title predicate only, over the full snapshot."""
        self._query = self._query.model_copy(update={"search_text": text})
        self._filtered = apply_query(self._source, BrowseQuery(search_text=text))
        return self.rows

    def reset(self) -> list[Row]:
        """Clear every filter field and the indicator; show all rows."""
        self._query = BrowseQuery(table_name=self._query.table_name)
        self._filtered = list(self._source)
        self._applied = False
        return self.rows
