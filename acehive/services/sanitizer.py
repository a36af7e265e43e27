"""
services/sanitizer.py
──────────────────────────────────────────────────────────────────────────────
Per-table column hiding for the browsing views.

Policy (defaults):
  resources   → hide RESOURCES_HIDDEN_COLUMNS (id, description, file_urls,
                tags, created_at)
  auth        → hide nothing
  any other   → hide id

Headers and cell values are both produced from visible_columns(), so the two
can never fall out of order.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

from acehive.config.settings import Settings
from acehive.domain.models import CellValue, Row

DEFAULT_HIDDEN: frozenset[str] = frozenset({"id"})


@dataclass(frozen=True)
class ColumnPolicy:
    """Hidden-column sets keyed by table name, with a fallback for the rest."""

    overrides: Mapping[str, frozenset[str]] = field(
        default_factory=lambda: MappingProxyType({"auth": frozenset()})
    )
    default: frozenset[str] = DEFAULT_HIDDEN

    @classmethod
    def from_settings(cls, settings: Settings) -> "ColumnPolicy":
        return cls(
            overrides=MappingProxyType({
                "resources": frozenset(settings.resources_hidden_columns),
                "auth": frozenset(),
            }),
        )

    def hidden_for(self, table: str) -> frozenset[str]:
        return self.overrides.get(table, self.default)

    def visible_columns(self, table: str, columns: Iterable[str]) -> list[str]:
        """Drop the table's hidden columns, keeping the original order."""
        hidden = self.hidden_for(table)
        return [col for col in columns if col not in hidden]

    def project_row(self, row: Row, columns: Sequence[str]) -> list[CellValue]:
        """Cell values of ``row`` in ``columns`` order (None where absent)."""
        return [row.get(col) for col in columns]
