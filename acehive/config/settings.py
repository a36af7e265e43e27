"""
config/settings.py
──────────────────────────────────────────────────────────────────────────────
Single source of truth for all tuneable parameters.

All values can be overridden via environment variables or a .env file placed
at the project root.  The frozen dataclass ensures settings are never mutated
at runtime.

To swap the backing store, change the relevant env var — no code edits:
  STORE_PROVIDER   → supabase | postgres
  SUPABASE_URL     → Supabase project URL (REST provider)
  DB_DSN           → libpq DSN (postgres provider)
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root (two levels up from this file)
load_dotenv(Path(__file__).parent.parent.parent / ".env")


def _env(key: str, default: str) -> str:
    return os.getenv(key, default)


def _env_int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


def _env_path(key: str, default: Path) -> Path:
    return Path(os.getenv(key, str(default))).expanduser()


def _env_list(key: str, default: str) -> tuple[str, ...]:
    """Comma-separated env var → tuple of non-empty, stripped items."""
    raw = os.getenv(key, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    """Immutable application settings loaded from environment variables."""

    # ── Provider selection ──────────────────────────────────────────────────
    # Valid values: "supabase" | "postgres"
    store_provider: str = field(
        default_factory=lambda: _env("STORE_PROVIDER", "supabase")
    )

    # ── Supabase (PostgREST) ───────────────────────────────────────────────
    supabase_url: str = field(
        default_factory=lambda: _env("SUPABASE_URL", "")
    )
    supabase_key: str = field(
        default_factory=lambda: _env("SUPABASE_KEY", "")
    )

    # ── Postgres ───────────────────────────────────────────────────────────
    db_dsn: str = field(
        default_factory=lambda: _env("DB_DSN", "dbname=acehive")
    )

    # ── Collaborator calls ─────────────────────────────────────────────────
    # Every storage call is bounded; a stalled backend surfaces as an error
    # instead of an endless loading state.
    store_timeout: int = field(default_factory=lambda: _env_int("STORE_TIMEOUT", 15))
    store_retries: int = field(default_factory=lambda: _env_int("STORE_RETRIES", 3))

    # ── Browsing ───────────────────────────────────────────────────────────
    # Columns hidden from the "resources" table.  The narrower historical
    # variant is "id,description,file_urls".
    resources_hidden_columns: tuple[str, ...] = field(
        default_factory=lambda: _env_list(
            "RESOURCES_HIDDEN_COLUMNS", "id,description,file_urls,tags,created_at"
        )
    )
    browse_tables: tuple[str, ...] = field(
        default_factory=lambda: _env_list(
            "BROWSE_TABLES", "resources,feedback,collaborations,auth"
        )
    )

    # ── Session ────────────────────────────────────────────────────────────
    session_path: Path = field(
        default_factory=lambda: _env_path(
            "SESSION_PATH", Path.home() / ".acehive" / "session.json"
        )
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Returns a cached singleton Settings instance.

    Use this everywhere instead of instantiating Settings() directly —
    it guarantees a single object is shared across the entire process.
    """
    return Settings()
