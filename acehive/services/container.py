"""
services/container.py
──────────────────────────────────────────────────────────────────────────────
Dependency Injection container.

THIS IS THE ONLY FILE THAT NAMES CONCRETE ADAPTER CLASSES.

Provider selection is driven entirely by environment variables:

  STORE_PROVIDER=supabase  (default) → SupabaseRestAdapter
  STORE_PROVIDER=postgres            → PostgresStorageAdapter

Services hold per-user state (draft, selected table, session), so the
container shares only the stateless parts (settings, storage adapter, column
policy) and hands out fresh stateful services through ConsoleServices.

Thread safety:
  @lru_cache(maxsize=1) makes get_console() return the same instance across
  calls.  Streamlit wraps it in st.cache_resource; each browser session then
  builds its own controllers from it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from acehive.config.settings import Settings, get_settings
from acehive.domain.exceptions import ConfigurationError
from acehive.ports.storage_port import StoragePort
from acehive.services.sanitizer import ColumnPolicy
from acehive.services.session import SessionContext
from acehive.services.stats import ResourceStats
from acehive.services.submission import SubmissionController
from acehive.services.table_reader import SchemaInferringReader, TableBrowser

logger = logging.getLogger(__name__)


def build_storage(settings: Settings) -> StoragePort:
    """Instantiate the correct StoragePort adapter based on STORE_PROVIDER."""
    provider = settings.store_provider.lower()
    if provider == "supabase":
        from acehive.adapters.supabase_rest import SupabaseRestAdapter
        logger.info("Storage provider: Supabase REST (%s)", settings.supabase_url)
        return SupabaseRestAdapter(settings)
    if provider == "postgres":
        from acehive.adapters.postgres_db import PostgresStorageAdapter
        logger.info("Storage provider: Postgres")
        return PostgresStorageAdapter(settings)
    raise ConfigurationError(
        f"Unknown STORE_PROVIDER '{settings.store_provider}'. "
        "Valid values: 'supabase', 'postgres'."
    )


@dataclass(frozen=True)
class ConsoleServices:
    """Shared wiring; each factory returns a new stateful service."""

    settings: Settings
    storage: StoragePort
    policy: ColumnPolicy

    def session(self, persist: bool = False) -> SessionContext:
        path = self.settings.session_path if persist else None
        return SessionContext.load(self.storage, path)

    def submission_controller(self) -> SubmissionController:
        return SubmissionController(self.storage)

    def table_browser(self) -> TableBrowser:
        return TableBrowser(SchemaInferringReader(self.storage), self.policy)

    def stats(self) -> ResourceStats:
        return ResourceStats(self.storage)


def build_console(settings: Settings, storage: StoragePort) -> ConsoleServices:
    return ConsoleServices(
        settings=settings,
        storage=storage,
        policy=ColumnPolicy.from_settings(settings),
    )


@lru_cache(maxsize=1)
def get_console() -> ConsoleServices:
    """Build and return the process-wide ConsoleServices singleton.

    Raises:
        ConfigurationError: Unknown provider or missing credentials.
    """
    settings = get_settings()
    logger.info("Building console | store_provider=%s", settings.store_provider)
    console = build_console(settings, build_storage(settings))
    logger.info(
        "Console ready | tables=%s hidden(resources)=%s",
        ",".join(settings.browse_tables),
        ",".join(settings.resources_hidden_columns),
    )
    return console
