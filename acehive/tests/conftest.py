"""
tests/conftest.py
──────────────────────────────────────────────────────────────────────────────
Shared pytest fixtures and mock adapter implementations.

Mock adapters implement StoragePort via structural subtyping — they do NOT
inherit from any base class.  pytest uses them to test service logic without
any real Supabase or database connection.

Fixture hierarchy:
  settings          → Settings with test defaults (no env needed)
  storage           → MockStorageAdapter (in-memory tables, records calls)
  failing_storage   → FailingStorageAdapter (every call raises StorageError)
  controller        → SubmissionController wired with storage
  browser           → TableBrowser wired with storage + default policy
  console           → ConsoleServices wired with storage
  valid_draft       → a draft that passes validation (concrete scenario 1)
"""
from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import pytest

from acehive.config.settings import Settings
from acehive.domain.exceptions import StorageError
from acehive.domain.models import ResourceDraft
from acehive.services.container import ConsoleServices, build_console
from acehive.services.sanitizer import ColumnPolicy
from acehive.services.submission import SubmissionController
from acehive.services.table_reader import SchemaInferringReader, TableBrowser


# ── Settings fixture ───────────────────────────────────────────────────────

@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Return a Settings instance with sane test defaults."""
    return Settings(
        store_provider="supabase",
        supabase_url="https://test.supabase.co",
        supabase_key="test-key",
        db_dsn="dbname=acehive_test",
        store_timeout=5,
        store_retries=3,
        resources_hidden_columns=("id", "description", "file_urls", "tags", "created_at"),
        browse_tables=("resources", "feedback", "collaborations", "auth"),
        session_path=tmp_path / "session.json",
    )


# ── In-memory fixture data ─────────────────────────────────────────────────

RESOURCE_ROWS: list[dict[str, Any]] = [
    {
        "id": 1,
        "title": "Thermodynamics CT-1",
        "description": "Class test paper",
        "year": "2nd Year",
        "degree": "Mechanical",
        "specialisation": "Robotics",
        "subject": "Thermo",
        "elective": None,
        "tags": ["2nd Year", "Mechanical", "Thermo", "CT Paper"],
        "resource_type": "CT Paper",
        "file_urls": ["a.pdf", "b.pdf"],
        "created_at": "2024-09-01T10:00:00+00:00",
    },
    {
        "id": 2,
        "title": "Engineering Maths Notes",
        "description": "Unit 1-5",
        "year": "1st Year",
        "degree": "None",
        "specialisation": "None",
        "subject": "Maths",
        "elective": None,
        "tags": ["1st Year", "Maths", "Study Material"],
        "resource_type": "Study Material",
        "file_urls": ["m.pdf"],
        "created_at": "2024-09-02T10:00:00+00:00",
    },
    {
        "id": 3,
        "title": "Data Structures Sem Paper",
        "description": "End-sem 2023",
        "year": "2nd Year",
        "degree": "Computer Science",
        "specialisation": "Core",
        "subject": "DSA",
        "elective": None,
        "tags": ["2nd Year", "Computer Science", "DSA", "Sem Paper"],
        "resource_type": "Sem Paper",
        "file_urls": ["d.pdf"],
        "created_at": "2024-09-03T10:00:00+00:00",
    },
    {
        "id": 4,
        "title": "French CT",
        "description": "Language elective",
        "year": "2nd Year",
        "degree": "Civil",
        "specialisation": "Civil Engineering Core",
        "subject": None,
        "elective": "French",
        "tags": ["2nd Year", "Civil", "French", "CT Paper"],
        "resource_type": "CT Paper",
        "file_urls": ["f.pdf"],
        "created_at": "2024-09-04T10:00:00+00:00",
    },
]

FEEDBACK_ROWS: list[dict[str, Any]] = [
    {"id": 10, "name": "Asha", "message": "Great notes", "rating": 5},
    {"id": 11, "name": "Ravi", "message": "More CT papers please", "rating": 4},
]

AUTH_ROWS: list[dict[str, Any]] = [
    {"id": 1, "user": "admin", "pwd": "s3cret"},
]


# ── Mock adapters ──────────────────────────────────────────────────────────

class MockStorageAdapter:
    """In-memory fake storage backend that records every call."""

    def __init__(self, tables: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self.tables = copy.deepcopy(tables) if tables is not None else {
            "resources": copy.deepcopy(RESOURCE_ROWS),
            "feedback": copy.deepcopy(FEEDBACK_ROWS),
            "collaborations": [],
            "auth": copy.deepcopy(AUTH_ROWS),
        }
        self.inserts: list[tuple[str, dict[str, Any]]] = []
        self.selects: list[str] = []
        self.signed_out = False

    def insert(self, table: str, record: dict[str, Any]) -> None:
        self.inserts.append((table, copy.deepcopy(record)))
        self.tables.setdefault(table, []).append(copy.deepcopy(record))

    def select_all(self, table: str) -> list[dict[str, Any]]:
        self.selects.append(table)
        if table not in self.tables:
            raise StorageError(f'relation "public.{table}" does not exist')
        return copy.deepcopy(self.tables[table])

    def select_where(self, table: str, filters: dict[str, Any]) -> list[dict[str, Any]]:
        return [
            row for row in self.select_all(table)
            if all(row.get(col) == val for col, val in filters.items())
        ]

    def count_where(self, table: str, column: str, value: Any) -> int:
        return len(self.select_where(table, {column: value}))

    def check_credential(self, user: str, password: str) -> list[dict[str, Any]]:
        return self.select_where("auth", {"user": user, "pwd": password})

    def sign_out(self) -> None:
        self.signed_out = True


class FailingStorageAdapter:
    """Every call fails with the same collaborator message."""

    message = "connection refused"

    def __init__(self) -> None:
        self.calls = 0
        self.signed_out = False

    def _fail(self, *args: Any, **kwargs: Any) -> Any:
        self.calls += 1
        raise StorageError(self.message)

    insert = _fail
    select_all = _fail
    select_where = _fail
    count_where = _fail
    check_credential = _fail

    def sign_out(self) -> None:
        self.signed_out = True


# ── pytest fixtures ────────────────────────────────────────────────────────

@pytest.fixture
def storage():
    return MockStorageAdapter()


@pytest.fixture
def failing_storage():
    return FailingStorageAdapter()


@pytest.fixture
def policy(settings):
    return ColumnPolicy.from_settings(settings)


@pytest.fixture
def controller(storage):
    return SubmissionController(storage)


@pytest.fixture
def browser(storage, policy):
    return TableBrowser(SchemaInferringReader(storage), policy)


@pytest.fixture
def console(settings, storage) -> ConsoleServices:
    return build_console(settings, storage)


@pytest.fixture
def valid_draft() -> ResourceDraft:
    return ResourceDraft(
        year="2nd Year",
        degree="Mechanical",
        specialisation="Robotics",
        subject="Thermo",
        subject_type="Subject",
        resource_type="CT Paper",
        file_urls="a.pdf, b.pdf",
        title="T",
        description="D",
    )
