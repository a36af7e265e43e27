"""
domain/exceptions.py
──────────────────────────────────────────────────────────────────────────────
Custom exception hierarchy.

All exceptions are rooted at AcehiveError so callers can catch broadly
(except AcehiveError) or narrowly (except FetchError).

None of these is fatal: every interface catches them and hands control back
to the user with a visible, actionable message.
  DraftValidationError → inline, next to the offending field(s)
  FetchError           → dismissible banner on the browsing page
  SubmitError          → alert on the submission form
  AuthenticationError  → login page message
"""
from __future__ import annotations


class AcehiveError(Exception):
    """Base exception for all application errors."""


class ConfigurationError(AcehiveError):
    """Raised when required configuration is missing or invalid."""


class StorageError(AcehiveError):
    """Raised when a storage collaborator call fails.

    The message is the collaborator's own message, passed through verbatim.
    """


class AuthenticationError(AcehiveError):
    """Raised on rejected credentials or when a route guard finds no session."""


class DraftValidationError(AcehiveError):
    """Raised when a resource draft is incomplete or inconsistent.

    Attributes:
        errors: Mapping of draft field name → human-readable message.
    """

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        summary = "; ".join(f"{name}: {msg}" for name, msg in self.errors.items())
        super().__init__(summary or "invalid draft")


class FetchError(AcehiveError):
    """Raised when reading a table from the storage collaborator fails."""

    def __init__(self, table: str, message: str) -> None:
        self.table = table
        self.message = message
        super().__init__(f"Failed to fetch data from {table}: {message}")


class SubmitError(AcehiveError):
    """Raised when a resource submission cannot proceed."""


class SubmissionInProgressError(SubmitError):
    """Raised when a second submit is attempted while one is in flight."""
