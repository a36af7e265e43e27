"""
services/session.py
──────────────────────────────────────────────────────────────────────────────
Explicit session context for the console's route guard.

The only session state is an "is authenticated" flag (plus the user name for
display).  It has one owner, a SessionContext, with fixed lifecycle rules:

  init      SessionContext.load(path) reads the persisted flag once
  sign_in   credential check against the ``auth`` table; on a match the flag
            is set and, when a path is configured, persisted
  sign_out  collaborator sign-out, then the flag is cleared and the
            persisted file removed
  guard     require_authenticated() raises AuthenticationError when unset

The CLI persists to SESSION_PATH so separate invocations share a login; the
Streamlit app keeps the context in st.session_state with no path.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from acehive.domain.exceptions import AuthenticationError
from acehive.ports.storage_port import StoragePort

logger = logging.getLogger(__name__)


class SessionContext:
    """Authenticated-or-not state for one console client."""

    def __init__(
        self,
        storage: StoragePort,
        persist_path: Optional[Path] = None,
        authenticated: bool = False,
        username: Optional[str] = None,
    ) -> None:
        self._storage = storage
        self._path = persist_path
        self._authenticated = authenticated
        self._username = username if authenticated else None

    @classmethod
    def load(cls, storage: StoragePort, persist_path: Optional[Path]) -> "SessionContext":
        """Build a context from the persisted flag (read once, here)."""
        authenticated, username = False, None
        if persist_path is not None and persist_path.exists():
            try:
                data = json.loads(persist_path.read_text(encoding="utf-8"))
                authenticated = data.get("authenticated") is True
                username = data.get("user")
            except (OSError, ValueError, AttributeError) as exc:
                logger.warning("Ignoring unreadable session file %s: %s", persist_path, exc)
        return cls(storage, persist_path, authenticated=authenticated, username=username)

    # ── Views ──────────────────────────────────────────────────────────────

    @property
    def is_authenticated(self) -> bool:
        return self._authenticated

    @property
    def username(self) -> Optional[str]:
        return self._username

    # ── Lifecycle ──────────────────────────────────────────────────────────

    def sign_in(self, user: str, password: str) -> None:
        """Check credentials; set and persist the flag on a match.

        Raises:
            AuthenticationError: Blank input or no matching ``auth`` row.
            StorageError: If the credential lookup itself fails.
        """
        if not user or not password:
            raise AuthenticationError("Username and password are required")

        rows = self._storage.check_credential(user, password)
        if not rows:
            logger.info("Sign-in rejected | user=%s", user)
            raise AuthenticationError("Invalid username or password")

        self._authenticated = True
        self._username = user
        self._persist()
        logger.info("Signed in | user=%s", user)

    def sign_out(self) -> None:
        """End the collaborator session and clear local state."""
        try:
            self._storage.sign_out()
        finally:
            self._authenticated = False
            self._username = None
            if self._path is not None:
                self._path.unlink(missing_ok=True)
            logger.info("Signed out")

    def require_authenticated(self) -> None:
        """Route guard."""
        if not self._authenticated:
            raise AuthenticationError("Sign in required")

    # ── Private helpers ────────────────────────────────────────────────────

    def _persist(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps({"authenticated": True, "user": self._username}),
            encoding="utf-8",
        )
