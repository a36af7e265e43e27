"""
services/submission.py
──────────────────────────────────────────────────────────────────────────────
Submission controller: owns the form's draft and drives one insert per submit.

Lifecycle:

  IDLE ──submit──▶ VALIDATING ──invalid──▶ FAILED
                        │
                        └──valid──▶ SUBMITTING ──error──▶ FAILED
                                         └──ok──▶ SUCCEEDED
  FAILED / SUCCEEDED ──acknowledge──▶ IDLE

  • Validation failures never reach the storage collaborator.
  • The insert is attempted exactly once; the collaborator's error message
    is handed back verbatim.
  • The draft is cleared only when a SUCCEEDED result is acknowledged, so the
    UI can keep showing what was just submitted.  A failure leaves the draft
    untouched for resubmission.
  • At most one submission is in flight per controller (busy lock).
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from acehive.config.taxonomy import DEGREE_SPECIALISATIONS
from acehive.domain.exceptions import (
    DraftValidationError,
    StorageError,
    SubmissionInProgressError,
    SubmitError,
)
from acehive.domain.models import (
    ResourceDraft,
    ResourceRecord,
    SubmissionResult,
    SubmissionState,
)
from acehive.ports.storage_port import StoragePort
from acehive.services.classification import TaxonomySelection, derive_record

logger = logging.getLogger(__name__)

RESOURCES_TABLE = "resources"
SUCCESS_MESSAGE = "Resource added successfully!"


class SubmissionController:
    """Form state + submit orchestration for new resources.

    Args:
        storage:  Any object satisfying StoragePort.
        table:    Destination table.
        taxonomy: Degree → specialisations table.
    """

    def __init__(
        self,
        storage: StoragePort,
        table: str = RESOURCES_TABLE,
        taxonomy: Mapping[str, tuple[str, ...]] = DEGREE_SPECIALISATIONS,
    ) -> None:
        self._storage = storage
        self._table = table
        self._taxonomy = taxonomy
        self._draft = ResourceDraft()
        self._state = SubmissionState.IDLE
        self._last_result: Optional[SubmissionResult] = None
        self._busy = threading.Lock()

    # ── Read-only views ────────────────────────────────────────────────────

    @property
    def draft(self) -> ResourceDraft:
        return self._draft

    @property
    def state(self) -> SubmissionState:
        return self._state

    @property
    def last_result(self) -> Optional[SubmissionResult]:
        return self._last_result

    @property
    def selection(self) -> TaxonomySelection:
        """Taxonomy view of the draft (drives field enablement and options)."""
        return TaxonomySelection.from_draft(self._draft, self._taxonomy)

    # ── Form edits ─────────────────────────────────────────────────────────

    def update(self, **fields: Any) -> ResourceDraft:
        """Apply user edits to the draft.

        Year, degree and specialisation go through TaxonomySelection, so
        choosing "1st Year" clears any earlier degree / specialisation.

        Raises:
            DraftValidationError: On an illegal taxonomy transition or a value
                outside the allowed choices.
            SubmissionInProgressError: While a submission is in flight.
        """
        if self._state == SubmissionState.SUBMITTING:
            raise SubmissionInProgressError("Cannot edit the draft while it is being submitted")

        selection = self.selection
        if "year" in fields:
            try:
                selection = selection.select_year(fields.pop("year") or None)
            except ValueError as exc:
                raise DraftValidationError({"year": str(exc)}) from exc
        if "degree" in fields:
            degree = fields.pop("degree") or ""
            if degree or selection.degree_enabled:
                selection = selection.select_degree(degree)
        if "specialisation" in fields:
            specialisation = fields.pop("specialisation") or ""
            if specialisation or selection.degree_enabled:
                selection = selection.select_specialisation(specialisation)

        try:
            self._draft = self._draft.with_changes(
                year=selection.year,
                degree=selection.degree,
                specialisation=selection.specialisation,
                **fields,
            )
        except ValidationError as exc:
            raise DraftValidationError(_field_errors(exc)) from exc
        return self._draft

    # ── Submit ─────────────────────────────────────────────────────────────

    def submit(self) -> SubmissionResult:
        """Validate the draft and, if valid, insert it once.

        Returns:
            SubmissionResult in state SUCCEEDED or FAILED.

        Raises:
            SubmissionInProgressError: If another submit is still running.
            SubmitError: If the previous success has not been acknowledged.
        """
        if not self._busy.acquire(blocking=False):
            raise SubmissionInProgressError("A submission is already in progress")
        try:
            if self._state == SubmissionState.SUCCEEDED:
                raise SubmitError(
                    "Acknowledge the previous submission before submitting again"
                )

            self._transition(SubmissionState.VALIDATING)
            try:
                record = derive_record(self._draft, self._taxonomy)
            except DraftValidationError as exc:
                return self._finish(
                    SubmissionState.FAILED,
                    message=str(exc),
                    field_errors=exc.errors,
                )

            self._transition(SubmissionState.SUBMITTING)
            try:
                self._storage.insert(self._table, record.to_row())
            except StorageError as exc:
                logger.warning("Insert into %s failed: %s", self._table, exc)
                return self._finish(SubmissionState.FAILED, record=record, message=str(exc))

            logger.info("Resource submitted | title=%r tags=%s", record.title, record.tags)
            return self._finish(SubmissionState.SUCCEEDED, record=record, message=SUCCESS_MESSAGE)
        finally:
            self._busy.release()

    def acknowledge(self) -> None:
        """Close the confirmation / error: back to IDLE.

        Only an acknowledged success clears the draft.
        """
        if self._state == SubmissionState.SUBMITTING:
            raise SubmissionInProgressError("A submission is still in progress")
        if self._state == SubmissionState.SUCCEEDED:
            self._draft = ResourceDraft()
        self._transition(SubmissionState.IDLE)

    # ── Private helpers ────────────────────────────────────────────────────

    def _transition(self, new_state: SubmissionState) -> None:
        logger.debug("Submission state %s → %s", self._state.value, new_state.value)
        self._state = new_state

    def _finish(
        self,
        state: SubmissionState,
        record: Optional[ResourceRecord] = None,
        message: str = "",
        field_errors: Optional[dict[str, str]] = None,
    ) -> SubmissionResult:
        self._transition(state)
        self._last_result = SubmissionResult(
            state=state,
            record=record,
            message=message,
            field_errors=field_errors or {},
        )
        return self._last_result


def _field_errors(exc: ValidationError) -> dict[str, str]:
    """Pydantic errors keyed by the first element of each error location."""
    return {
        str(err["loc"][0]) if err["loc"] else "draft": err["msg"]
        for err in exc.errors()
    }
