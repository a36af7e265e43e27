"""
tests/unit/test_submission.py
──────────────────────────────────────────────────────────────────────────────
Unit tests for SubmissionController.

Uses MockStorageAdapter / FailingStorageAdapter from conftest.py.

Verifies:
  • invalid drafts never reach storage
  • storage errors are reported verbatim and leave the draft intact
  • the draft is cleared only after an acknowledged success
  • taxonomy edits go through the selection state machine
  • at most one submission in flight
"""
from __future__ import annotations

from typing import Any

import pytest

from acehive.domain.exceptions import (
    DraftValidationError,
    SubmissionInProgressError,
    SubmitError,
)
from acehive.domain.models import ResourceDraft, SubmissionState, Year
from acehive.services.submission import SUCCESS_MESSAGE, SubmissionController
from acehive.tests.conftest import MockStorageAdapter


def _fill(controller: SubmissionController, draft: ResourceDraft) -> None:
    controller.update(**draft.model_dump())


class TestValidationFailures:
    def test_empty_draft_fails_without_insert(self, controller, storage):
        result = controller.submit()
        assert result.state == SubmissionState.FAILED
        assert controller.state == SubmissionState.FAILED
        assert storage.inserts == []
        assert "title" in result.field_errors

    def test_bad_specialisation_fails_without_insert(self, controller, storage, valid_draft):
        _fill(controller, valid_draft)
        # Bypass the selection machine to simulate an inconsistent draft.
        controller._draft = controller.draft.with_changes(specialisation="Data Science")
        result = controller.submit()
        assert not result.ok
        assert "specialisation" in result.field_errors
        assert storage.inserts == []


class TestStorageFailures:
    def test_error_message_passed_through_verbatim(self, failing_storage, valid_draft):
        controller = SubmissionController(failing_storage)
        _fill(controller, valid_draft)
        result = controller.submit()
        assert result.state == SubmissionState.FAILED
        assert result.message == "connection refused"
        assert failing_storage.calls == 1

    def test_draft_survives_failure(self, failing_storage, valid_draft):
        controller = SubmissionController(failing_storage)
        _fill(controller, valid_draft)
        before = controller.draft
        controller.submit()
        controller.acknowledge()
        assert controller.draft == before
        assert controller.state == SubmissionState.IDLE

    def test_resubmit_after_failure_is_allowed(self, failing_storage, valid_draft):
        controller = SubmissionController(failing_storage)
        _fill(controller, valid_draft)
        controller.submit()
        controller.submit()
        assert failing_storage.calls == 2


class TestSuccess:
    def test_inserts_derived_row(self, controller, storage, valid_draft):
        _fill(controller, valid_draft)
        result = controller.submit()
        assert result.ok
        assert result.message == SUCCESS_MESSAGE
        table, row = storage.inserts[0]
        assert table == "resources"
        assert row["tags"] == ["2nd Year", "Mechanical", "Thermo", "CT Paper"]
        assert row["file_urls"] == ["a.pdf", "b.pdf"]
        assert row["elective"] is None

    def test_draft_kept_until_acknowledged(self, controller, valid_draft):
        _fill(controller, valid_draft)
        controller.submit()
        assert controller.draft.title == "T"
        controller.acknowledge()
        assert controller.draft == ResourceDraft()
        assert controller.state == SubmissionState.IDLE

    def test_submit_before_acknowledge_raises(self, controller, storage, valid_draft):
        _fill(controller, valid_draft)
        controller.submit()
        with pytest.raises(SubmitError):
            controller.submit()
        assert len(storage.inserts) == 1

    def test_custom_table(self, storage, valid_draft):
        controller = SubmissionController(storage, table="staging_resources")
        _fill(controller, valid_draft)
        controller.submit()
        assert storage.inserts[0][0] == "staging_resources"


class TestUpdate:
    def test_first_year_clears_degree(self, controller, valid_draft):
        _fill(controller, valid_draft)
        controller.update(year="1st Year")
        assert controller.draft.degree == ""
        assert controller.draft.specialisation == ""
        assert not controller.selection.degree_enabled

    def test_degree_rejected_in_first_year(self, controller):
        controller.update(year=Year.FIRST)
        with pytest.raises(DraftValidationError):
            controller.update(degree="Civil")

    def test_blank_degree_accepted_in_first_year(self, controller):
        controller.update(year=Year.FIRST)
        controller.update(degree="", specialisation="")
        assert controller.draft.year == Year.FIRST

    def test_degree_change_drops_foreign_specialisation(self, controller, valid_draft):
        _fill(controller, valid_draft)
        controller.update(degree="Civil")
        assert controller.draft.specialisation == ""

    def test_plain_fields(self, controller):
        controller.update(title="Notes", description="Unit 3")
        assert controller.draft.title == "Notes"
        assert controller.draft.description == "Unit 3"

    def test_first_year_submission(self, controller, storage, valid_draft):
        _fill(controller, valid_draft)
        controller.update(year="1st Year")
        result = controller.submit()
        assert result.ok
        _, row = storage.inserts[0]
        assert (row["degree"], row["specialisation"]) == ("None", "None")


class _ReentrantStorage(MockStorageAdapter):
    """Tries to submit and edit again from inside insert()."""

    def __init__(self) -> None:
        super().__init__()
        self.controller: SubmissionController | None = None
        self.raised: list[type] = []

    def insert(self, table: str, record: dict[str, Any]) -> None:
        assert self.controller is not None
        for attempt in (self.controller.submit, lambda: self.controller.update(title="x")):
            try:
                attempt()
            except SubmissionInProgressError as exc:
                self.raised.append(type(exc))
        super().insert(table, record)


class TestSingleFlight:
    def test_nested_submit_and_edit_rejected(self, valid_draft):
        storage = _ReentrantStorage()
        controller = SubmissionController(storage)
        storage.controller = controller
        _fill(controller, valid_draft)

        result = controller.submit()

        assert result.ok
        assert storage.raised == [SubmissionInProgressError, SubmissionInProgressError]
        assert len(storage.inserts) == 1


class TestUpdateRejectsUnknownChoices:
    @pytest.mark.parametrize(
        "field,value",
        [("year", "4th Year"), ("resource_type", "Quiz"), ("subject_type", "Hobby")],
    )
    def test_bad_choice_is_draft_validation_error(self, controller, valid_draft, field, value):
        _fill(controller, valid_draft)
        before = controller.draft
        with pytest.raises(DraftValidationError) as exc_info:
            controller.update(**{field: value})
        assert field in exc_info.value.errors
        assert controller.draft == before
