"""
domain/models.py
──────────────────────────────────────────────────────────────────────────────
Pure domain objects — Pydantic models with no imports from adapters or ports.

These models are the lingua franca of the entire system:
  • adapters produce and consume plain rows built from them
  • services orchestrate them
  • interfaces (CLI, Streamlit) render and serialise them

A ResourceDraft is partial and unvalidated by design; the classification
service is what turns it into a ResourceRecord.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ── Enums ──────────────────────────────────────────────────────────────────────

class Year(str, Enum):
    FIRST  = "1st Year"
    SECOND = "2nd Year"
    THIRD  = "3rd Year"


class SubjectType(str, Enum):
    """Selects which storage column receives the subject text."""
    SUBJECT  = "Subject"
    ELECTIVE = "Elective/Language"


class ResourceType(str, Enum):
    CT_PAPER       = "CT Paper"
    SEM_PAPER      = "Sem Paper"
    STUDY_MATERIAL = "Study Material"


class SubmissionState(str, Enum):
    IDLE       = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUCCEEDED  = "succeeded"
    FAILED     = "failed"


class BrowseStatus(str, Enum):
    IDLE    = "idle"
    LOADING = "loading"
    READY   = "ready"
    EMPTY   = "empty"    # valid terminal state, not an error
    ERROR   = "error"


# Value of a single cell in a row returned by the storage collaborator.
CellValue = Union[str, int, float, bool, None, list[Any], dict[str, Any]]
Row = dict[str, CellValue]


# ── Submission side ────────────────────────────────────────────────────────────

class ResourceDraft(BaseModel):
    """In-progress resource submission, mutated field by field by the user.

    ``file_urls`` is the raw comma-delimited text as typed; it is split into
    a list only when the record is derived.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    year:           Optional[Year]         = None
    degree:         str                    = ""
    specialisation: str                    = ""
    subject:        str                    = ""
    subject_type:   SubjectType            = SubjectType.SUBJECT
    resource_type:  Optional[ResourceType] = None
    file_urls:      str                    = ""
    title:          str                    = ""
    description:    str                    = ""

    @field_validator("year", "resource_type", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        return None if v == "" else v

    def with_changes(self, **changes: Any) -> "ResourceDraft":
        """Return a re-validated copy with ``changes`` applied."""
        return ResourceDraft.model_validate({**self.model_dump(), **changes})

    @property
    def is_first_year(self) -> bool:
        return self.year == Year.FIRST


class ResourceRecord(BaseModel):
    """A validated resource exactly as written to the ``resources`` table."""

    title:          str
    description:    str
    year:           str
    degree:         str
    specialisation: str
    subject:        Optional[str] = None
    elective:       Optional[str] = None
    tags:           list[str]     = Field(default_factory=list)
    resource_type:  str
    file_urls:      list[str]     = Field(default_factory=list)

    @model_validator(mode="after")
    def _subject_xor_elective(self) -> "ResourceRecord":
        if (self.subject is None) == (self.elective is None):
            raise ValueError("exactly one of subject / elective must be set")
        return self

    def to_row(self) -> dict:
        """Serialise to the column → value mapping sent to storage."""
        return self.model_dump(mode="json")


class SubmissionResult(BaseModel):
    """Outcome of one SubmissionController.submit() call."""

    state:        SubmissionState
    record:       Optional[ResourceRecord] = None
    message:      str                      = ""
    field_errors: dict[str, str]           = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.state == SubmissionState.SUCCEEDED


# ── Browsing side ──────────────────────────────────────────────────────────────

class BrowseQuery(BaseModel):
    """Client-side filter over one fetched table.  Blank fields are ignored."""

    table_name:    str           = "resources"
    year:          Optional[str] = None
    resource_type: Optional[str] = None
    search_text:   str           = ""

    @property
    def is_blank(self) -> bool:
        return not (self.year or self.resource_type or self.search_text)


class TableSnapshot(BaseModel):
    """All rows of one table as fetched, plus the column set inferred from them.

    Replaced wholesale on every new fetch; never mutated by filtering.
    """

    model_config = ConfigDict(frozen=True)

    table:      str
    columns:    tuple[str, ...]
    rows:       tuple[Row, ...]
    fetched_at: datetime = Field(
                    default_factory=lambda: datetime.now(timezone.utc)
                )

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def to_dict(self) -> dict:
        """Serialise to a plain dict (JSON-safe)."""
        return self.model_dump(mode="json")
