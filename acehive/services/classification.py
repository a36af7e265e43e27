"""
services/classification.py
──────────────────────────────────────────────────────────────────────────────
Classification engine: turns a partial ResourceDraft into a ResourceRecord.

Two pieces:

TaxonomySelection
  A small finite state machine over (year, degree, specialisation).  The form
  never edits those three fields directly; it asks the machine for the next
  state, so combinations such as "1st Year + Mechanical" or "Civil + Robotics"
  cannot be reached.

      NO_YEAR ──year──▶ FIRST_YEAR            (degree & specialisation locked, cleared)
                   └──▶ NEEDS_DEGREE ──degree──▶ NEEDS_SPECIALISATION ──specialisation──▶ COMPLETE

  Selecting "1st Year" from any state clears degree and specialisation.
  Changing degree keeps the specialisation only if the new degree offers it.

derive_record()
  Validates a draft and computes the storage columns:
    • degree / specialisation forced to the "None" sentinel for 1st Year
    • subject text routed to exactly one of subject / elective
    • tags = non-empty [year, degree, subject, resource type], order kept
    • file URLs split on "," and trimmed (empty segments are kept)
  All checks run before anything touches the network.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Mapping, Optional

from acehive.config.taxonomy import DEGREE_SPECIALISATIONS, NONE_SENTINEL
from acehive.domain.exceptions import DraftValidationError
from acehive.domain.models import ResourceDraft, ResourceRecord, SubjectType, Year

logger = logging.getLogger(__name__)


# ── Taxonomy state machine ─────────────────────────────────────────────────

class SelectionState(str, Enum):
    NO_YEAR              = "no_year"
    FIRST_YEAR           = "first_year"
    NEEDS_DEGREE         = "needs_degree"
    NEEDS_SPECIALISATION = "needs_specialisation"
    COMPLETE             = "complete"


@dataclass(frozen=True)
class TaxonomySelection:
    """Current (year, degree, specialisation) choice.

    Build new states only through the ``select_*`` transitions; each returns
    a fresh instance and raises DraftValidationError on an illegal move.
    """

    year: Optional[Year] = None
    degree: str = ""
    specialisation: str = ""
    taxonomy: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: DEGREE_SPECIALISATIONS, compare=False, repr=False
    )

    @classmethod
    def from_draft(
        cls,
        draft: ResourceDraft,
        taxonomy: Mapping[str, tuple[str, ...]] = DEGREE_SPECIALISATIONS,
    ) -> "TaxonomySelection":
        """Replay a draft's taxonomy fields through the transitions."""
        selection = cls(taxonomy=taxonomy).select_year(draft.year)
        if selection.degree_enabled and draft.degree:
            selection = selection.select_degree(draft.degree)
            if draft.specialisation:
                selection = selection.select_specialisation(draft.specialisation)
        return selection

    # ── Derived views ──────────────────────────────────────────────────────

    @property
    def state(self) -> SelectionState:
        if self.year is None:
            return SelectionState.NO_YEAR
        if self.year == Year.FIRST:
            return SelectionState.FIRST_YEAR
        if not self.degree:
            return SelectionState.NEEDS_DEGREE
        if not self.specialisation:
            return SelectionState.NEEDS_SPECIALISATION
        return SelectionState.COMPLETE

    @property
    def degree_enabled(self) -> bool:
        return self.state is not SelectionState.FIRST_YEAR

    @property
    def specialisation_options(self) -> tuple[str, ...]:
        if not self.degree_enabled or not self.degree:
            return ()
        return self.taxonomy.get(self.degree, ())

    # ── Transitions ────────────────────────────────────────────────────────

    def select_year(self, year: Optional[Year]) -> "TaxonomySelection":
        if year is not None:
            year = Year(year)
        if year == Year.FIRST:
            return replace(self, year=year, degree="", specialisation="")
        return replace(self, year=year)

    def select_degree(self, degree: str) -> "TaxonomySelection":
        if not self.degree_enabled:
            raise DraftValidationError({"degree": "Degree does not apply to 1st Year resources"})
        if degree and degree not in self.taxonomy:
            raise DraftValidationError({"degree": f"Unknown degree {degree!r}"})
        keep = self.specialisation in self.taxonomy.get(degree, ())
        return replace(
            self,
            degree=degree,
            specialisation=self.specialisation if keep else "",
        )

    def select_specialisation(self, specialisation: str) -> "TaxonomySelection":
        if not self.degree_enabled:
            raise DraftValidationError(
                {"specialisation": "Specialisation does not apply to 1st Year resources"}
            )
        if specialisation and specialisation not in self.specialisation_options:
            raise DraftValidationError(
                {"specialisation": _not_offered(specialisation, self.degree)}
            )
        return replace(self, specialisation=specialisation)


# ── Pure derivation helpers ────────────────────────────────────────────────

def parse_file_urls(text: str) -> list[str]:
    """Split comma-delimited URLs and trim each segment.

    Empty segments are preserved, so ``"a.pdf,"`` → ``["a.pdf", ""]``.
    """
    return [segment.strip() for segment in text.split(",")]


def derive_tags(year: str, degree: str, subject: str, resource_type: str) -> list[str]:
    """Coarse search tags: the non-empty inputs in their original order."""
    return [part for part in (year, degree, subject, resource_type) if part]


# ── Engine entry point ─────────────────────────────────────────────────────

def derive_record(
    draft: ResourceDraft,
    taxonomy: Mapping[str, tuple[str, ...]] = DEGREE_SPECIALISATIONS,
) -> ResourceRecord:
    """Validate ``draft`` and compute the record written to storage.

    Args:
        draft:    The user's current draft.
        taxonomy: Degree → specialisations table (overridable for tests).

    Returns:
        ResourceRecord ready for insertion.

    Raises:
        DraftValidationError: With one message per offending field.
    """
    errors = _validate(draft, taxonomy)
    if errors:
        logger.info("Draft rejected | fields=%s", sorted(errors))
        raise DraftValidationError(errors)

    # Validation guarantees these are set.
    assert draft.year is not None and draft.resource_type is not None

    first_year = draft.is_first_year
    degree = NONE_SENTINEL if first_year else draft.degree
    specialisation = NONE_SENTINEL if first_year else draft.specialisation

    if draft.subject_type == SubjectType.SUBJECT:
        subject: Optional[str] = draft.subject if draft.subject.strip() else NONE_SENTINEL
        elective: Optional[str] = None
    else:
        subject = None
        elective = draft.subject

    record = ResourceRecord(
        title=draft.title,
        description=draft.description,
        year=draft.year.value,
        degree=degree,
        specialisation=specialisation,
        subject=subject,
        elective=elective,
        tags=derive_tags(
            draft.year.value,
            "" if first_year else draft.degree,
            draft.subject if draft.subject.strip() else "",
            draft.resource_type.value,
        ),
        resource_type=draft.resource_type.value,
        file_urls=parse_file_urls(draft.file_urls),
    )
    logger.debug("Derived record | tags=%s urls=%d", record.tags, len(record.file_urls))
    return record


def _validate(
    draft: ResourceDraft,
    taxonomy: Mapping[str, tuple[str, ...]],
) -> dict[str, str]:
    errors: dict[str, str] = {}

    if draft.year is None:
        errors["year"] = "Year is required"
    if draft.resource_type is None:
        errors["resource_type"] = "Resource type is required"
    if not draft.title.strip():
        errors["title"] = "Title is required"
    if not draft.description.strip():
        errors["description"] = "Description is required"
    if not draft.file_urls.strip():
        errors["file_urls"] = "At least one file URL is required"
    if draft.subject_type == SubjectType.ELECTIVE and not draft.subject.strip():
        errors["subject"] = "Elective/language name is required"

    if draft.year is not None and not draft.is_first_year:
        if not draft.degree:
            errors["degree"] = "Degree is required"
        elif draft.degree not in taxonomy:
            errors["degree"] = f"Unknown degree {draft.degree!r}"
        elif not draft.specialisation:
            errors["specialisation"] = "Specialisation is required"
        elif draft.specialisation not in taxonomy[draft.degree]:
            errors["specialisation"] = _not_offered(draft.specialisation, draft.degree)

    return errors


def _not_offered(specialisation: str, degree: str) -> str:
    return f"{specialisation!r} is not a specialisation of {degree or 'the selected degree'!r}"
