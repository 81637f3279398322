"""How a report card pass finds the assessments it grades.

Staff read a section's published assessments directly. Students and parents
are not allowed to list a section's assessments, so for them discovery starts
from the student's own mark rows and resolves the assessments those rows
point at.
"""

import logging
from collections.abc import Iterable

from gradebook.core.exceptions import NoMarksRecordedError
from gradebook.models.user import ACADEMIC_STAFF_ROLES, SchoolRole
from gradebook.schemas.report_card import AssessmentRecord
from gradebook.services.marks_repository import MarksRepository

logger = logging.getLogger(__name__)


class AssessmentDiscoveryStrategy:
    """Finds the published assessments of a section for one pass."""

    name = "base"

    def discover(
        self,
        repository: MarksRepository,
        section_id: int,
        student_id: int | None = None,
    ) -> list[AssessmentRecord]:
        raise NotImplementedError


class SectionFirstDiscovery(AssessmentDiscoveryStrategy):
    """Query published assessments by section."""

    name = "section_first"

    def discover(
        self,
        repository: MarksRepository,
        section_id: int,
        student_id: int | None = None,
    ) -> list[AssessmentRecord]:
        return repository.list_published_assessments(section_id)


class MarksFirstDiscovery(AssessmentDiscoveryStrategy):
    """Anchor on the student's own marks, then load those assessments."""

    name = "marks_first"

    def discover(
        self,
        repository: MarksRepository,
        section_id: int,
        student_id: int | None = None,
    ) -> list[AssessmentRecord]:
        if student_id is None:
            raise ValueError("Marks-first discovery needs a student")

        own_marks = repository.list_marks_for_student(student_id)
        if not own_marks:
            raise NoMarksRecordedError(student_id)

        assessment_ids = {m.assessment_id for m in own_marks}
        assessments = repository.get_assessments(assessment_ids)
        found = [
            a for a in assessments
            if a.is_published and a.class_section_id == section_id
        ]
        logger.debug(
            f"[REPORT CARD] marks-first: {len(own_marks)} marks -> {len(found)} assessments in section {section_id}"
        )
        return found


def discovery_for_roles(roles: Iterable[SchoolRole], is_super_admin: bool = False) -> AssessmentDiscoveryStrategy:
    """Pick the strategy for a caller: staff read by section, families by marks."""
    if is_super_admin or any(role in ACADEMIC_STAFF_ROLES for role in roles):
        return SectionFirstDiscovery()
    return MarksFirstDiscovery()
