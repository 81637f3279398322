"""Report card aggregation.

Pure functions from typed records to derived report cards. Fetching,
filtering and ranking happen elsewhere; nothing here touches the database.
"""

from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal

from gradebook.schemas.report_card import (
    AssessmentRecord,
    AssessmentResult,
    AttendanceEntryRecord,
    AttendanceSummary,
    GradeThresholdRecord,
    ReportCard,
    StudentRecord,
    SubjectResult,
)
from gradebook.services.grading import ZERO, UnmatchedBandPolicy, percentage_of, resolve_grade

GENERAL_SUBJECT = "General"
UNKNOWN_SUBJECT = "Unknown"
DEFAULT_CLASS_NAME = "Class"
DEFAULT_SECTION_NAME = "Section"


def subject_name_for(subject_id: int | None, subject_names: Mapping[int, str]) -> str:
    if subject_id is None:
        return GENERAL_SUBJECT
    return subject_names.get(subject_id, UNKNOWN_SUBJECT)


def group_assessments_by_subject(
    assessments: Iterable[AssessmentRecord],
    subject_names: Mapping[int, str],
) -> dict[str, list[AssessmentRecord]]:
    """Bucket assessments under their subject name, in discovery order."""
    groups: dict[str, list[AssessmentRecord]] = {}
    for assessment in assessments:
        name = subject_name_for(assessment.subject_id, subject_names)
        groups.setdefault(name, []).append(assessment)
    return groups


def build_marks_lookup(marks: Iterable) -> dict[int, dict[int, Decimal]]:
    """student_id -> assessment_id -> score, skipping ungraded (null) marks."""
    lookup: dict[int, dict[int, Decimal]] = {}
    for mark in marks:
        scores = lookup.setdefault(mark.student_id, {})
        if mark.marks is not None:
            scores[mark.assessment_id] = mark.marks
    return lookup


def tally_attendance(entries: Iterable[AttendanceEntryRecord]) -> dict[int, AttendanceSummary]:
    """Count present (present or late) and absent entries per student."""
    tallies: dict[int, AttendanceSummary] = {}
    for entry in entries:
        summary = tallies.setdefault(entry.student_id, AttendanceSummary())
        summary.total += 1
        if entry.status.counts_as_present:
            summary.present += 1
        else:
            summary.absent += 1
    return tallies


def aggregate_subject(
    subject_name: str,
    assessments: Sequence[AssessmentRecord],
    student_marks: Mapping[int, Decimal | None],
    thresholds: Sequence[GradeThresholdRecord],
    unmatched_policy: UnmatchedBandPolicy = UnmatchedBandPolicy.FALLBACK_TO_LOWEST,
) -> SubjectResult:
    """Total one student's marks across a subject's assessments.

    An assessment without a score still adds its max marks to the
    denominator; it just contributes nothing to the obtained total.
    """
    total_obtained = ZERO
    total_max = ZERO
    details = []

    for assessment in assessments:
        score = student_marks.get(assessment.id)
        details.append(
            AssessmentResult(
                title=assessment.title,
                obtained=score,
                max_marks=assessment.max_marks,
            )
        )
        total_max += assessment.max_marks
        if score is not None:
            total_obtained += score

    percentage = percentage_of(total_obtained, total_max)
    return SubjectResult(
        subject_name=subject_name,
        assessments=details,
        total_obtained=total_obtained,
        total_max=total_max,
        percentage=percentage,
        grade=resolve_grade(percentage, thresholds, unmatched_policy),
    )


def build_report_card(
    student: StudentRecord,
    subject_results: Iterable[SubjectResult],
    attendance: AttendanceSummary | None,
    thresholds: Sequence[GradeThresholdRecord],
    *,
    class_name: str | None = None,
    section_name: str | None = None,
    cohort_size: int = 0,
    term_label: str | None = None,
    school_name: str | None = None,
    unmatched_policy: UnmatchedBandPolicy = UnmatchedBandPolicy.FALLBACK_TO_LOWEST,
) -> ReportCard:
    """Roll subject results up into a student's card.

    ``rank`` is left unset for the cohort ranking pass. Attendance is only
    attached when at least one entry was recorded, so "no data" stays
    distinguishable from 0% attendance.
    """
    subjects = sorted(subject_results, key=lambda s: (s.subject_name.casefold(), s.subject_name))

    grand_total_obtained = sum((s.total_obtained for s in subjects), ZERO)
    grand_total_max = sum((s.total_max for s in subjects), ZERO)
    overall_percentage = percentage_of(grand_total_obtained, grand_total_max)

    return ReportCard(
        student_id=student.id,
        student_name=student.full_name,
        parent_name=student.parent_name,
        class_name=class_name or DEFAULT_CLASS_NAME,
        section_name=section_name or DEFAULT_SECTION_NAME,
        subjects=subjects,
        grand_total_obtained=grand_total_obtained,
        grand_total_max=grand_total_max,
        overall_percentage=overall_percentage,
        overall_grade=resolve_grade(overall_percentage, thresholds, unmatched_policy),
        rank=None,
        cohort_size=cohort_size,
        attendance=attendance if attendance is not None and attendance.total > 0 else None,
        term_label=term_label,
        school_name=school_name,
    )
