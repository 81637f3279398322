"""Report card generation service."""

import logging
from datetime import datetime, timezone
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gradebook.core.config import settings
from gradebook.core.exceptions import (
    NoActiveEnrollmentError,
    NoPublishedAssessmentsError,
    NotFoundError,
    ReportGenerationError,
)
from gradebook.models.school import School
from gradebook.schemas.report_card import (
    ReportCard,
    ReportCardBatchResponse,
    SectionRecord,
    StudentReportCardResponse,
)
from gradebook.services.aggregation import (
    DEFAULT_CLASS_NAME,
    DEFAULT_SECTION_NAME,
    aggregate_subject,
    build_marks_lookup,
    build_report_card,
    group_assessments_by_subject,
    tally_attendance,
)
from gradebook.services.assessment_discovery import AssessmentDiscoveryStrategy, SectionFirstDiscovery
from gradebook.services.grading import UnmatchedBandPolicy
from gradebook.services.marks_repository import MarksRepository
from gradebook.services.ranking import RankingStrategy, rank_cohort

logger = logging.getLogger(__name__)


class ReportCardService:
    """Generates ranked report cards for a section or a single student.

    Each call is one self-contained pass: it reads everything it needs,
    builds fresh cards and keeps nothing afterwards. Either every requested
    card is produced or the pass raises.
    """

    def __init__(
        self,
        db: Session,
        ranking: RankingStrategy | None = None,
        unmatched_policy: UnmatchedBandPolicy | None = None,
    ):
        self.db = db
        self.ranking = ranking or settings.REPORT_CARD_RANKING_STRATEGY
        self.unmatched_policy = unmatched_policy or settings.GRADE_UNMATCHED_BAND_POLICY

    def _repository(self, school: School) -> MarksRepository:
        return MarksRepository(self.db, school.id, limit=settings.REPORT_CARD_QUERY_LIMIT)

    def generate_section_report_cards(
        self,
        school: School,
        section_id: int,
        term_label: str | None = None,
    ) -> ReportCardBatchResponse:
        """Report cards for every active student of a section, by name."""
        logger.info(
            f"[REPORT CARD] Section pass started - school={school.slug}, section_id={section_id}, term={term_label}"
        )
        repository = self._repository(school)
        try:
            section = repository.get_section(section_id)
            if not section:
                raise NotFoundError("Class section", str(section_id))

            cards = self._build_cohort(
                repository,
                school,
                section,
                SectionFirstDiscovery(),
                term_label=term_label,
            )
        except (SQLAlchemyError, SchemaValidationError) as e:
            logger.exception(f"[REPORT CARD] Section pass failed - section_id={section_id}")
            raise ReportGenerationError(details={"reason": str(e)})

        cards.sort(key=lambda card: (card.student_name.casefold(), card.student_id))
        logger.info(f"[REPORT CARD] Section pass completed - {len(cards)} report cards")

        return ReportCardBatchResponse(
            school=school.slug,
            section_id=section.id,
            class_name=section.class_name or DEFAULT_CLASS_NAME,
            section_name=section.name,
            term_label=term_label,
            ranking=self.ranking,
            generated_at=datetime.now(timezone.utc),
            total=len(cards),
            report_cards=cards,
        )

    def generate_student_report_card(
        self,
        school: School,
        student_id: int,
        term_label: str | None = None,
        discovery: AssessmentDiscoveryStrategy | None = None,
    ) -> StudentReportCardResponse:
        """One student's report card, ranked against their whole section.

        The full cohort is aggregated and ranked so that rank and cohort size
        match what the section pass would report; only the requested
        student's card is returned.
        """
        discovery = discovery or SectionFirstDiscovery()
        logger.info(
            f"[REPORT CARD] Student pass started - school={school.slug}, student_id={student_id}, "
            f"term={term_label}, discovery={discovery.name}"
        )
        repository = self._repository(school)
        try:
            student = repository.get_student(student_id)
            if not student:
                raise NotFoundError("Student", str(student_id))

            enrollment = repository.get_active_enrollment(student_id)
            if not enrollment:
                raise NoActiveEnrollmentError("No active enrollment found for this student")

            section = repository.get_section(enrollment.class_section_id) or SectionRecord(
                id=enrollment.class_section_id,
                name=DEFAULT_SECTION_NAME,
            )
            cards = self._build_cohort(
                repository,
                school,
                section,
                discovery,
                term_label=term_label,
                student_id=student_id,
            )
        except (SQLAlchemyError, SchemaValidationError) as e:
            logger.exception(f"[REPORT CARD] Student pass failed - student_id={student_id}")
            raise ReportGenerationError("Failed to generate report card", details={"reason": str(e)})

        card = next((c for c in cards if c.student_id == student_id), None)
        if card is None:
            raise NoActiveEnrollmentError("No active enrollment found for this student")

        logger.info(f"[REPORT CARD] Student pass completed - rank {card.rank}/{card.cohort_size}")
        return StudentReportCardResponse(
            school=school.slug,
            ranking=self.ranking,
            generated_at=datetime.now(timezone.utc),
            report_card=card,
        )

    # ==========================================
    # Excel Export
    # ==========================================

    def export_section_workbook(
        self,
        school: School,
        section_id: int,
        term_label: str | None = None,
    ) -> bytes:
        """Generate a section's result sheet as an Excel workbook.

        "Report Cards" has one row per student in rank order with a
        percentage column per subject; "Subjects" lists the per-subject
        totals behind those percentages.
        """
        batch = self.generate_section_report_cards(school, section_id, term_label)
        cards = sorted(batch.report_cards, key=lambda c: (c.rank or 0, c.student_name.casefold()))
        subject_names = sorted(
            {s.subject_name for card in cards for s in card.subjects},
            key=lambda name: (name.casefold(), name),
        )

        wb = Workbook()
        ws = wb.active
        ws.title = "Report Cards"

        # Styles
        title_font = Font(bold=True, size=14)
        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
        thin_border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )
        center_align = Alignment(horizontal='center', vertical='center')

        headers = ["Rank", "Student Name"]
        headers += [f"{name} %" for name in subject_names]
        headers += ["Obtained", "Total", "Percentage", "Grade", "Attendance %"]

        # Title row
        title_text = f"{school.name} - {batch.class_name} {batch.section_name}"
        if term_label:
            title_text += f" - {term_label}"
        ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(headers))
        title_cell = ws.cell(row=1, column=1, value=title_text)
        title_cell.font = title_font
        title_cell.alignment = center_align
        title_cell.fill = PatternFill(start_color="B4C6E7", end_color="B4C6E7", fill_type="solid")

        for col_idx, header in enumerate(headers, start=1):
            cell = ws.cell(row=2, column=col_idx, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.border = thin_border
            cell.alignment = center_align

        for row_idx, card in enumerate(cards, start=3):
            by_subject = {s.subject_name: s for s in card.subjects}
            attendance_rate = card.attendance.rate if card.attendance else None

            row = [card.rank, card.student_name]
            row += [
                round(float(by_subject[name].percentage), 2) if name in by_subject else None
                for name in subject_names
            ]
            row += [
                float(card.grand_total_obtained),
                float(card.grand_total_max),
                round(float(card.overall_percentage), 2),
                card.overall_grade,
                round(attendance_rate, 1) if attendance_rate is not None else None,
            ]
            for col_idx, value in enumerate(row, start=1):
                ws.cell(row=row_idx, column=col_idx, value=value).border = thin_border

        ws.column_dimensions[get_column_letter(1)].width = 8
        ws.column_dimensions[get_column_letter(2)].width = 28
        for col_idx in range(3, len(headers) + 1):
            ws.column_dimensions[get_column_letter(col_idx)].width = 14

        # Per-subject detail
        detail_ws = wb.create_sheet("Subjects")
        detail_headers = ["Student Name", "Subject", "Obtained", "Total", "Percentage", "Grade"]
        for col_idx, header in enumerate(detail_headers, start=1):
            cell = detail_ws.cell(row=1, column=col_idx, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.border = thin_border

        row_idx = 2
        for card in batch.report_cards:
            for subject in card.subjects:
                values = [
                    card.student_name,
                    subject.subject_name,
                    float(subject.total_obtained),
                    float(subject.total_max),
                    round(float(subject.percentage), 2),
                    subject.grade,
                ]
                for col_idx, value in enumerate(values, start=1):
                    detail_ws.cell(row=row_idx, column=col_idx, value=value).border = thin_border
                row_idx += 1

        for col, width in {'A': 28, 'B': 20, 'C': 12, 'D': 12, 'E': 12, 'F': 10}.items():
            detail_ws.column_dimensions[col].width = width

        output = BytesIO()
        wb.save(output)
        output.seek(0)
        return output.getvalue()

    def _build_cohort(
        self,
        repository: MarksRepository,
        school: School,
        section: SectionRecord,
        discovery: AssessmentDiscoveryStrategy,
        term_label: str | None = None,
        student_id: int | None = None,
    ) -> list[ReportCard]:
        """Aggregate and rank every active student of ``section``."""
        enrollments = repository.list_active_enrollments(section.id)
        if not enrollments:
            raise NoActiveEnrollmentError("No students enrolled in this section")

        assessments = discovery.discover(repository, section.id, student_id)
        if term_label:
            assessments = [a for a in assessments if a.term_label == term_label]
        if not assessments:
            raise NoPublishedAssessmentsError(term_label)

        thresholds = repository.list_grade_thresholds()
        subject_names = repository.get_subject_names()
        marks = repository.list_marks_for_assessments([a.id for a in assessments])
        attendance = tally_attendance(repository.list_attendance_entries(section.id))

        student_ids = list(dict.fromkeys(e.student_id for e in enrollments))
        students = repository.get_students(student_ids)

        subjects = group_assessments_by_subject(assessments, subject_names)
        marks_lookup = build_marks_lookup(marks)

        cards = []
        for sid in student_ids:
            student = students.get(sid)
            if student is None:
                continue
            student_marks = marks_lookup.get(sid, {})
            subject_results = [
                aggregate_subject(name, subject_assessments, student_marks, thresholds, self.unmatched_policy)
                for name, subject_assessments in subjects.items()
            ]
            cards.append(
                build_report_card(
                    student,
                    subject_results,
                    attendance.get(sid),
                    thresholds,
                    class_name=section.class_name,
                    section_name=section.name,
                    cohort_size=len(student_ids),
                    term_label=term_label,
                    school_name=school.name,
                    unmatched_policy=self.unmatched_policy,
                )
            )

        logger.debug(
            f"[REPORT CARD] Aggregated {len(cards)} students over {len(assessments)} assessments "
            f"in {len(subjects)} subjects"
        )
        return rank_cohort(cards, self.ranking)
