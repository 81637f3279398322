"""Gradebook service: grade bands, assessments and marks entry."""

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from gradebook.core.config import settings
from gradebook.core.exceptions import NotFoundError, UnmatchedGradeBandError, ValidationError
from gradebook.models.academic import ClassSection, Subject
from gradebook.models.assessment import AcademicAssessment, GradeThreshold, StudentMark
from gradebook.schemas.gradebook import (
    AssessmentCreate,
    AssessmentFilter,
    AssessmentPublish,
    AssessmentResponse,
    BulkMarksResponse,
    BulkMarksUpdate,
    GradeThresholdReplace,
    GradeThresholdResponse,
    MarkResponse,
)
from gradebook.services.grading import percentage_of, resolve_grade
from gradebook.services.marks_repository import MarksRepository

logger = logging.getLogger(__name__)


class GradebookService:
    """Write side of the data report cards are generated from."""

    def __init__(self, db: Session):
        self.db = db

    # ==========================================
    # Grade Thresholds
    # ==========================================

    def list_thresholds(self, school_id: int) -> list[GradeThresholdResponse]:
        """Get a school's grade bands in display order."""
        result = self.db.execute(
            select(GradeThreshold)
            .where(GradeThreshold.school_id == school_id)
            .order_by(GradeThreshold.sort_order, GradeThreshold.id)
        )
        return [GradeThresholdResponse.model_validate(t) for t in result.scalars().all()]

    def replace_thresholds(
        self,
        school_id: int,
        request: GradeThresholdReplace,
    ) -> list[GradeThresholdResponse]:
        """Swap a school's grade bands for a new set."""
        self.db.execute(delete(GradeThreshold).where(GradeThreshold.school_id == school_id))

        for position, band in enumerate(request.bands, start=1):
            self.db.add(
                GradeThreshold(
                    school_id=school_id,
                    grade_label=band.grade_label,
                    min_percentage=band.min_percentage,
                    max_percentage=band.max_percentage,
                    grade_points=band.grade_points,
                    sort_order=band.sort_order if band.sort_order is not None else position,
                )
            )
        self.db.flush()

        logger.info(f"Replaced grade thresholds for school_id={school_id}: {len(request.bands)} bands")
        return self.list_thresholds(school_id)

    # ==========================================
    # Assessments
    # ==========================================

    def create_assessment(
        self,
        school_id: int,
        request: AssessmentCreate,
        created_by: int | None = None,
    ) -> AssessmentResponse:
        """Create a draft assessment."""
        self._get_section(school_id, request.class_section_id)
        if request.subject_id is not None:
            self._get_subject(school_id, request.subject_id)

        assessment = AcademicAssessment(
            school_id=school_id,
            class_section_id=request.class_section_id,
            subject_id=request.subject_id,
            title=request.title,
            max_marks=request.max_marks,
            term_label=request.term_label,
            assessment_date=request.assessment_date,
            is_published=False,
            created_by=created_by,
        )
        self.db.add(assessment)
        self.db.flush()
        self.db.refresh(assessment)

        return AssessmentResponse.model_validate(assessment)

    def get_assessment(self, school_id: int, assessment_id: int) -> AcademicAssessment:
        """Get assessment by ID."""
        result = self.db.execute(
            select(AcademicAssessment).where(
                AcademicAssessment.id == assessment_id,
                AcademicAssessment.school_id == school_id,
            )
        )
        assessment = result.scalar_one_or_none()
        if not assessment:
            raise NotFoundError("Assessment", str(assessment_id))
        return assessment

    def list_assessments(
        self,
        school_id: int,
        filters: AssessmentFilter | None = None,
    ) -> list[AssessmentResponse]:
        """List assessments, newest first."""
        query = select(AcademicAssessment).where(AcademicAssessment.school_id == school_id)

        if filters:
            if filters.class_section_id:
                query = query.where(AcademicAssessment.class_section_id == filters.class_section_id)
            if filters.term_label:
                query = query.where(AcademicAssessment.term_label == filters.term_label)
            if filters.is_published is not None:
                query = query.where(AcademicAssessment.is_published.is_(filters.is_published))

        query = query.order_by(
            AcademicAssessment.assessment_date.desc().nulls_last(),
            AcademicAssessment.id.desc(),
        ).limit(settings.REPORT_CARD_QUERY_LIMIT)

        result = self.db.execute(query)
        return [AssessmentResponse.model_validate(a) for a in result.scalars().all()]

    def set_published(
        self,
        school_id: int,
        assessment_id: int,
        request: AssessmentPublish,
    ) -> AssessmentResponse:
        """Publish or unpublish an assessment; only published ones reach report cards."""
        assessment = self.get_assessment(school_id, assessment_id)

        if request.is_published and not assessment.is_published:
            assessment.published_at = datetime.now(timezone.utc)
        elif not request.is_published:
            assessment.published_at = None
        assessment.is_published = request.is_published

        self.db.flush()
        self.db.refresh(assessment)
        return AssessmentResponse.model_validate(assessment)

    # ==========================================
    # Bulk Marks
    # ==========================================

    def upsert_marks(
        self,
        school_id: int,
        assessment_id: int,
        request: BulkMarksUpdate,
        created_by: int | None = None,
    ) -> BulkMarksResponse:
        """Create or update an assessment's marks in one batch.

        Every row is validated before anything is written; a single bad row
        rejects the whole batch.
        """
        assessment = self.get_assessment(school_id, assessment_id)
        repository = MarksRepository(self.db, school_id, limit=settings.REPORT_CARD_QUERY_LIMIT)
        if not assessment.max_marks:
            raise ValidationError(
                "Assessment has no max marks set",
                details={"assessment_id": assessment_id},
            )
        max_marks = assessment.max_marks

        enrolled = {e.student_id for e in repository.list_active_enrollments(assessment.class_section_id)}
        errors = []
        seen: set[int] = set()

        for entry in request.marks:
            if entry.student_id in seen:
                errors.append({
                    "student_id": entry.student_id,
                    "message": "Student appears more than once in this batch",
                })
            elif entry.student_id not in enrolled:
                errors.append({
                    "student_id": entry.student_id,
                    "message": f"Student ID {entry.student_id} is not enrolled in this assessment's section",
                })
            elif entry.marks is not None and entry.marks > max_marks:
                errors.append({
                    "student_id": entry.student_id,
                    "message": f"Marks ({entry.marks}) exceed max marks ({max_marks})",
                })
            seen.add(entry.student_id)

        if errors:
            return BulkMarksResponse(
                assessment_id=assessment_id,
                total_records=len(request.marks),
                created=0,
                updated=0,
                errors=errors,
                message="Validation failed. No marks were saved.",
            )

        thresholds = repository.list_grade_thresholds()
        existing_result = self.db.execute(
            select(StudentMark).where(
                StudentMark.school_id == school_id,
                StudentMark.assessment_id == assessment_id,
            )
        )
        existing = {m.student_id: m for m in existing_result.scalars().all()}

        created = 0
        updated = 0
        saved = []
        for entry in request.marks:
            grade = None
            if entry.marks is not None:
                try:
                    grade = resolve_grade(
                        percentage_of(entry.marks, max_marks),
                        thresholds,
                        settings.GRADE_UNMATCHED_BAND_POLICY,
                    )
                except UnmatchedGradeBandError as e:
                    # Marks are still recorded; report card generation enforces the policy
                    logger.warning(f"No computed grade for student_id={entry.student_id} on assessment_id={assessment_id}: {e.message}")

            mark = existing.get(entry.student_id)
            if mark:
                mark.marks = entry.marks
                mark.computed_grade = grade
                updated += 1
            else:
                mark = StudentMark(
                    school_id=school_id,
                    student_id=entry.student_id,
                    assessment_id=assessment_id,
                    marks=entry.marks,
                    computed_grade=grade,
                    created_by=created_by,
                )
                self.db.add(mark)
                created += 1
            saved.append(MarkResponse(student_id=entry.student_id, marks=entry.marks, computed_grade=grade))

        self.db.flush()
        logger.info(
            f"Marks saved for assessment_id={assessment_id}: {created} created, {updated} updated"
        )

        return BulkMarksResponse(
            assessment_id=assessment_id,
            total_records=len(request.marks),
            created=created,
            updated=updated,
            marks=saved,
            message=f"Saved marks for {created + updated} students",
        )

    def _get_section(self, school_id: int, section_id: int) -> ClassSection:
        result = self.db.execute(
            select(ClassSection).where(
                ClassSection.id == section_id,
                ClassSection.school_id == school_id,
            )
        )
        section = result.scalar_one_or_none()
        if not section:
            raise NotFoundError("Class section", str(section_id))
        return section

    def _get_subject(self, school_id: int, subject_id: int) -> Subject:
        result = self.db.execute(
            select(Subject).where(
                Subject.id == subject_id,
                Subject.school_id == school_id,
            )
        )
        subject = result.scalar_one_or_none()
        if not subject:
            raise NotFoundError("Subject", str(subject_id))
        return subject
