"""Read side of the gradebook used by report card generation."""

from collections.abc import Collection

from sqlalchemy import select
from sqlalchemy.orm import Session

from gradebook.models.academic import ClassSection, Subject
from gradebook.models.assessment import AcademicAssessment, GradeThreshold, StudentMark
from gradebook.models.attendance import AttendanceEntry, AttendanceSession
from gradebook.models.student import Student, StudentEnrollment
from gradebook.schemas.report_card import (
    AssessmentRecord,
    AttendanceEntryRecord,
    EnrollmentRecord,
    GradeThresholdRecord,
    MarkRecord,
    SectionRecord,
    StudentRecord,
    SubjectRecord,
)


class MarksRepository:
    """School-scoped queries returning validated records.

    Every row is converted to its ``*Record`` schema before it is handed
    out, so malformed data fails here rather than inside aggregation.
    """

    def __init__(self, db: Session, school_id: int, limit: int = 500):
        self.db = db
        self.school_id = school_id
        self.limit = limit

    # ==========================================
    # Students & enrollments
    # ==========================================

    def get_student(self, student_id: int) -> StudentRecord | None:
        result = self.db.execute(
            select(Student).where(
                Student.id == student_id,
                Student.school_id == self.school_id,
            )
        )
        student = result.scalar_one_or_none()
        return StudentRecord.model_validate(student) if student else None

    def get_students(self, student_ids: Collection[int]) -> dict[int, StudentRecord]:
        if not student_ids:
            return {}
        result = self.db.execute(
            select(Student).where(
                Student.school_id == self.school_id,
                Student.id.in_(student_ids),
            )
        )
        return {s.id: StudentRecord.model_validate(s) for s in result.scalars().all()}

    def get_active_enrollment(self, student_id: int) -> EnrollmentRecord | None:
        """Most recently started open enrollment of a student."""
        result = self.db.execute(
            select(StudentEnrollment)
            .where(
                StudentEnrollment.school_id == self.school_id,
                StudentEnrollment.student_id == student_id,
                StudentEnrollment.end_date.is_(None),
            )
            .order_by(StudentEnrollment.start_date.desc().nulls_last(), StudentEnrollment.id.desc())
            .limit(1)
        )
        enrollment = result.scalar_one_or_none()
        return EnrollmentRecord.model_validate(enrollment) if enrollment else None

    def list_active_enrollments(self, section_id: int) -> list[EnrollmentRecord]:
        result = self.db.execute(
            select(StudentEnrollment)
            .where(
                StudentEnrollment.school_id == self.school_id,
                StudentEnrollment.class_section_id == section_id,
                StudentEnrollment.end_date.is_(None),
            )
            .order_by(StudentEnrollment.id)
            .limit(self.limit)
        )
        return [EnrollmentRecord.model_validate(e) for e in result.scalars().all()]

    def get_section(self, section_id: int) -> SectionRecord | None:
        result = self.db.execute(
            select(ClassSection).where(
                ClassSection.id == section_id,
                ClassSection.school_id == self.school_id,
            )
        )
        section = result.scalar_one_or_none()
        return SectionRecord.model_validate(section) if section else None

    # ==========================================
    # Assessments & marks
    # ==========================================

    def list_published_assessments(self, section_id: int) -> list[AssessmentRecord]:
        result = self.db.execute(
            select(AcademicAssessment)
            .where(
                AcademicAssessment.school_id == self.school_id,
                AcademicAssessment.class_section_id == section_id,
                AcademicAssessment.is_published.is_(True),
            )
            .order_by(AcademicAssessment.id)
            .limit(self.limit)
        )
        return [AssessmentRecord.model_validate(a) for a in result.scalars().all()]

    def get_assessments(self, assessment_ids: Collection[int]) -> list[AssessmentRecord]:
        if not assessment_ids:
            return []
        result = self.db.execute(
            select(AcademicAssessment)
            .where(
                AcademicAssessment.school_id == self.school_id,
                AcademicAssessment.id.in_(assessment_ids),
            )
            .order_by(AcademicAssessment.id)
        )
        return [AssessmentRecord.model_validate(a) for a in result.scalars().all()]

    def list_marks_for_student(self, student_id: int) -> list[MarkRecord]:
        result = self.db.execute(
            select(StudentMark).where(
                StudentMark.school_id == self.school_id,
                StudentMark.student_id == student_id,
            )
        )
        return [MarkRecord.model_validate(m) for m in result.scalars().all()]

    def list_marks_for_assessments(self, assessment_ids: Collection[int]) -> list[MarkRecord]:
        if not assessment_ids:
            return []
        result = self.db.execute(
            select(StudentMark).where(
                StudentMark.school_id == self.school_id,
                StudentMark.assessment_id.in_(assessment_ids),
            )
        )
        return [MarkRecord.model_validate(m) for m in result.scalars().all()]

    # ==========================================
    # Lookups
    # ==========================================

    def list_grade_thresholds(self) -> list[GradeThresholdRecord]:
        result = self.db.execute(
            select(GradeThreshold)
            .where(GradeThreshold.school_id == self.school_id)
            .order_by(GradeThreshold.sort_order, GradeThreshold.id)
        )
        return [GradeThresholdRecord.model_validate(t) for t in result.scalars().all()]

    def get_subject_names(self) -> dict[int, str]:
        result = self.db.execute(
            select(Subject).where(Subject.school_id == self.school_id)
        )
        subjects = [SubjectRecord.model_validate(s) for s in result.scalars().all()]
        return {s.id: s.name for s in subjects}

    def list_attendance_entries(self, section_id: int) -> list[AttendanceEntryRecord]:
        result = self.db.execute(
            select(AttendanceEntry)
            .join(AttendanceSession, AttendanceEntry.session_id == AttendanceSession.id)
            .where(
                AttendanceEntry.school_id == self.school_id,
                AttendanceSession.class_section_id == section_id,
            )
        )
        return [AttendanceEntryRecord.model_validate(e) for e in result.scalars().all()]
