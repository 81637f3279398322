"""Report card schemas.

The ``*Record`` classes are the typed shapes rows take when they leave the
database; nothing untyped reaches the aggregation code. ``SubjectResult`` and
``ReportCard`` are derived per generation call and never stored.
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import field_validator

from gradebook.models.attendance import AttendanceStatus
from gradebook.schemas.common import BaseSchema, Marks, Percentage
from gradebook.services.ranking import RankingStrategy


# ==========================================
# Repository records
# ==========================================

class StudentRecord(BaseSchema):
    id: int
    first_name: str
    last_name: str | None = None
    parent_name: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()


class EnrollmentRecord(BaseSchema):
    student_id: int
    class_section_id: int
    start_date: date | None = None
    end_date: date | None = None

    @property
    def is_active(self) -> bool:
        return self.end_date is None


class SectionRecord(BaseSchema):
    id: int
    name: str
    class_name: str | None = None


class AssessmentRecord(BaseSchema):
    id: int
    class_section_id: int
    subject_id: int | None = None
    title: str
    max_marks: Decimal = Decimal("0")
    term_label: str | None = None
    is_published: bool = False

    @field_validator("max_marks", mode="before")
    @classmethod
    def missing_max_marks_is_zero(cls, v):
        return Decimal("0") if v is None else v


class MarkRecord(BaseSchema):
    student_id: int
    assessment_id: int
    marks: Decimal | None = None


class GradeThresholdRecord(BaseSchema):
    grade_label: str
    min_percentage: Decimal
    max_percentage: Decimal
    grade_points: Decimal | None = None
    sort_order: int | None = None


class SubjectRecord(BaseSchema):
    id: int
    name: str


class AttendanceEntryRecord(BaseSchema):
    student_id: int
    status: AttendanceStatus


# ==========================================
# Derived report card
# ==========================================

class AssessmentResult(BaseSchema):
    """One assessment line inside a subject."""

    title: str
    obtained: Marks | None
    max_marks: Marks


class SubjectResult(BaseSchema):
    subject_name: str
    assessments: list[AssessmentResult]
    total_obtained: Marks
    total_max: Marks
    percentage: Percentage
    grade: str


class AttendanceSummary(BaseSchema):
    present: int = 0
    absent: int = 0
    total: int = 0

    @property
    def rate(self) -> float | None:
        if self.total > 0:
            return self.present / self.total * 100
        return None


class ReportCard(BaseSchema):
    student_id: int
    student_name: str
    parent_name: str | None = None
    class_name: str
    section_name: str
    subjects: list[SubjectResult]
    grand_total_obtained: Marks
    grand_total_max: Marks
    overall_percentage: Percentage
    overall_grade: str
    rank: int | None = None
    cohort_size: int
    attendance: AttendanceSummary | None = None
    term_label: str | None = None
    school_name: str | None = None


# ==========================================
# API responses
# ==========================================

class ReportCardBatchResponse(BaseSchema):
    """All report cards of a section, alphabetical by student name."""

    school: str
    section_id: int
    class_name: str
    section_name: str
    term_label: str | None
    ranking: RankingStrategy
    generated_at: datetime
    total: int
    report_cards: list[ReportCard]


class StudentReportCardResponse(BaseSchema):
    school: str
    ranking: RankingStrategy
    generated_at: datetime
    report_card: ReportCard

