"""Gradebook management schemas."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import Field, model_validator

from gradebook.schemas.common import BaseSchema, Marks


# ==========================================
# Grade Thresholds
# ==========================================

class GradeThresholdInput(BaseSchema):
    """One grade band. Gaps and overlaps between bands are allowed."""

    grade_label: str = Field(..., min_length=1, max_length=50)
    min_percentage: Decimal = Field(..., ge=0, le=100)
    max_percentage: Decimal = Field(..., ge=0, le=100)
    grade_points: Decimal | None = Field(None, ge=0, le=Decimal("99.99"))
    sort_order: int | None = None

    @model_validator(mode="after")
    def check_band(self) -> "GradeThresholdInput":
        if self.min_percentage > self.max_percentage:
            raise ValueError(
                f"min_percentage ({self.min_percentage}) exceeds max_percentage ({self.max_percentage})"
            )
        return self


class GradeThresholdReplace(BaseSchema):
    """Replace every band of a school; an empty list restores the default scale."""

    bands: list[GradeThresholdInput]


class GradeThresholdResponse(BaseSchema):
    id: int
    grade_label: str
    min_percentage: Marks
    max_percentage: Marks
    grade_points: Marks | None
    sort_order: int | None


# ==========================================
# Assessments
# ==========================================

class AssessmentCreate(BaseSchema):
    """Assessments are created as drafts and published separately."""

    class_section_id: int
    subject_id: int | None = None
    title: str = Field(..., min_length=1, max_length=255)
    max_marks: Decimal = Field(..., gt=0)
    term_label: str | None = Field(None, max_length=100)
    assessment_date: date | None = None


class AssessmentPublish(BaseSchema):
    is_published: bool = True


class AssessmentFilter(BaseSchema):
    class_section_id: int | None = None
    term_label: str | None = None
    is_published: bool | None = None


class AssessmentResponse(BaseSchema):
    id: int
    class_section_id: int
    subject_id: int | None
    title: str
    max_marks: Marks | None
    term_label: str | None
    assessment_date: date | None
    is_published: bool
    published_at: datetime | None
    created_at: datetime
    updated_at: datetime


# ==========================================
# Marks
# ==========================================

class MarkEntry(BaseSchema):
    """A student's score; null records the student as not graded yet."""

    student_id: int
    marks: Decimal | None = Field(None, ge=0)


class BulkMarksUpdate(BaseSchema):
    marks: list[MarkEntry] = Field(..., min_length=1)


class MarkResponse(BaseSchema):
    student_id: int
    marks: Marks | None
    computed_grade: str | None


class BulkMarksResponse(BaseSchema):
    assessment_id: int
    total_records: int
    created: int
    updated: int
    errors: list[dict] = []
    marks: list[MarkResponse] = []
    message: str
