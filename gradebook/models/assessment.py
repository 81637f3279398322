"""Assessment, mark and grade threshold models."""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import DECIMAL, BigInteger, Boolean, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gradebook.core.database import Base
from gradebook.models.base import IDMixin, SchoolScopedMixin, TimestampMixin


class AcademicAssessment(Base, IDMixin, TimestampMixin, SchoolScopedMixin):
    """A gradable event (test, assignment) scoped to a section."""

    __tablename__ = "academic_assessments"

    class_section_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("class_sections.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subject_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("subjects.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    max_marks: Mapped[Decimal | None] = mapped_column(DECIMAL(10, 2), nullable=True)
    term_label: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    assessment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_published: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    marks: Mapped[list["StudentMark"]] = relationship(
        "StudentMark",
        back_populates="assessment",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<AcademicAssessment(id={self.id}, title={self.title})>"


class StudentMark(Base, IDMixin, TimestampMixin, SchoolScopedMixin):
    """A student's score on one assessment; null marks mean not graded yet."""

    __tablename__ = "student_marks"

    student_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    assessment_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("academic_assessments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    marks: Mapped[Decimal | None] = mapped_column(DECIMAL(10, 2), nullable=True)
    computed_grade: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_by: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    assessment: Mapped["AcademicAssessment"] = relationship(
        "AcademicAssessment",
        back_populates="marks",
    )

    __table_args__ = (
        UniqueConstraint("student_id", "assessment_id", name="uq_mark_student_assessment"),
    )

    def __repr__(self) -> str:
        return f"<StudentMark(student_id={self.student_id}, assessment_id={self.assessment_id})>"


class GradeThreshold(Base, IDMixin, TimestampMixin, SchoolScopedMixin):
    """A percentage band mapped to a grade label."""

    __tablename__ = "grade_thresholds"

    grade_label: Mapped[str] = mapped_column(String(50), nullable=False)
    min_percentage: Mapped[Decimal] = mapped_column(DECIMAL(5, 2), nullable=False)
    max_percentage: Mapped[Decimal] = mapped_column(DECIMAL(5, 2), nullable=False)
    grade_points: Mapped[Decimal | None] = mapped_column(DECIMAL(4, 2), nullable=True)
    sort_order: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<GradeThreshold({self.grade_label}: {self.min_percentage}-{self.max_percentage})>"
