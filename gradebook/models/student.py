"""Student, guardian and enrollment models."""

from datetime import date

from sqlalchemy import BigInteger, Date, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gradebook.core.database import Base
from gradebook.models.base import IDMixin, SchoolScopedMixin, TimestampMixin


class Student(Base, IDMixin, TimestampMixin, SchoolScopedMixin):
    """Student model for managing student records."""

    __tablename__ = "students"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    parent_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    student_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str | None] = mapped_column(String(20), nullable=True, default="active")

    enrollments: Mapped[list["StudentEnrollment"]] = relationship(
        "StudentEnrollment",
        back_populates="student",
        passive_deletes=True,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, name={self.full_name})>"


class StudentGuardian(Base, IDMixin, TimestampMixin, SchoolScopedMixin):
    """Links a parent account to a student."""

    __tablename__ = "student_guardians"

    student_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    relationship_label: Mapped[str | None] = mapped_column(String(50), nullable=True)

    __table_args__ = (
        UniqueConstraint("student_id", "user_id", name="uq_guardian_student_user"),
    )


class StudentEnrollment(Base, IDMixin, TimestampMixin, SchoolScopedMixin):
    """Membership of a student in a class section.

    An enrollment is active while ``end_date`` is null.
    """

    __tablename__ = "student_enrollments"

    student_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    class_section_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("class_sections.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    student: Mapped["Student"] = relationship(
        "Student",
        back_populates="enrollments",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<StudentEnrollment(student_id={self.student_id}, section_id={self.class_section_id})>"
