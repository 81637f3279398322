"""Attendance session and entry models."""

import enum
from datetime import date

from sqlalchemy import BigInteger, Date, Enum, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from gradebook.core.database import Base
from gradebook.models.base import IDMixin, SchoolScopedMixin, TimestampMixin


class AttendanceStatus(str, enum.Enum):
    """Attendance status enumeration."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"

    @property
    def counts_as_present(self) -> bool:
        return self in (AttendanceStatus.PRESENT, AttendanceStatus.LATE)


class AttendanceSession(Base, IDMixin, TimestampMixin, SchoolScopedMixin):
    """One roll call for a section (a day or a period)."""

    __tablename__ = "attendance_sessions"

    class_section_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("class_sections.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    session_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    period_label: Mapped[str | None] = mapped_column(String(50), nullable=True)

    def __repr__(self) -> str:
        return f"<AttendanceSession(section_id={self.class_section_id}, date={self.session_date})>"


class AttendanceEntry(Base, IDMixin, TimestampMixin, SchoolScopedMixin):
    """A student's status in one attendance session."""

    __tablename__ = "attendance_entries"

    session_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("attendance_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    student_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[AttendanceStatus] = mapped_column(Enum(AttendanceStatus), nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("session_id", "student_id", name="uq_attendance_session_student"),
    )

    def __repr__(self) -> str:
        return f"<AttendanceEntry(session_id={self.session_id}, student_id={self.student_id})>"
