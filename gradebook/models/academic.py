"""Class, section and subject models."""

from sqlalchemy import BigInteger, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gradebook.core.database import Base
from gradebook.models.base import IDMixin, SchoolScopedMixin, TimestampMixin


class AcademicClass(Base, IDMixin, TimestampMixin, SchoolScopedMixin):
    """A class (grade level) such as "Grade 5"."""

    __tablename__ = "academic_classes"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    grade_level: Mapped[int | None] = mapped_column(Integer, nullable=True)

    sections: Mapped[list["ClassSection"]] = relationship(
        "ClassSection",
        back_populates="academic_class",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<AcademicClass(id={self.id}, name={self.name})>"


class ClassSection(Base, IDMixin, TimestampMixin, SchoolScopedMixin):
    """A subdivision of a class, e.g. "B" in "Grade 5 - B"."""

    __tablename__ = "class_sections"

    class_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("academic_classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    room: Mapped[str | None] = mapped_column(String(50), nullable=True)

    academic_class: Mapped["AcademicClass"] = relationship(
        "AcademicClass",
        back_populates="sections",
        lazy="selectin",
    )

    @property
    def class_name(self) -> str | None:
        return self.academic_class.name if self.academic_class else None

    def __repr__(self) -> str:
        return f"<ClassSection(id={self.id}, name={self.name}, class_id={self.class_id})>"


class Subject(Base, IDMixin, TimestampMixin, SchoolScopedMixin):
    """Subject taught in a school."""

    __tablename__ = "subjects"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str | None] = mapped_column(String(20), nullable=True)

    def __repr__(self) -> str:
        return f"<Subject(id={self.id}, name={self.name})>"
