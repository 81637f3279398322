"""User and school membership models."""

import enum
from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Enum, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gradebook.core.database import Base
from gradebook.models.base import IDMixin, SchoolScopedMixin, TimestampMixin


class SchoolRole(str, enum.Enum):
    """Role a user holds inside a school."""

    SCHOOL_OWNER = "school_owner"
    PRINCIPAL = "principal"
    VICE_PRINCIPAL = "vice_principal"
    SCHOOL_ADMIN = "school_admin"
    # Superseded by school_admin, still accepted for older memberships
    ACADEMIC_COORDINATOR = "academic_coordinator"
    TEACHER = "teacher"
    ACCOUNTANT = "accountant"
    HR_MANAGER = "hr_manager"
    COUNSELOR = "counselor"
    STUDENT = "student"
    PARENT = "parent"
    MARKETING_STAFF = "marketing_staff"


# Roles that run and administer grading
GRADING_ADMIN_ROLES = frozenset({
    SchoolRole.SCHOOL_OWNER,
    SchoolRole.PRINCIPAL,
    SchoolRole.VICE_PRINCIPAL,
    SchoolRole.SCHOOL_ADMIN,
    SchoolRole.ACADEMIC_COORDINATOR,
})
ACADEMIC_STAFF_ROLES = GRADING_ADMIN_ROLES | {SchoolRole.TEACHER}
FAMILY_ROLES = frozenset({SchoolRole.STUDENT, SchoolRole.PARENT})


class User(Base, IDMixin, TimestampMixin):
    """Global system user model."""

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_super_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    memberships: Mapped[list["SchoolMembership"]] = relationship(
        "SchoolMembership",
        back_populates="user",
        lazy="selectin",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"


class SchoolMembership(Base, IDMixin, TimestampMixin, SchoolScopedMixin):
    """A user's role in one school."""

    __tablename__ = "school_memberships"

    user_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[SchoolRole] = mapped_column(Enum(SchoolRole), nullable=False)
    # Set for the student role: the student record this account belongs to
    student_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=True,
    )

    user: Mapped["User"] = relationship("User", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("user_id", "school_id", "role", name="uq_membership_user_school_role"),
    )

    def __repr__(self) -> str:
        return f"<SchoolMembership(user_id={self.user_id}, school_id={self.school_id}, role={self.role})>"
