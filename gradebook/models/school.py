"""School (tenant) model."""

import enum

from sqlalchemy import Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gradebook.core.database import Base
from gradebook.models.base import IDMixin, TimestampMixin


class SchoolStatus(str, enum.Enum):
    """School status enumeration."""

    ACTIVE = "active"
    SUSPENDED = "suspended"


class School(Base, IDMixin, TimestampMixin):
    """School model; every tenant-scoped row hangs off one of these."""

    __tablename__ = "schools"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)
    theme_color: Mapped[str | None] = mapped_column(String(50), nullable=True)
    logo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[SchoolStatus] = mapped_column(
        Enum(SchoolStatus),
        default=SchoolStatus.ACTIVE,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<School(id={self.id}, slug={self.slug})>"
