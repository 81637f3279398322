"""FastAPI dependency injection utilities."""

from typing import Annotated

from fastapi import Depends, Header, Path
from sqlalchemy import select
from sqlalchemy.orm import Session

from gradebook.core.database import DbSession
from gradebook.core.exceptions import (
    AuthenticationError,
    NotFoundError,
    PermissionDeniedError,
    SchoolSuspendedError,
)
from gradebook.core.security import ACCESS_TOKEN, verify_token
from gradebook.models.school import School, SchoolStatus
from gradebook.models.student import StudentGuardian
from gradebook.models.user import ACADEMIC_STAFF_ROLES, SchoolMembership, SchoolRole, User


class SchoolContext:
    """Current user, the school resolved from the URL slug, and their roles there."""

    def __init__(
        self,
        user: User,
        school: School,
        memberships: list[SchoolMembership] | None = None,
    ):
        self.user = user
        self.school = school
        self.memberships = memberships or []

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def school_id(self) -> int:
        return self.school.id

    @property
    def roles(self) -> set[SchoolRole]:
        return {m.role for m in self.memberships}

    def is_super_admin(self) -> bool:
        return self.user.is_super_admin

    def has_any_role(self, roles: set[SchoolRole] | frozenset[SchoolRole]) -> bool:
        """Super admins pass every role check."""
        return self.is_super_admin() or bool(self.roles & roles)

    def is_academic_staff(self) -> bool:
        return self.has_any_role(ACADEMIC_STAFF_ROLES)

    def own_student_ids(self) -> set[int]:
        """Student records attached to this user's student memberships."""
        return {
            m.student_id for m in self.memberships
            if m.role == SchoolRole.STUDENT and m.student_id is not None
        }


def get_current_user(
    db: DbSession,
    authorization: str = Header(..., description="Bearer token"),
) -> User:
    """Extract and validate the current user from JWT token."""
    if not authorization.startswith("Bearer "):
        raise AuthenticationError("Invalid authorization header format")

    payload = verify_token(authorization[7:], ACCESS_TOKEN)
    if not payload:
        raise AuthenticationError("Invalid or expired token")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid user ID in token")

    result = db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("User account is deactivated")

    return user


def get_school_context(
    db: DbSession,
    user: Annotated[User, Depends(get_current_user)],
    slug: str = Path(..., description="School slug"),
) -> SchoolContext:
    """Resolve the school by slug and the user's memberships in it."""
    result = db.execute(select(School).where(School.slug == slug))
    school = result.scalar_one_or_none()
    if not school:
        raise NotFoundError("School", slug)

    memberships_result = db.execute(
        select(SchoolMembership).where(
            SchoolMembership.user_id == user.id,
            SchoolMembership.school_id == school.id,
        )
    )
    memberships = list(memberships_result.scalars().all())

    # Super admins have access to all schools
    if not memberships and not user.is_super_admin:
        raise PermissionDeniedError("You don't have access to this school")

    return SchoolContext(user=user, school=school, memberships=memberships)


def require_roles(*roles: SchoolRole, mutation: bool = False):
    """Dependency factory requiring one of ``roles`` in the current school.

    With ``mutation=True`` the request is also refused for suspended schools.
    """
    allowed = frozenset(roles)

    def check_roles(
        context: Annotated[SchoolContext, Depends(get_school_context)],
    ) -> SchoolContext:
        if not context.has_any_role(allowed):
            raise PermissionDeniedError(
                "Your role does not allow this action",
                required_roles=sorted(role.value for role in allowed),
            )
        if mutation and context.school.status == SchoolStatus.SUSPENDED:
            raise SchoolSuspendedError(context.school.slug)
        return context

    return check_roles


def can_view_student(db: Session, context: SchoolContext, student_id: int) -> bool:
    """Staff see every student; students see themselves; parents see linked children."""
    if context.is_academic_staff():
        return True
    if student_id in context.own_student_ids():
        return True
    if SchoolRole.PARENT in context.roles:
        result = db.execute(
            select(StudentGuardian.id).where(
                StudentGuardian.school_id == context.school_id,
                StudentGuardian.user_id == context.user_id,
                StudentGuardian.student_id == student_id,
            )
        )
        return result.first() is not None
    return False


# Type aliases for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentSchool = Annotated[SchoolContext, Depends(get_school_context)]
