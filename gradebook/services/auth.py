"""Authentication service."""

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from gradebook.core.config import settings
from gradebook.core.exceptions import AuthenticationError
from gradebook.core.security import (
    REFRESH_TOKEN,
    create_access_token,
    create_refresh_token,
    verify_password,
    verify_token,
)
from gradebook.models.school import School
from gradebook.models.user import SchoolMembership, User
from gradebook.schemas.auth import (
    CurrentUserResponse,
    LoginRequest,
    MembershipInfo,
    TokenResponse,
)

logger = logging.getLogger(__name__)


class AuthService:
    """Authentication service."""

    def __init__(self, db: Session):
        self.db = db

    def _issue_tokens(self, user: User) -> TokenResponse:
        return TokenResponse(
            access_token=create_access_token(user.id, user.username),
            refresh_token=create_refresh_token(user.id),
            token_type="bearer",
            expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )

    def login(self, request: LoginRequest) -> TokenResponse:
        """Authenticate user and return tokens."""
        result = self.db.execute(
            select(User).where(User.username == request.username)
        )
        user = result.scalar_one_or_none()

        if not user or not verify_password(request.password, user.password_hash):
            logger.info(f"Failed login attempt for username={request.username}")
            raise AuthenticationError("Invalid username or password")

        if not user.is_active:
            raise AuthenticationError("User account is deactivated")

        user.last_login_at = datetime.now(timezone.utc)
        self.db.flush()

        return self._issue_tokens(user)

    def refresh_tokens(self, refresh_token: str) -> TokenResponse:
        """Refresh access token using refresh token."""
        payload = verify_token(refresh_token, REFRESH_TOKEN)
        if not payload:
            raise AuthenticationError("Invalid or expired refresh token")

        try:
            user_id = int(payload.get("sub"))
        except (TypeError, ValueError):
            raise AuthenticationError("Invalid user ID in token")

        result = self.db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()

        if not user or not user.is_active:
            raise AuthenticationError("User not found or deactivated")

        return self._issue_tokens(user)

    def describe_user(self, user: User) -> CurrentUserResponse:
        """Current user with their school memberships."""
        result = self.db.execute(
            select(SchoolMembership, School)
            .join(School, SchoolMembership.school_id == School.id)
            .where(SchoolMembership.user_id == user.id)
            .order_by(School.name, SchoolMembership.role)
        )
        memberships = [
            MembershipInfo(
                school_id=school.id,
                school_slug=school.slug,
                school_name=school.name,
                role=membership.role,
                student_id=membership.student_id,
            )
            for membership, school in result.all()
        ]

        return CurrentUserResponse(
            id=user.id,
            name=user.name,
            username=user.username,
            is_super_admin=user.is_super_admin,
            last_login_at=user.last_login_at,
            memberships=memberships,
        )
