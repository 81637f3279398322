"""Authentication schemas."""

from datetime import datetime

from pydantic import Field

from gradebook.models.user import SchoolRole
from gradebook.schemas.common import BaseSchema


class LoginRequest(BaseSchema):
    """Login request schema."""

    username: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=6)


class TokenResponse(BaseSchema):
    """Token response schema."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class RefreshTokenRequest(BaseSchema):
    """Refresh token request schema."""

    refresh_token: str


class MembershipInfo(BaseSchema):
    school_id: int
    school_slug: str
    school_name: str
    role: SchoolRole
    student_id: int | None = None


class CurrentUserResponse(BaseSchema):
    """The signed-in user with every school role they hold."""

    id: int
    name: str
    username: str
    is_super_admin: bool
    last_login_at: datetime | None
    memberships: list[MembershipInfo] = []
