"""Authentication endpoints."""

from fastapi import APIRouter

from gradebook.core.database import DbSession
from gradebook.core.dependencies import CurrentUser
from gradebook.schemas.auth import CurrentUserResponse, LoginRequest, RefreshTokenRequest, TokenResponse
from gradebook.services.auth import AuthService

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
def login(
    request: LoginRequest,
    db: DbSession,
):
    """
    Authenticate user and return access/refresh tokens.
    """
    service = AuthService(db)
    return service.login(request)


@router.post("/refresh", response_model=TokenResponse)
def refresh_token(
    request: RefreshTokenRequest,
    db: DbSession,
):
    """
    Refresh access token using a valid refresh token.
    """
    service = AuthService(db)
    return service.refresh_tokens(request.refresh_token)


@router.get("/me", response_model=CurrentUserResponse)
def get_me(
    user: CurrentUser,
    db: DbSession,
):
    """
    Get the signed-in user and every school role they hold.
    """
    service = AuthService(db)
    return service.describe_user(user)
