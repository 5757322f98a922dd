"""Authentication endpoints."""

from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Response, status

from education_api.api.deps import get_auth_service, get_current_user
from education_api.config import settings
from education_api.core.exceptions import MISSING_REFRESH_TOKEN_MESSAGE, UnauthorizedError
from education_api.models.user import User
from education_api.schemas.auth import (
    EmailRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    ResetTokenResponse,
    TokenResponse,
    VerifyOtpRequest,
)
from education_api.schemas.user import UserResponse
from education_api.services.auth_service import AuthService

router = APIRouter()


def _set_refresh_cookie(response: Response, refresh_token: str) -> None:
    response.set_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        value=refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.REFRESH_COOKIE_SECURE,
        samesite="none",
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
):
    """
    Register a new student account.

    The requested username is used as-is when free, otherwise a numeric
    suffix is appended.
    """
    user = await auth.register(
        username=request.username,
        email=request.email,
        password=request.password,
        curriculum_id=request.curriculum_id,
        exam_board_id=request.exam_board_id,
        level_ids=request.level_ids,
    )
    response.headers["Location"] = f"{settings.API_PREFIX}/users/{user.id}"
    return user


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
):
    """
    Login with email and password.

    Returns the access token in the body and sets the refresh token as an
    HTTP-only cookie.
    """
    access_token, refresh_token = await auth.login(request.email, request.password)
    _set_refresh_cookie(response, refresh_token)
    return TokenResponse(token=access_token)


@router.post("/logout")
async def logout(response: Response):
    """Clear the refresh token cookie."""
    response.delete_cookie(
        key=settings.REFRESH_COOKIE_NAME,
        httponly=True,
        secure=settings.REFRESH_COOKIE_SECURE,
        samesite="none",
    )
    return {"message": "Logged out"}


@router.post("/password-reset/request", status_code=status.HTTP_204_NO_CONTENT)
async def request_password_reset(
    request: EmailRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """Send a reset code. Always 204, whether or not the email is registered."""
    await auth.request_password_reset(request.email)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/password-reset/verify-otp", response_model=ResetTokenResponse)
async def verify_password_reset_otp(
    request: VerifyOtpRequest,
    auth: AuthService = Depends(get_auth_service),
):
    """Exchange a valid reset code for a short-lived reset token."""
    reset_token = await auth.verify_otp_and_issue_reset_token(request.email, request.otp)
    return ResetTokenResponse(reset_token=reset_token)


@router.post("/password-reset/reset")
async def reset_password(
    request: ResetPasswordRequest,
    auth: AuthService = Depends(get_auth_service),
):
    await auth.reset_password(request.reset_token, request.password)
    return {"message": "Password has been reset"}


@router.post("/email-verification/request", status_code=status.HTTP_204_NO_CONTENT)
async def request_email_verification(
    request: EmailRequest,
    auth: AuthService = Depends(get_auth_service),
):
    await auth.request_email_verification(request.email)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/email-verification/verify", status_code=status.HTTP_204_NO_CONTENT)
async def verify_email(
    request: VerifyOtpRequest,
    auth: AuthService = Depends(get_auth_service),
):
    await auth.verify_email(request.email, request.otp)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/refresh-token", response_model=TokenResponse)
async def refresh_access_token(
    refresh_token: Optional[str] = Cookie(default=None, alias=settings.REFRESH_COOKIE_NAME),
    auth: AuthService = Depends(get_auth_service),
):
    """Mint a new access token from the refresh token cookie."""
    if not refresh_token:
        raise UnauthorizedError(MISSING_REFRESH_TOKEN_MESSAGE)

    access_token = await auth.refresh_access_token(refresh_token)
    return TokenResponse(token=access_token)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get current user profile."""
    return current_user
