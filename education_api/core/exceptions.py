"""Application error types.

Services raise these; the HTTP layer maps each one to a status code in
``education_api.main``.
"""

from fastapi import status

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."
INVALID_TOKEN_MESSAGE = "The provided token is invalid or has expired."
MISSING_ID_CLAIM_MESSAGE = "Access denied. Token lacks a valid name identifier claim."
MISSING_EMAIL_CLAIM_MESSAGE = "Access denied. Token lacks a valid email claim."
MISSING_ROLE_CLAIM_MESSAGE = "Access denied. Token lacks a valid role claim."
OTP_EXPIRED_MESSAGE = "Your code has expired or is invalid. Please request a new one."
OTP_MISMATCH_MESSAGE = "We couldn't verify your OTP. Double-check the code and try again."
MISSING_REFRESH_TOKEN_MESSAGE = "Access denied: refresh token is missing from the request."
UNEXPECTED_ERROR_MESSAGE = "The server encountered an unexpected issue. Please try again later."
FORBIDDEN_MESSAGE = "You do not have permission to access this resource."


class AppError(Exception):
    """Base class for errors that are safe to show to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(AppError):
    """A referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    """The request collides with existing state (duplicate email, already verified)."""

    status_code = status.HTTP_409_CONFLICT


class UnauthorizedError(AppError):
    """Credentials, codes or token claims were rejected."""

    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidTokenError(UnauthorizedError):
    """Token signature, issuer, audience, expiry or purpose check failed."""

    def __init__(self, message: str = INVALID_TOKEN_MESSAGE):
        super().__init__(message)


class InvalidOtpError(UnauthorizedError):
    """No active one-time code exists for the address."""

    def __init__(self, message: str = OTP_EXPIRED_MESSAGE):
        super().__init__(message)


class InvalidOperationError(AppError):
    """The operation cannot be performed with the given input."""

    status_code = status.HTTP_400_BAD_REQUEST


class ForbiddenError(AppError):
    """Authenticated, but not allowed to touch this resource."""

    status_code = status.HTTP_403_FORBIDDEN
