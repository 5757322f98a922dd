"""
API Dependencies
Wires services from settings and resolves the authenticated user
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from education_api.config import settings
from education_api.core.exceptions import UnauthorizedError
from education_api.core.security import PasswordHasher, TokenIdentity, TokenService, TokenType
from education_api.db.session import get_db
from education_api.models.user import User
from education_api.services.auth_service import AuthService
from education_api.services.credential_store import CredentialStore, SqlAlchemyCredentialStore
from education_api.services.email_service import EmailSender, SmtpEmailSender
from education_api.services.email_templates import EmailTemplateBuilder
from education_api.services.otp_service import OtpService
from education_api.services.user_service import UserService

# HTTPBearer for simple token authentication in Swagger (just paste the access token)
bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=settings.BCRYPT_ROUNDS)


@lru_cache
def get_token_service() -> TokenService:
    return TokenService.from_settings(settings)


@lru_cache
def get_email_sender() -> EmailSender:
    return SmtpEmailSender.from_settings(settings)


@lru_cache
def get_template_builder() -> EmailTemplateBuilder:
    return EmailTemplateBuilder.from_settings(settings)


def get_credential_store(db: AsyncSession = Depends(get_db)) -> CredentialStore:
    return SqlAlchemyCredentialStore(db)


def get_auth_service(
    store: CredentialStore = Depends(get_credential_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
    email_sender: EmailSender = Depends(get_email_sender),
    templates: EmailTemplateBuilder = Depends(get_template_builder),
) -> AuthService:
    otp = OtpService(store, hasher, expire_minutes=settings.OTP_EXPIRE_MINUTES)
    return AuthService(
        store=store,
        hasher=hasher,
        tokens=tokens,
        otp=otp,
        email_sender=email_sender,
        templates=templates,
        access_token_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
        refresh_token_minutes=settings.REFRESH_TOKEN_EXPIRE_MINUTES,
        reset_token_minutes=settings.RESET_TOKEN_EXPIRE_MINUTES,
        username_max_attempts=settings.USERNAME_MAX_ATTEMPTS,
        register_max_attempts=settings.REGISTER_MAX_ATTEMPTS,
    )


def get_user_service(store: CredentialStore = Depends(get_credential_store)) -> UserService:
    return UserService(store)


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> TokenIdentity:
    """Validate the Bearer access token."""
    if credentials is None:
        raise UnauthorizedError("Not authenticated")
    return tokens.validate(credentials.credentials, TokenType.ACCESS)


async def get_current_user(
    identity: TokenIdentity = Depends(get_current_identity),
    users: UserService = Depends(get_user_service),
) -> User:
    """Get current authenticated user from Bearer token."""
    return await users.get_by_id(identity.user_id)
