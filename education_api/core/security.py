"""Security utilities: roles, password hashing, JWT issuance and validation."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, NamedTuple, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from education_api.core.exceptions import (
    InvalidTokenError,
    MISSING_EMAIL_CLAIM_MESSAGE,
    MISSING_ID_CLAIM_MESSAGE,
    MISSING_ROLE_CLAIM_MESSAGE,
    UnauthorizedError,
)


class Role(str, Enum):
    """User roles."""

    STUDENT = "Student"
    ADMIN = "Admin"

    @classmethod
    def from_claim(cls, value: str) -> "Role":
        """Only "Admin" (any case) is privileged; everything else is a student."""
        if value.strip().lower() == cls.ADMIN.value.lower():
            return cls.ADMIN
        return cls.STUDENT


class TokenType(str, Enum):
    """Purpose of a token, carried in the ``type`` claim."""

    ACCESS = "access"
    REFRESH = "refresh"
    PASSWORD_RESET = "password_reset"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PasswordHasher:
    """Adaptive hashing for passwords and one-time codes."""

    def __init__(self, rounds: int = 12):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, secret: str) -> str:
        return self._context.hash(secret)

    def verify(self, secret: str, hashed: str) -> bool:
        try:
            return self._context.verify(secret, hashed)
        except ValueError:
            # Malformed or unknown hash format
            return False


@dataclass(frozen=True)
class TokenSettings:
    """Everything the token service needs from configuration."""

    secret_key: str
    issuer: str
    audience: str
    algorithm: str = "HS256"
    default_expire_minutes: int = 10


class TokenIdentity(NamedTuple):
    """Identity extracted from a validated token."""

    user_id: int
    email: str
    role: Role


class TokenService:
    """Issues and validates signed bearer tokens.

    Tokens carry the user id (``sub``), role, email and verification flag,
    plus a ``type`` claim so that a token minted for one purpose (e.g. a
    password reset) cannot be replayed for another.
    """

    def __init__(self, config: TokenSettings, clock: Callable[[], datetime] = utc_now):
        self.config = config
        self._clock = clock

    @classmethod
    def from_settings(cls, settings) -> "TokenService":
        return cls(
            TokenSettings(
                secret_key=settings.SECRET_KEY,
                issuer=settings.JWT_ISSUER,
                audience=settings.JWT_AUDIENCE,
                algorithm=settings.ALGORITHM,
                default_expire_minutes=settings.DEFAULT_TOKEN_EXPIRE_MINUTES,
            )
        )

    def issue(
        self,
        user,
        ttl_minutes: Optional[float] = None,
        token_type: TokenType = TokenType.ACCESS,
    ) -> str:
        """Create a signed token for ``user`` that expires after ``ttl_minutes``."""
        if ttl_minutes is None:
            ttl_minutes = self.config.default_expire_minutes

        issued_at = self._clock()
        role = user.role.value if isinstance(user.role, Role) else str(user.role)
        to_encode = {
            "sub": str(user.id),
            "role": role,
            "email": user.email,
            "is_verified": "true" if user.is_verified else "false",
            "type": token_type.value,
            "iss": self.config.issuer,
            "aud": self.config.audience,
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=ttl_minutes),
        }
        return jwt.encode(to_encode, self.config.secret_key, algorithm=self.config.algorithm)

    def decode(self, token: str) -> dict:
        """Verify signature, issuer, audience and expiry and return the claims."""
        try:
            return jwt.decode(
                token,
                self.config.secret_key,
                algorithms=[self.config.algorithm],
                audience=self.config.audience,
                issuer=self.config.issuer,
                options={
                    "require_exp": True,
                    "require_iss": True,
                    "require_aud": True,
                },
            )
        except JWTError:
            raise InvalidTokenError()

    def validate(self, token: str, expected_type: Optional[TokenType] = None) -> TokenIdentity:
        """Validate ``token`` and extract ``(user_id, email, role)``.

        Raises:
            InvalidTokenError: signature, issuer, audience, expiry or type check failed.
            UnauthorizedError: one of the identity claims is missing or malformed.
        """
        payload = self.decode(token)

        if expected_type is not None and payload.get("type") != expected_type.value:
            raise InvalidTokenError()

        subject = payload.get("sub")
        try:
            user_id = int(subject)
        except (TypeError, ValueError):
            raise UnauthorizedError(MISSING_ID_CLAIM_MESSAGE)

        email = payload.get("email")
        if not isinstance(email, str) or not email:
            raise UnauthorizedError(MISSING_EMAIL_CLAIM_MESSAGE)

        role = payload.get("role")
        if not isinstance(role, str) or not role.strip():
            raise UnauthorizedError(MISSING_ROLE_CLAIM_MESSAGE)

        return TokenIdentity(user_id=user_id, email=email, role=Role.from_claim(role))
