"""Authentication schemas."""

import re
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

PASSWORD_PATTERN = re.compile(r"^(?=.*[A-Za-z])(?=.*\d)(?=.*[^A-Za-z\d]).{8,}$")
PASSWORD_RULES_MESSAGE = (
    "Password must be at least 8 characters long and contain a mix of letters, "
    "numbers, and special characters"
)


def check_password_strength(value: str) -> str:
    if not PASSWORD_PATTERN.match(value):
        raise ValueError(PASSWORD_RULES_MESSAGE)
    return value


class RegisterRequest(BaseModel):
    """Register request schema."""

    username: str = Field(..., min_length=3, max_length=150)
    email: EmailStr
    password: str
    curriculum_id: Optional[int] = None
    exam_board_id: Optional[int] = None
    level_ids: List[int] = Field(default_factory=list)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Access token returned in the body; the refresh token travels in a cookie."""

    token: str


class EmailRequest(BaseModel):
    """Password-reset or email-verification request."""

    email: EmailStr


class VerifyOtpRequest(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=6, max_length=6)


class ResetTokenResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reset_token: str = Field(..., alias="resetToken")


class ResetPasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reset_token: str = Field(..., alias="resetToken")
    password: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)
