"""
One-time code service
Issues hashed, time-boxed, single-use 6-digit codes and verifies them
"""

import secrets
from datetime import datetime, timedelta
from typing import Callable

import structlog

from education_api.core.exceptions import InvalidOtpError, OTP_MISMATCH_MESSAGE, UnauthorizedError
from education_api.core.logging import mask_email
from education_api.core.security import PasswordHasher, utc_now
from education_api.models.one_time_code import OneTimeCode
from education_api.services.credential_store import CredentialStore

logger = structlog.get_logger(__name__)

OTP_LENGTH = 6


class OtpService:
    """Issues and verifies one-time codes. The plaintext code is never stored or logged."""

    def __init__(
        self,
        store: CredentialStore,
        hasher: PasswordHasher,
        expire_minutes: int = 10,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.hasher = hasher
        self.expire_minutes = expire_minutes
        self._clock = clock

    @staticmethod
    def generate() -> str:
        """Uniform code in [000000, 999999] from a CSPRNG."""
        return f"{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}"

    async def issue(self, user_id: int, email: str) -> str:
        """
        Create and persist a new code for ``email``.

        Returns:
            The plaintext code, for delivery to the user
        """
        code = self.generate()
        now = self._clock()
        await self.store.create_otp_record(
            OneTimeCode(
                email=email,
                user_id=user_id,
                code_hash=self.hasher.hash(code),
                expires_at=now + timedelta(minutes=self.expire_minutes),
                is_used=False,
            )
        )
        logger.info("otp_issued", user_id=user_id, email=mask_email(email))
        return code

    async def verify(self, email: str, code: str) -> None:
        """
        Check ``code`` against the latest active code for ``email`` and consume it.

        Raises:
            InvalidOtpError: no unexpired, unused code exists (or another request consumed it first)
            UnauthorizedError: the code does not match; the stored code stays usable
        """
        record = await self.store.find_active_otp(email, self._clock())
        if record is None:
            logger.info("otp_not_active", email=mask_email(email))
            raise InvalidOtpError()

        if not self.hasher.verify(code, record.code_hash):
            logger.info("otp_mismatch", otp_id=record.id, email=mask_email(email))
            raise UnauthorizedError(OTP_MISMATCH_MESSAGE)

        if not await self.store.mark_otp_used(record.id):
            logger.warning("otp_already_consumed", otp_id=record.id)
            raise InvalidOtpError()

        logger.info("otp_verified", otp_id=record.id, user_id=record.user_id)
