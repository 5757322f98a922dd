"""
Authentication service
Registration, login, password reset, email verification and token refresh
"""

import secrets
from typing import List, Optional, Sequence, Tuple

import structlog

from education_api.core.exceptions import (
    ConflictError,
    INVALID_CREDENTIALS_MESSAGE,
    InvalidOperationError,
    NotFoundError,
    UnauthorizedError,
)
from education_api.core.logging import mask_email
from education_api.core.security import PasswordHasher, Role, TokenIdentity, TokenService, TokenType
from education_api.models.catalog import Curriculum, ExamBoard, Level
from education_api.models.user import User
from education_api.services.credential_store import CredentialStore
from education_api.services.email_service import EmailMessage, EmailSender
from education_api.services.email_templates import (
    EMAIL_VERIFICATION_SUBJECT,
    PASSWORD_RESET_SUBJECT,
    EmailTemplateBuilder,
)
from education_api.services.otp_service import OtpService

logger = structlog.get_logger(__name__)

DUPLICATE_EMAIL_MESSAGE = "A user with this email is already registered."
ALREADY_VERIFIED_MESSAGE = "This email address has already been verified."
USERNAME_SUFFIX_DIGITS = 6


class AuthService:
    """Composes the credential store, OTP service, token service and email sender."""

    def __init__(
        self,
        store: CredentialStore,
        hasher: PasswordHasher,
        tokens: TokenService,
        otp: OtpService,
        email_sender: EmailSender,
        templates: EmailTemplateBuilder,
        access_token_minutes: int = 4320,
        refresh_token_minutes: int = 10080,
        reset_token_minutes: int = 15,
        username_max_attempts: int = 10,
        register_max_attempts: int = 3,
    ):
        self.store = store
        self.hasher = hasher
        self.tokens = tokens
        self.otp = otp
        self.email_sender = email_sender
        self.templates = templates
        self.access_token_minutes = access_token_minutes
        self.refresh_token_minutes = refresh_token_minutes
        self.reset_token_minutes = reset_token_minutes
        self.username_max_attempts = username_max_attempts
        self.register_max_attempts = register_max_attempts

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        curriculum_id: Optional[int] = None,
        exam_board_id: Optional[int] = None,
        level_ids: Optional[Sequence[int]] = None,
    ) -> User:
        """
        Create a student account.

        The unique index on username is the final arbiter: if a concurrent
        registration takes the generated name between the probe and the
        insert, generation is retried.

        Raises:
            ConflictError: email already registered, or no free username after retries
            InvalidOperationError: username probing exhausted, or catalog selections do not nest
            NotFoundError: a selected curriculum, exam board or level does not exist
        """
        if await self.store.find_user_by_email(email) is not None:
            raise ConflictError(DUPLICATE_EMAIL_MESSAGE)

        password_hash = self.hasher.hash(password)

        for attempt in range(1, self.register_max_attempts + 1):
            unique_username = await self.generate_unique_username(username)
            # Re-resolved per attempt: a failed insert rolls back and expires loaded rows
            curriculum, exam_board, levels = await self._resolve_catalog(
                curriculum_id, exam_board_id, level_ids
            )

            user = User(
                username=unique_username,
                email=email,
                password_hash=password_hash,
                role=Role.STUDENT.value,
                is_verified=False,
                curriculum=curriculum,
                exam_board=exam_board,
                levels=levels,
            )
            try:
                created = await self.store.create_user(user)
            except ConflictError:
                if await self.store.find_user_by_email(email) is not None:
                    raise ConflictError(DUPLICATE_EMAIL_MESSAGE)
                logger.warning("register_username_taken", attempt=attempt, username=unique_username)
                continue

            logger.info("user_registered", user_id=created.id, username=created.username)
            return created

        raise ConflictError("Could not reserve a unique username. Please try again.")

    async def generate_unique_username(self, base: str, max_attempts: Optional[int] = None) -> str:
        """
        Return ``base`` if free, else ``base`` plus a random 6-digit suffix.

        Raises:
            InvalidOperationError: every candidate within ``max_attempts`` was taken
        """
        if max_attempts is None:
            max_attempts = self.username_max_attempts

        for attempt in range(max_attempts):
            if attempt == 0:
                candidate = base
            else:
                suffix = secrets.randbelow(10 ** USERNAME_SUFFIX_DIGITS)
                candidate = f"{base}{suffix:0{USERNAME_SUFFIX_DIGITS}d}"

            if not await self.store.exists_username(candidate):
                return candidate

        logger.warning("username_generation_exhausted", base=base, attempts=max_attempts)
        raise InvalidOperationError(
            f"Unable to generate a unique username for '{base}' after {max_attempts} attempts."
        )

    async def _resolve_catalog(
        self,
        curriculum_id: Optional[int],
        exam_board_id: Optional[int],
        level_ids: Optional[Sequence[int]],
    ) -> Tuple[Optional[Curriculum], Optional[ExamBoard], List[Level]]:
        """Load the optional selections and check each nests under its parent."""
        curriculum = None
        if curriculum_id is not None:
            curriculum = await self.store.find_curriculum(curriculum_id)
            if curriculum is None:
                raise NotFoundError(f"Curriculum with ID {curriculum_id} does not exist.")

        exam_board = None
        if exam_board_id is not None:
            if curriculum is None:
                raise InvalidOperationError("An exam board can only be selected together with a curriculum.")
            exam_board = await self.store.find_exam_board(exam_board_id)
            if exam_board is None:
                raise NotFoundError(f"Exam board with ID {exam_board_id} does not exist.")
            if exam_board.curriculum_id != curriculum.id:
                raise InvalidOperationError(
                    f"Exam board with ID {exam_board_id} does not belong to curriculum with ID {curriculum.id}."
                )

        levels: List[Level] = []
        if level_ids:
            if exam_board is None:
                raise InvalidOperationError("Levels can only be selected together with an exam board.")
            requested = list(dict.fromkeys(level_ids))
            levels = await self.store.find_levels(requested)
            found = {level.id for level in levels}
            for level_id in requested:
                if level_id not in found:
                    raise NotFoundError(f"Level with ID {level_id} does not exist.")
            for level in levels:
                if level.exam_board_id != exam_board.id:
                    raise InvalidOperationError(
                        f"Level with ID {level.id} does not belong to exam board with ID {exam_board.id}."
                    )

        return curriculum, exam_board, levels

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str) -> Tuple[str, str]:
        """
        Check credentials and return ``(access_token, refresh_token)``.

        Both failure cases carry the same message so callers cannot tell
        an unknown email from a wrong password.
        """
        user = await self.store.find_user_by_email(email)
        if user is None:
            logger.info("login_unknown_email", email=mask_email(email))
            raise NotFoundError(INVALID_CREDENTIALS_MESSAGE)

        if not self.hasher.verify(password, user.password_hash):
            logger.info("login_bad_password", user_id=user.id)
            raise UnauthorizedError(INVALID_CREDENTIALS_MESSAGE)

        access_token = self.tokens.issue(user, self.access_token_minutes, TokenType.ACCESS)
        refresh_token = self.tokens.issue(user, self.refresh_token_minutes, TokenType.REFRESH)
        logger.info("login_succeeded", user_id=user.id)
        return access_token, refresh_token

    def validate_token(self, token: str, expected_type: Optional[TokenType] = None) -> TokenIdentity:
        return self.tokens.validate(token, expected_type)

    async def refresh_access_token(self, refresh_token: str) -> str:
        """Mint a new access token from a refresh token. Refresh tokens are not revoked or rotated."""
        identity = self.tokens.validate(refresh_token, TokenType.REFRESH)
        user = await self.store.find_user_by_id(identity.user_id)
        if user is None:
            raise NotFoundError(f"User with ID {identity.user_id} does not exist.")
        return self.tokens.issue(user, self.access_token_minutes, TokenType.ACCESS)

    # ------------------------------------------------------------------
    # Password reset
    # ------------------------------------------------------------------

    async def request_password_reset(self, email: str) -> None:
        """Email a reset code. Unknown addresses are a silent no-op."""
        user = await self.store.find_user_by_email(email)
        if user is None:
            logger.info("password_reset_unknown_email", email=mask_email(email))
            return

        code = await self.otp.issue(user.id, user.email)
        await self._deliver(
            user,
            PASSWORD_RESET_SUBJECT,
            self.templates.build_password_reset(user.username, code),
        )

    async def verify_otp_and_issue_reset_token(self, email: str, code: str) -> str:
        """Consume a reset code and return a short-lived ``password_reset`` token."""
        await self.otp.verify(email, code)

        user = await self.store.find_user_by_email(email)
        if user is None:
            raise NotFoundError(f"User with email {email} does not exist.")

        logger.info("password_reset_token_issued", user_id=user.id)
        return self.tokens.issue(user, self.reset_token_minutes, TokenType.PASSWORD_RESET)

    async def reset_password(self, reset_token: str, new_password: str) -> None:
        identity = self.tokens.validate(reset_token, TokenType.PASSWORD_RESET)

        user = await self.store.find_user_by_id(identity.user_id)
        if user is None:
            raise NotFoundError(f"User with ID {identity.user_id} does not exist.")

        await self.store.update_user_password(user.id, self.hasher.hash(new_password))
        logger.info("password_reset_completed", user_id=user.id)

    # ------------------------------------------------------------------
    # Email verification
    # ------------------------------------------------------------------

    async def request_email_verification(self, email: str) -> None:
        """Email a verification code. Unknown addresses are a silent no-op."""
        user = await self.store.find_user_by_email(email)
        if user is None:
            logger.info("email_verification_unknown_email", email=mask_email(email))
            return

        if user.is_verified:
            raise ConflictError(ALREADY_VERIFIED_MESSAGE)

        code = await self.otp.issue(user.id, user.email)
        await self._deliver(
            user,
            EMAIL_VERIFICATION_SUBJECT,
            self.templates.build_email_verification(user.username, code),
        )

    async def verify_email(self, email: str, code: str) -> None:
        await self.otp.verify(email, code)

        user = await self.store.find_user_by_email(email)
        if user is None:
            raise NotFoundError(f"User with email {email} does not exist.")

        await self.store.mark_user_verified(user.id)
        logger.info("email_verified", user_id=user.id)

    async def _deliver(self, user: User, subject: str, html_body: str) -> None:
        sent = await self.email_sender.send(
            EmailMessage(
                recipient_name=user.username,
                recipient_email=user.email,
                subject=subject,
                html_body=html_body,
            )
        )
        if not sent:
            logger.warning("otp_email_not_delivered", user_id=user.id, subject=subject)
