"""
Credential Store
Persistence port for users and one-time codes, plus its SQLAlchemy adapter
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Sequence

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from education_api.core.exceptions import ConflictError
from education_api.core.security import utc_now
from education_api.models.catalog import Curriculum, ExamBoard, Level
from education_api.models.one_time_code import OneTimeCode
from education_api.models.user import User

logger = structlog.get_logger(__name__)


class CredentialStore(ABC):
    """Operations the auth core performs against persistent storage."""

    @abstractmethod
    async def find_user_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    async def find_user_by_id(self, user_id: int) -> Optional[User]:
        pass

    @abstractmethod
    async def exists_username(self, username: str) -> bool:
        pass

    @abstractmethod
    async def create_user(self, user: User) -> User:
        """
        Persist a new user.

        Raises:
            ConflictError: email or username is already taken
        """
        pass

    @abstractmethod
    async def update_user_password(self, user_id: int, password_hash: str) -> bool:
        pass

    @abstractmethod
    async def mark_user_verified(self, user_id: int) -> bool:
        pass

    @abstractmethod
    async def create_otp_record(self, record: OneTimeCode) -> OneTimeCode:
        pass

    @abstractmethod
    async def find_active_otp(self, email: str, now: datetime) -> Optional[OneTimeCode]:
        """
        Latest code for ``email`` that is neither expired at ``now`` nor used.
        Older unused codes are superseded, not deleted.
        """
        pass

    @abstractmethod
    async def mark_otp_used(self, record_id: int) -> bool:
        """
        Consume a code. Must be a single conditional write: returns False
        when the code was already used, so only one caller can win.
        """
        pass

    @abstractmethod
    async def find_curriculum(self, curriculum_id: int) -> Optional[Curriculum]:
        pass

    @abstractmethod
    async def find_exam_board(self, exam_board_id: int) -> Optional[ExamBoard]:
        pass

    @abstractmethod
    async def find_levels(self, level_ids: Sequence[int]) -> List[Level]:
        pass


class SqlAlchemyCredentialStore(CredentialStore):
    """Credential store backed by an async SQLAlchemy session. Each write commits."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def find_user_by_id(self, user_id: int) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def exists_username(self, username: str) -> bool:
        result = await self.db.execute(select(User.id).where(User.username == username).limit(1))
        return result.scalar_one_or_none() is not None

    async def create_user(self, user: User) -> User:
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.info("user_insert_conflict", error=str(e.orig))
            raise ConflictError("A user with this email or username already exists.")
        return user

    async def update_user_password(self, user_id: int, password_hash: str) -> bool:
        result = await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(password_hash=password_hash, updated_at=utc_now())
        )
        await self.db.commit()
        return result.rowcount == 1

    async def mark_user_verified(self, user_id: int) -> bool:
        result = await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(is_verified=True, updated_at=utc_now())
        )
        await self.db.commit()
        return result.rowcount == 1

    async def create_otp_record(self, record: OneTimeCode) -> OneTimeCode:
        self.db.add(record)
        await self.db.commit()
        return record

    async def find_active_otp(self, email: str, now: datetime) -> Optional[OneTimeCode]:
        result = await self.db.execute(
            select(OneTimeCode)
            .where(
                OneTimeCode.email == email,
                OneTimeCode.is_used == False,  # noqa: E712
                OneTimeCode.expires_at > now,
            )
            .order_by(OneTimeCode.created_at.desc(), OneTimeCode.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def mark_otp_used(self, record_id: int) -> bool:
        result = await self.db.execute(
            update(OneTimeCode)
            .where(
                OneTimeCode.id == record_id,
                OneTimeCode.is_used == False,  # noqa: E712
            )
            .values(is_used=True, updated_at=utc_now())
        )
        await self.db.commit()
        return result.rowcount == 1

    async def find_curriculum(self, curriculum_id: int) -> Optional[Curriculum]:
        result = await self.db.execute(select(Curriculum).where(Curriculum.id == curriculum_id))
        return result.scalar_one_or_none()

    async def find_exam_board(self, exam_board_id: int) -> Optional[ExamBoard]:
        result = await self.db.execute(select(ExamBoard).where(ExamBoard.id == exam_board_id))
        return result.scalar_one_or_none()

    async def find_levels(self, level_ids: Sequence[int]) -> List[Level]:
        if not level_ids:
            return []
        result = await self.db.execute(select(Level).where(Level.id.in_(list(level_ids))))
        return list(result.scalars().all())
