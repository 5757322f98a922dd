"""User model."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship

from education_api.core.security import Role
from education_api.db.base import Base

# Levels a student has chosen to browse
user_levels = Table(
    "user_levels",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("level_id", Integer, ForeignKey("levels.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    """User model for authentication."""

    __tablename__ = "users"

    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(150), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=Role.STUDENT.value)
    is_verified = Column(Boolean, default=False, nullable=False)

    # Optional catalog scoping
    curriculum_id = Column(Integer, ForeignKey("curriculums.id", ondelete="SET NULL"), nullable=True)
    exam_board_id = Column(Integer, ForeignKey("exam_boards.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    curriculum = relationship("Curriculum", lazy="selectin")
    exam_board = relationship("ExamBoard", lazy="selectin")
    levels = relationship("Level", secondary=user_levels, lazy="selectin")
    one_time_codes = relationship("OneTimeCode", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"
