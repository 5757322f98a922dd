"""One-time code (OTP) model."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from education_api.db.base import Base


class OneTimeCode(Base):
    """
    A single issuance of an emailed verification or reset code.
    Only the bcrypt hash of the code is stored. Rows are append-only;
    a code is consumed by flipping ``is_used`` exactly once.
    """

    __tablename__ = "one_time_codes"

    email = Column(String(255), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    code_hash = Column(String(255), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    is_used = Column(Boolean, default=False, nullable=False)

    # Relationships
    user = relationship("User", back_populates="one_time_codes")

    # Indexes
    __table_args__ = (
        Index("idx_one_time_codes_active", "email", "is_used", "expires_at"),
    )

    def __repr__(self):
        return f"<OneTimeCode {self.id} user={self.user_id} used={self.is_used}>"
