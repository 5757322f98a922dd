"""
Catalog models
Curriculum -> exam board -> level hierarchy that students scope themselves to
"""

from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from education_api.db.base import Base


class Curriculum(Base):
    __tablename__ = "curriculums"

    name = Column(String(150), unique=True, nullable=False)

    exam_boards = relationship("ExamBoard", back_populates="curriculum")

    def __repr__(self):
        return f"<Curriculum {self.name}>"


class ExamBoard(Base):
    __tablename__ = "exam_boards"

    name = Column(String(150), unique=True, nullable=False)
    curriculum_id = Column(Integer, ForeignKey("curriculums.id", ondelete="CASCADE"), nullable=False, index=True)

    curriculum = relationship("Curriculum", back_populates="exam_boards")
    levels = relationship("Level", back_populates="exam_board")

    def __repr__(self):
        return f"<ExamBoard {self.name}>"


class Level(Base):
    __tablename__ = "levels"

    name = Column(String(150), nullable=False)
    exam_board_id = Column(Integer, ForeignKey("exam_boards.id", ondelete="CASCADE"), nullable=False, index=True)

    exam_board = relationship("ExamBoard", back_populates="levels")

    def __repr__(self):
        return f"<Level {self.name}>"
