"""User schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class CurriculumSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class ExamBoardSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    curriculum_id: int


class LevelSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    exam_board_id: int


class UserResponse(BaseModel):
    """Public user profile."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    role: str
    is_verified: bool
    created_at: datetime
    curriculum: Optional[CurriculumSummary] = None
    exam_board: Optional[ExamBoardSummary] = None
    levels: List[LevelSummary] = []
