"""Database models."""

# Import all models in dependency order to ensure proper relationship initialization

# Catalog (no foreign keys to users)
from education_api.models.catalog import Curriculum, ExamBoard, Level

# Users and their one-time codes
from education_api.models.user import User, user_levels
from education_api.models.one_time_code import OneTimeCode

# Export all models
__all__ = [
    "Curriculum",
    "ExamBoard",
    "Level",
    "User",
    "user_levels",
    "OneTimeCode",
]
