"""Pydantic schemas for module progress."""
from datetime import datetime

from pydantic import BaseModel


class ProgressUpdateSchema(BaseModel):
    completion_percentage: int = 0
    time_spent: int = 0
    score: int = 0


class ProgressCompleteSchema(BaseModel):
    score: int | None = None


class ProgressOutSchema(BaseModel):
    id: int | None = None
    module_id: int
    completion_percentage: int
    time_spent: int
    score: int
    is_completed: bool
    last_accessed: datetime | None = None
    module_title: str | None = None
    content_type: str | None = None
    difficulty_level: str | None = None
    persisted: bool = True


class ProgressWriteOutSchema(BaseModel):
    message: str
    persisted: bool
    progress: ProgressOutSchema | None = None
    tip: str | None = None


class ProgressSummarySchema(BaseModel):
    total_modules_started: int
    completed_modules: int
    average_completion: float
    total_time_spent: int
    total_score: int
    best_score: int
    first_access: datetime | None = None
    last_access: datetime | None = None
    total_available_modules: int
    completion_rate: int
