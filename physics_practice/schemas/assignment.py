from datetime import date, datetime
from typing import List, Optional

from pydantic import Field

from physics_practice.schemas.base import APIModel


class AssignmentCreate(APIModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    problem_ids: List[int] = Field(min_length=1)
    due_date: date


class AssignmentUpdate(APIModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    problem_ids: Optional[List[int]] = Field(default=None, min_length=1)
    due_date: Optional[date] = None


class AssignmentRead(APIModel):
    id: int
    title: str
    description: str
    problem_ids: List[int]
    due_date: date
    created_at: datetime


class AssignmentProblemView(APIModel):
    """One problem of an assignment as the current user should see it."""

    problem_id: int
    title: str
    text: str
    unit: str
    tolerance_percent: float
    max_attempts: int
    attempts: int = 0
    attempts_remaining: int
    is_correct: Optional[bool] = None
    status: str
