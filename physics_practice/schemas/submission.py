from datetime import datetime
from typing import Any, Dict, Optional

from physics_practice.schemas.base import APIModel


class SubmitAnswerRequest(APIModel):
    assignment_id: int
    problem_id: int
    # number or numeric string; parsed by the grading service
    answer: Any = None


class SubmissionRead(APIModel):
    id: int
    student_username: str
    assignment_id: int
    problem_id: int
    instance: Dict[str, float]
    user_answer: Optional[float] = None
    correct_answer: Optional[float] = None
    is_correct: Optional[bool] = None
    percent_diff: Optional[float] = None
    attempts: int
    created_at: datetime
    updated_at: datetime

    # computed fields attached by the router
    max_attempts: Optional[int] = None
    attempts_remaining: Optional[int] = None
    problem_text: Optional[str] = None
