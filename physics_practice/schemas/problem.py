from datetime import datetime
from typing import Dict, Optional

from pydantic import Field

from physics_practice.core.config import DEFAULT_MAX_ATTEMPTS, DEFAULT_TOLERANCE_PERCENT
from physics_practice.schemas.base import APIModel


class VariableRange(APIModel):
    min: float
    max: float


class ProblemCreate(APIModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    variables: Dict[str, VariableRange]
    formula: str = Field(min_length=1)
    unit: str = Field(max_length=50)
    tolerance_percent: float = Field(default=DEFAULT_TOLERANCE_PERCENT, ge=0)
    max_attempts: int = Field(default=DEFAULT_MAX_ATTEMPTS, ge=1)


class ProblemUpdate(APIModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    variables: Optional[Dict[str, VariableRange]] = None
    formula: Optional[str] = Field(default=None, min_length=1)
    unit: Optional[str] = Field(default=None, max_length=50)
    tolerance_percent: Optional[float] = Field(default=None, ge=0)
    max_attempts: Optional[int] = Field(default=None, ge=1)


class ProblemRead(APIModel):
    id: int
    title: str
    description: str
    variables: Dict[str, VariableRange]
    formula: str
    unit: str
    tolerance_percent: float
    max_attempts: int
    created_at: datetime
