from datetime import datetime

from pydantic import Field

from physics_practice.schemas.base import APIModel


class StudentCreate(APIModel):
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6, max_length=72)


class PasswordUpdate(APIModel):
    password: str = Field(min_length=6, max_length=72)


class UserRead(APIModel):
    id: int
    username: str
    role: str
    created_at: datetime
