from pydantic import BaseModel


class LoginRequest(BaseModel):
    username: str
    password: str


class Identity(BaseModel):
    username: str
    role: str
