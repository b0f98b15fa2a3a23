from pydantic import BaseModel

from physics_practice.schemas.auth import Identity


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: Identity
