from typing import Optional

from pydantic import BaseModel


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class SignupRequest(BaseModel):
    email: str  # plain str: .local addresses are valid here
    password: str
    full_name: Optional[str] = None
