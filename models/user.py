from typing import Optional

from pydantic import BaseModel


class AuthUser(BaseModel):
    """Identity asserted by a verified bearer token"""
    user_id: str
    email: Optional[str] = None


class User(BaseModel):
    id: str
    name: str
    email: str


class SignupRequest(BaseModel):
    name: str
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class AuthResponse(BaseModel):
    user: User
    token: str
