"""
Pydantic schemas for identity endpoints.
"""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class Credentials(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)


class AuthResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token_type: str = "bearer"


class SessionResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
