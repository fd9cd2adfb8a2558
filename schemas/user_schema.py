# user_schema.py
from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Optional
from datetime import datetime


# ---------------------------
# Auth
# ---------------------------
class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


# ---------------------------
# Read
# ---------------------------
class UserRead(BaseModel):
    id: int
    name: str = Field(..., max_length=100)
    email: EmailStr
    is_active: bool = Field(default=True)
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PayableMemberRead(BaseModel):
    """Entry in the 'who paid?' dropdown of the manual payment form."""
    id: int
    user_id: int
    name: str
    email: Optional[str] = None
    role: str
    is_treasurer: bool


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead
