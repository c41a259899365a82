"""Request/response schemas for authentication."""
import string
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic import ConfigDict

from ..models import UserRole


def check_password_complexity(v: str) -> str:
    if len(v) < 8:
        raise ValueError('Password must be at least 8 characters long')
    if not any(char.isdigit() for char in v):
        raise ValueError('Password must contain at least one number')
    if not any(char.isupper() for char in v):
        raise ValueError('Password must contain at least one uppercase letter')
    if not any(char.islower() for char in v):
        raise ValueError('Password must contain at least one lowercase letter')
    if not any(char in string.punctuation for char in v):
        raise ValueError('Password must contain at least one special character')
    return v


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    refresh_token: str


class TokenData(BaseModel):
    email: Optional[str] = None
    user_id: Optional[str] = None
    role: Optional[str] = None


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    display_name: Optional[str] = None
    role: UserRole

    @field_validator('password')
    @classmethod
    def password_complexity(cls, v: str) -> str:
        return check_password_complexity(v)


class UserResponse(BaseModel):
    id: str
    email: str
    display_name: Optional[str]
    photo_url: Optional[str] = None
    role: UserRole
    is_active: bool
    is_verified: bool

    model_config = ConfigDict(from_attributes=True)


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str

    @field_validator('new_password')
    @classmethod
    def password_complexity(cls, v: str) -> str:
        return check_password_complexity(v)


class ChangePassword(BaseModel):
    current_password: str
    new_password: str

    @field_validator('new_password')
    @classmethod
    def password_complexity(cls, v: str) -> str:
        return check_password_complexity(v)
