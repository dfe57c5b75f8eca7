"""Request and response schemas for account endpoints."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from futureminds.models.enums import AppRole


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    refresh_token: str


class TokenData(BaseModel):
    email: Optional[str] = None
    user_id: Optional[str] = None
    roles: list[str] = []


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    display_name: str = Field(..., min_length=1, max_length=100)
    role: AppRole = AppRole.student
    age_bracket: Optional[str] = Field(None, max_length=20)

    @field_validator('password')
    @classmethod
    def password_complexity(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError('Password must be at least 8 characters long')
        if not any(char.isdigit() for char in v):
            raise ValueError('Password must contain at least one number')
        if not any(char.isupper() for char in v):
            raise ValueError('Password must contain at least one uppercase letter')
        if not any(char.islower() for char in v):
            raise ValueError('Password must contain at least one lowercase letter')
        return v

    @field_validator('role')
    @classmethod
    def no_self_service_admin(cls, v: AppRole) -> AppRole:
        if v == AppRole.admin:
            raise ValueError('Admin accounts cannot be self-registered')
        return v


class UserResponse(BaseModel):
    id: str
    email: str
    display_name: str
    is_active: bool
    roles: list[str]

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_user(cls, user) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            is_active=bool(user.is_active),
            roles=user.role_names,
        )


class RefreshRequest(BaseModel):
    refresh_token: str
