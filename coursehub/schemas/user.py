import re
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class CreateUserRequest(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)
    role: Literal["student", "instructor"] = "student"

    @field_validator("password")
    def validate_password(cls, v):
        if not re.search("[A-Z]", v):
            raise ValueError("Password must contain at least one uppercase character")
        if not re.search("[a-z]", v):
            raise ValueError("Password must contain at least one lowercase character")
        if not re.search("[0-9]", v):
            raise ValueError("Password must contain at least one digit")
        return v

    @field_validator("username")
    def strip_username(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Username must not be blank")
        return v


class UserLogin(BaseModel):
    email: EmailStr
    password: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"email": "user@example.com", "password": "yourpassword"}
        }
    )


class UserResponse(BaseModel):
    id: int
    username: str
    email: EmailStr
    role: str
    is_active: bool = True
    location: Optional[str] = None
    age: Optional[int] = None
    bio: Optional[str] = None
    profile_picture: Optional[str] = None
    email_notifications: bool = True

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserResponse


class ProfileUpdate(BaseModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    location: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=1, le=120)
    bio: Optional[str] = None
    email_notifications: Optional[bool] = None


class UserSummary(BaseModel):
    id: int
    username: str
    profile_picture: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class UserContact(UserSummary):
    email: EmailStr
