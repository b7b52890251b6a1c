from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from vivaplan.models.user import UserRole


class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)

    @field_validator("username")
    @classmethod
    def normalize_username(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Username cannot be empty")
        return trimmed

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class GoogleCredential(BaseModel):
    credential: str = Field(min_length=1, max_length=4096)


class UserOut(BaseModel):
    id: str
    username: str
    email: EmailStr
    role: UserRole
    user_code: str | None = None
    profile_picture: str | None = None
    is_active: bool
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut
