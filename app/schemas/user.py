from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field


class UserOut(BaseModel):
    id: str
    name: str
    username: Optional[str] = None
    email: EmailStr
    is_active: bool
    has_fcm_token: bool


class UserProfileOut(BaseModel):
    id: str
    name: str
    username: Optional[str] = None
    products_count: int
    created_at: datetime


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8)


class FcmTokenUpdate(BaseModel):
    fcm_token: str = Field(min_length=1, max_length=512)
