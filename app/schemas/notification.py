from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field
from app.models.enums import NotificationType


class NotificationOut(BaseModel):
    id: str
    type: NotificationType
    title: str
    body: str
    is_read: bool
    actor_id: Optional[str] = None
    product_id: Optional[str] = None
    product_name: Optional[str] = None
    product_image: Optional[str] = None
    comment_id: Optional[str] = None
    comment_text: Optional[str] = None
    created_at: datetime


class UnreadCountOut(BaseModel):
    count: int


class TestPushRequest(BaseModel):
    title: str = Field(default='Test Notification', max_length=255)
    message: str = Field(default='This is a test push notification from the backend', max_length=1000)


class TestPushOut(BaseModel):
    user_id: str
    delivered: bool
    protocol: Optional[str] = None
    error: Optional[str] = None


class PushTokenStatusOut(BaseModel):
    user_id: str
    has_fcm_token: bool
    fcm_token_preview: Optional[str] = None
    fcm_token_length: int
    primary_configured: bool
    legacy_configured: bool
