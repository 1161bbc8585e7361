from typing import Optional
import sqlalchemy as sa
from sqlmodel import Field, SQLModel
from app.models.base import CreatedAtModel, IDModel
from app.models.enums import NotificationType, enum_column


class Notification(IDModel, CreatedAtModel, SQLModel, table=True):
    __tablename__ = 'notifications'
    __table_args__ = (
        sa.Index('ix_notifications_user_read', 'user_id', 'is_read'),
        sa.Index('ix_notifications_user_created', 'user_id', 'created_at'),
    )

    user_id: str = Field(index=True)
    actor_id: Optional[str] = Field(default=None, index=True)
    type: NotificationType = Field(sa_column=enum_column(NotificationType, 'notification_type'))
    title: str
    body: str = Field(sa_column=sa.Column(sa.Text(), nullable=False))
    product_id: Optional[str] = Field(default=None, index=True)
    comment_id: Optional[str] = None
    is_read: bool = False
