from datetime import datetime
import sqlalchemy as sa
from sqlmodel import Field, SQLModel
from app.models.base import IDModel, TimestampModel


class RefreshToken(IDModel, TimestampModel, SQLModel, table=True):
    __tablename__ = 'refresh_tokens'

    token: str = Field(sa_column=sa.Column(sa.String(512), unique=True, index=True, nullable=False))
    user_id: str = Field(index=True)
    expires_at: datetime
