from typing import Optional
import sqlalchemy as sa
from sqlmodel import Field, SQLModel
from app.models.base import IDModel, TimestampModel


class User(IDModel, TimestampModel, SQLModel, table=True):
    __tablename__ = 'users'

    name: str
    username: Optional[str] = Field(default=None, index=True, unique=True)
    email: str = Field(index=True, unique=True)
    hashed_password: str
    is_active: bool = True
    # one device per user; each registration replaces the previous token
    fcm_token: Optional[str] = Field(default=None, sa_column=sa.Column(sa.String(512), nullable=True))
