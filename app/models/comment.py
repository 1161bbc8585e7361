from typing import Optional
import sqlalchemy as sa
from sqlmodel import Field, SQLModel
from app.models.base import IDModel, TimestampModel


class Comment(IDModel, TimestampModel, SQLModel, table=True):
    __tablename__ = 'comments'

    product_id: str = Field(index=True)
    user_id: str = Field(index=True)
    content: str = Field(sa_column=sa.Column(sa.Text(), nullable=False))
    parent_comment_id: Optional[str] = Field(default=None, index=True)
