import sqlalchemy as sa
from sqlmodel import Field, SQLModel
from app.models.base import IDModel, TimestampModel


class Favorite(IDModel, TimestampModel, SQLModel, table=True):
    __tablename__ = 'favorites'
    __table_args__ = (sa.UniqueConstraint('user_id', 'product_id'),)

    user_id: str = Field(index=True)
    product_id: str = Field(index=True)
