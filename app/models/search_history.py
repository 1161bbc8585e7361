from sqlmodel import Field, SQLModel
from app.models.base import IDModel, TimestampModel


class SearchHistory(IDModel, TimestampModel, SQLModel, table=True):
    __tablename__ = 'search_history'

    user_id: str = Field(index=True)
    query: str = Field(max_length=255)
