from datetime import datetime
from pydantic import BaseModel, Field


class SearchHistoryCreate(BaseModel):
    query: str = Field(min_length=1, max_length=255)


class SearchHistoryOut(BaseModel):
    id: str
    query: str
    created_at: datetime
    updated_at: datetime
