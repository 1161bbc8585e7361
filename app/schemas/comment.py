from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=1000)
    parent_comment_id: Optional[str] = None


class CommentUpdate(BaseModel):
    content: str = Field(min_length=1, max_length=1000)


class CommentOut(BaseModel):
    id: str
    product_id: str
    user_id: str
    user_name: str
    user_username: Optional[str] = None
    content: str
    parent_comment_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CommentThreadOut(CommentOut):
    replies: list[CommentOut]
