from typing import Optional
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field
from app.models.enums import ProductCondition


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    category: str = Field(min_length=1, max_length=100)
    condition: ProductCondition
    description: Optional[str] = None
    location: str = Field(min_length=1, max_length=255)
    price: Decimal = Field(ge=0)
    whatsapp_number: str = Field(min_length=6, max_length=20)
    image_urls: list[str] = Field(default_factory=list, max_length=10)


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    condition: Optional[ProductCondition] = None
    description: Optional[str] = None
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    price: Optional[Decimal] = Field(default=None, ge=0)
    whatsapp_number: Optional[str] = Field(default=None, min_length=6, max_length=20)
    image_urls: Optional[list[str]] = Field(default=None, max_length=10)


class ProductImageOut(BaseModel):
    id: str
    url: str
    sort_order: int


class ProductOut(BaseModel):
    id: str
    owner_id: str
    name: str
    category: str
    condition: ProductCondition
    description: Optional[str] = None
    location: str
    price: Decimal
    whatsapp_number: str
    image_url: Optional[str] = None
    images: list[ProductImageOut]
    is_favorite: bool = False
    favorites_count: int = 0
    created_at: datetime
    updated_at: datetime


class FavoriteToggleOut(BaseModel):
    product_id: str
    is_favorite: bool
