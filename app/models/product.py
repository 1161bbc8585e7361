from typing import Optional
from decimal import Decimal
import sqlalchemy as sa
from sqlmodel import Field, SQLModel
from app.models.base import IDModel, TimestampModel
from app.models.enums import ProductCondition, enum_column


class Product(IDModel, TimestampModel, SQLModel, table=True):
    __tablename__ = 'products'

    owner_id: str = Field(index=True)
    name: str = Field(index=True)
    category: str = Field(index=True)
    condition: ProductCondition = Field(
        default=ProductCondition.USED,
        sa_column=enum_column(ProductCondition, 'product_condition'),
    )
    description: Optional[str] = Field(default=None, sa_column=sa.Column(sa.Text(), nullable=True))
    location: str
    price: Decimal = Field(sa_column=sa.Column(sa.Numeric(15, 2), nullable=False))
    whatsapp_number: str
    image_url: Optional[str] = None


class ProductImage(IDModel, TimestampModel, SQLModel, table=True):
    __tablename__ = 'product_images'

    product_id: str = Field(index=True)
    path: str
    sort_order: int = 0
