from typing import Optional
from sqlalchemy import func, or_
from sqlmodel import Session, select
from app.core.config import settings
from app.models.comment import Comment
from app.models.favorite import Favorite
from app.models.product import Product, ProductImage
from app.schemas.product import ProductCreate, ProductImageOut, ProductOut, ProductUpdate


def storage_url(path: Optional[str]) -> Optional[str]:
    if not path:
        return None
    if path.startswith(('http://', 'https://')):
        return path
    return f"{settings.STORAGE_BASE_URL.rstrip('/')}/{path.lstrip('/')}"


def _replace_images(session: Session, product: Product, paths: list[str]) -> None:
    for image in list_images(session, product.id):
        session.delete(image)
    for index, path in enumerate(paths):
        session.add(ProductImage(product_id=product.id, path=path, sort_order=index))
    product.image_url = paths[0] if paths else None


def create_product(session: Session, owner_id: str, payload: ProductCreate) -> Product:
    record = Product(
        owner_id=owner_id,
        name=payload.name,
        category=payload.category,
        condition=payload.condition,
        description=payload.description,
        location=payload.location,
        price=payload.price,
        whatsapp_number=payload.whatsapp_number,
    )
    session.add(record)
    _replace_images(session, record, payload.image_urls)
    session.commit()
    session.refresh(record)
    return record


def get_product(session: Session, product_id: str) -> Optional[Product]:
    return session.exec(select(Product).where(Product.id == product_id)).first()


def list_products(
    session: Session,
    q: Optional[str] = None,
    category: Optional[str] = None,
    owner_id: Optional[str] = None,
    limit: Optional[int] = 50,
    offset: int = 0,
) -> list[Product]:
    statement = select(Product).order_by(Product.created_at.desc())
    if q:
        pattern = f"%{q.strip()}%"
        statement = statement.where(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
    if category:
        statement = statement.where(Product.category == category)
    if owner_id:
        statement = statement.where(Product.owner_id == owner_id)
    if offset:
        statement = statement.offset(offset)
    if limit is not None:
        statement = statement.limit(limit)
    return list(session.exec(statement).all())


def count_products(session: Session, owner_id: str) -> int:
    result = session.exec(select(func.count(Product.id)).where(Product.owner_id == owner_id)).one()
    return int(result or 0)


def update_product(session: Session, record: Product, payload: ProductUpdate) -> Product:
    data = payload.model_dump(exclude_unset=True)
    image_urls = data.pop('image_urls', None)
    for key, value in data.items():
        if value is not None:
            setattr(record, key, value)
    if image_urls is not None:
        _replace_images(session, record, image_urls)
    session.add(record)
    session.commit()
    session.refresh(record)
    return record


def delete_product(session: Session, record: Product) -> None:
    for image in list_images(session, record.id):
        session.delete(image)
    for favorite in session.exec(select(Favorite).where(Favorite.product_id == record.id)).all():
        session.delete(favorite)
    for comment in session.exec(select(Comment).where(Comment.product_id == record.id)).all():
        session.delete(comment)
    session.delete(record)
    session.commit()


def list_images(session: Session, product_id: str) -> list[ProductImage]:
    statement = (
        select(ProductImage)
        .where(ProductImage.product_id == product_id)
        .order_by(ProductImage.sort_order)
    )
    return list(session.exec(statement).all())


def delete_image(session: Session, product: Product, image_id: str) -> bool:
    image = session.exec(
        select(ProductImage).where((ProductImage.id == image_id) & (ProductImage.product_id == product.id))
    ).first()
    if not image:
        return False
    session.delete(image)
    session.flush()
    remaining = list_images(session, product.id)
    product.image_url = remaining[0].path if remaining else None
    session.add(product)
    session.commit()
    return True


def first_image_url(session: Session, product: Product) -> Optional[str]:
    images = list_images(session, product.id)
    if images:
        return storage_url(images[0].path)
    return storage_url(product.image_url)


def to_product_out(
    session: Session,
    record: Product,
    favorite_ids: Optional[set[str]] = None,
) -> ProductOut:
    favorites_count = session.exec(
        select(func.count(Favorite.id)).where(Favorite.product_id == record.id)
    ).one()
    return ProductOut(
        id=record.id,
        owner_id=record.owner_id,
        name=record.name,
        category=record.category,
        condition=record.condition,
        description=record.description,
        location=record.location,
        price=record.price,
        whatsapp_number=record.whatsapp_number,
        image_url=storage_url(record.image_url),
        images=[
            ProductImageOut(id=image.id, url=storage_url(image.path), sort_order=image.sort_order)
            for image in list_images(session, record.id)
        ],
        is_favorite=record.id in (favorite_ids or set()),
        favorites_count=int(favorites_count or 0),
        created_at=record.created_at,
        updated_at=record.updated_at,
    )
