from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
from app.models.favorite import Favorite
from app.models.product import Product


def get_favorite(session: Session, user_id: str, product_id: str) -> Optional[Favorite]:
    return session.exec(
        select(Favorite).where((Favorite.user_id == user_id) & (Favorite.product_id == product_id))
    ).first()


def add_favorite(session: Session, user_id: str, product_id: str) -> Favorite:
    existing = get_favorite(session, user_id, product_id)
    if existing:
        return existing
    record = Favorite(user_id=user_id, product_id=product_id)
    session.add(record)
    try:
        session.commit()
    except IntegrityError:
        # a concurrent toggle inserted the same pair first
        session.rollback()
        return get_favorite(session, user_id, product_id)
    session.refresh(record)
    return record


def remove_favorite(session: Session, user_id: str, product_id: str) -> bool:
    record = get_favorite(session, user_id, product_id)
    if not record:
        return False
    session.delete(record)
    session.commit()
    return True


def toggle_favorite(session: Session, user_id: str, product_id: str) -> bool:
    """Flip the wishlist state for the pair and return the new state."""
    if remove_favorite(session, user_id, product_id):
        return False
    add_favorite(session, user_id, product_id)
    return True


def favorite_product_ids(session: Session, user_id: str) -> set[str]:
    statement = select(Favorite.product_id).where(Favorite.user_id == user_id)
    return set(session.exec(statement).all())


def list_favorite_products(
    session: Session,
    user_id: str,
    limit: Optional[int] = 50,
    offset: int = 0,
) -> list[Product]:
    statement = (
        select(Product)
        .join(Favorite, Favorite.product_id == Product.id)
        .where(Favorite.user_id == user_id)
        .order_by(Favorite.created_at.desc())
    )
    if offset:
        statement = statement.offset(offset)
    if limit is not None:
        statement = statement.limit(limit)
    return list(session.exec(statement).all())
