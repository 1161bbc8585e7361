from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
from app.db.session import get_session
from app.models.product import Product
from app.models.user import User
from app.schemas.comment import CommentCreate, CommentOut, CommentThreadOut
from app.schemas.product import FavoriteToggleOut, ProductCreate, ProductOut, ProductUpdate
from app.services.auth_service import get_current_user, get_optional_user
from app.services.comment_service import (
    add_comment,
    get_product_comment,
    list_comment_threads,
    to_comment_out,
    to_thread_out,
)
from app.services.favorite_service import favorite_product_ids, list_favorite_products, toggle_favorite
from app.services.notification_dispatcher import NotificationDispatcher, get_notification_dispatcher
from app.services.product_service import (
    create_product,
    delete_image,
    delete_product,
    get_product,
    list_products,
    to_product_out,
    update_product,
)

router = APIRouter(prefix='/products', tags=['products'])


def _get_product_or_404(session: Session, product_id: str) -> Product:
    record = get_product(session, product_id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Product not found')
    return record


def _ensure_owner(record: Product, user: User) -> None:
    if record.owner_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Not allowed')


@router.post('', response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product_endpoint(
    payload: ProductCreate,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> ProductOut:
    record = create_product(session, user.id, payload)
    return to_product_out(session, record)


@router.get('', response_model=list[ProductOut])
def list_products_endpoint(
    q: Optional[str] = None,
    category: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    session: Session = Depends(get_session),
    user: Optional[User] = Depends(get_optional_user),
) -> list[ProductOut]:
    products = list_products(session, q=q, category=category, limit=limit, offset=offset)
    favorite_ids = favorite_product_ids(session, user.id) if user else set()
    return [to_product_out(session, product, favorite_ids) for product in products]


@router.get('/mine', response_model=list[ProductOut])
def list_my_products(
    limit: int = 50,
    offset: int = 0,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> list[ProductOut]:
    products = list_products(session, owner_id=user.id, limit=limit, offset=offset)
    favorite_ids = favorite_product_ids(session, user.id)
    return [to_product_out(session, product, favorite_ids) for product in products]


@router.get('/favorites', response_model=list[ProductOut])
def list_my_favorites(
    limit: int = 50,
    offset: int = 0,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> list[ProductOut]:
    products = list_favorite_products(session, user.id, limit=limit, offset=offset)
    favorite_ids = {product.id for product in products}
    return [to_product_out(session, product, favorite_ids) for product in products]


@router.get('/{product_id}', response_model=ProductOut)
def get_product_endpoint(
    product_id: str,
    session: Session = Depends(get_session),
    user: Optional[User] = Depends(get_optional_user),
) -> ProductOut:
    record = _get_product_or_404(session, product_id)
    favorite_ids = favorite_product_ids(session, user.id) if user else set()
    return to_product_out(session, record, favorite_ids)


@router.put('/{product_id}', response_model=ProductOut)
def update_product_endpoint(
    product_id: str,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> ProductOut:
    record = _get_product_or_404(session, product_id)
    _ensure_owner(record, user)
    record = update_product(session, record, payload)
    return to_product_out(session, record, favorite_product_ids(session, user.id))


@router.delete('/{product_id}')
def delete_product_endpoint(
    product_id: str,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> dict:
    record = _get_product_or_404(session, product_id)
    _ensure_owner(record, user)
    delete_product(session, record)
    return {'status': 'ok'}


@router.delete('/{product_id}/images/{image_id}')
def delete_product_image_endpoint(
    product_id: str,
    image_id: str,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> dict:
    record = _get_product_or_404(session, product_id)
    _ensure_owner(record, user)
    if not delete_image(session, record, image_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Image not found')
    return {'status': 'ok'}


@router.post('/{product_id}/favorite', response_model=FavoriteToggleOut)
def toggle_favorite_endpoint(
    product_id: str,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> FavoriteToggleOut:
    record = _get_product_or_404(session, product_id)
    is_favorite = toggle_favorite(session, user.id, record.id)
    if is_favorite:
        dispatcher.notify_wishlist(
            actor_id=user.id,
            actor_name=user.name,
            product_owner_id=record.owner_id,
            product_id=record.id,
            product_name=record.name,
        )
    else:
        dispatcher.retract_wishlist(
            actor_id=user.id,
            product_owner_id=record.owner_id,
            product_id=record.id,
        )
    return FavoriteToggleOut(product_id=record.id, is_favorite=is_favorite)


@router.get('/{product_id}/comments', response_model=list[CommentThreadOut])
def list_product_comments(
    product_id: str,
    session: Session = Depends(get_session),
) -> list[CommentThreadOut]:
    _get_product_or_404(session, product_id)
    return to_thread_out(session, list_comment_threads(session, product_id))


@router.post('/{product_id}/comments', response_model=CommentOut, status_code=status.HTTP_201_CREATED)
def create_product_comment(
    product_id: str,
    payload: CommentCreate,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> CommentOut:
    product = _get_product_or_404(session, product_id)
    parent = None
    if payload.parent_comment_id:
        parent = get_product_comment(session, product.id, payload.parent_comment_id)
        if not parent:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Parent comment not found or does not belong to this product',
            )

    record = add_comment(session, user.id, product.id, payload.content, parent.id if parent else None)
    if parent:
        dispatcher.notify_reply(
            actor_id=user.id,
            actor_name=user.name,
            parent_author_id=parent.user_id,
            product_id=product.id,
            comment_id=record.id,
        )
    else:
        dispatcher.notify_comment(
            actor_id=user.id,
            actor_name=user.name,
            product_owner_id=product.owner_id,
            product_id=product.id,
            comment_id=record.id,
        )
    return to_comment_out(session, record)
