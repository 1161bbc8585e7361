from typing import Optional
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select
from app.models.comment import Comment
from app.models.enums import NotificationType
from app.models.notification import Notification
from app.models.product import Product
from app.schemas.notification import NotificationOut
from app.services.product_service import first_image_url


class NotificationPersistError(Exception):
    """The notification row could not be written; the session has been rolled back."""


def create_notification(
    session: Session,
    *,
    user_id: str,
    kind: NotificationType,
    title: str,
    body: str,
    actor_id: Optional[str] = None,
    product_id: Optional[str] = None,
    comment_id: Optional[str] = None,
) -> Notification:
    record = Notification(
        user_id=user_id,
        actor_id=actor_id,
        type=kind,
        title=title,
        body=body,
        product_id=product_id,
        comment_id=comment_id,
    )
    try:
        session.add(record)
        session.commit()
        session.refresh(record)
    except SQLAlchemyError as exc:
        session.rollback()
        raise NotificationPersistError(str(exc)) from exc
    return record


def list_notifications(
    session: Session,
    user_id: str,
    unread_only: bool = False,
    limit: Optional[int] = None,
    offset: int = 0,
) -> list[Notification]:
    statement = (
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
    )
    if unread_only:
        statement = statement.where(Notification.is_read.is_(False))
    if offset:
        statement = statement.offset(offset)
    if limit is not None:
        statement = statement.limit(limit)
    return list(session.exec(statement).all())


def get_notification(session: Session, user_id: str, notification_id: str) -> Optional[Notification]:
    return session.exec(
        select(Notification).where(
            (Notification.id == notification_id) & (Notification.user_id == user_id)
        )
    ).first()


def annotate_notifications(session: Session, records: list[Notification]) -> list[NotificationOut]:
    """Attach product and comment display fields resolved at read time.

    References to products or comments deleted since the notification was
    created resolve to ``None`` rather than failing the listing.
    """
    product_ids = {record.product_id for record in records if record.product_id}
    comment_ids = {record.comment_id for record in records if record.comment_id}

    products: dict[str, Product] = {}
    if product_ids:
        products = {
            product.id: product
            for product in session.exec(select(Product).where(Product.id.in_(list(product_ids)))).all()
        }
    comments: dict[str, Comment] = {}
    if comment_ids:
        comments = {
            comment.id: comment
            for comment in session.exec(select(Comment).where(Comment.id.in_(list(comment_ids)))).all()
        }

    items: list[NotificationOut] = []
    for record in records:
        product = products.get(record.product_id) if record.product_id else None
        comment = comments.get(record.comment_id) if record.comment_id else None
        items.append(
            NotificationOut(
                id=record.id,
                type=record.type,
                title=record.title,
                body=record.body,
                is_read=record.is_read,
                actor_id=record.actor_id,
                product_id=record.product_id,
                product_name=product.name if product else None,
                product_image=first_image_url(session, product) if product else None,
                comment_id=record.comment_id,
                comment_text=comment.content if comment else None,
                created_at=record.created_at,
            )
        )
    return items


def mark_read(session: Session, user_id: str, notification_id: str) -> int:
    record = get_notification(session, user_id, notification_id)
    if not record or record.is_read:
        return 0
    record.is_read = True
    session.add(record)
    session.commit()
    return 1


def mark_all_read(session: Session, user_id: str) -> int:
    notifications = session.exec(
        select(Notification).where((Notification.user_id == user_id) & (Notification.is_read.is_(False)))
    ).all()
    for record in notifications:
        record.is_read = True
        session.add(record)
    session.commit()
    return len(notifications)


def unread_count(session: Session, user_id: str) -> int:
    statement = select(func.count(Notification.id)).where(
        (Notification.user_id == user_id) & (Notification.is_read.is_(False))
    )
    result = session.exec(statement).one()
    return int(result or 0)


def delete_notification(session: Session, user_id: str, notification_id: str) -> bool:
    record = get_notification(session, user_id, notification_id)
    if not record:
        return False
    session.delete(record)
    session.commit()
    return True


def remove_wishlist_notification(
    session: Session,
    recipient_id: str,
    product_id: str,
    actor_id: str,
) -> Optional[str]:
    """Delete the wishlist notification an actor caused, returning its id.

    Rows written before ``actor_id`` was recorded have no actor; for those the
    most recent unattributed wishlist row for the product is removed instead.
    """
    base = select(Notification).where(
        (Notification.user_id == recipient_id)
        & (Notification.product_id == product_id)
        & (Notification.type == NotificationType.WISHLIST)
    )
    record = session.exec(
        base.where(Notification.actor_id == actor_id).order_by(Notification.created_at.desc())
    ).first()
    if record is None:
        record = session.exec(
            base.where(Notification.actor_id.is_(None)).order_by(Notification.created_at.desc())
        ).first()
    if record is None:
        return None
    notification_id = record.id
    session.delete(record)
    session.commit()
    return notification_id
