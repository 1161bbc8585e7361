"""Turn domain events into in-app notifications and best-effort pushes.

The dispatcher is the single place where notification failures are
downgraded: a store error or a failed push is logged and reported in the
returned :class:`DispatchResult`, never raised to the route that triggered
the event.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from fastapi import Depends
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.db.session import get_session
from app.models.enums import NotificationType
from app.models.notification import Notification
from app.services.notification_service import (
    NotificationPersistError,
    create_notification,
    remove_wishlist_notification,
)
from app.services.push_service import PushDeliveryAdapter, PushResult, get_push_adapter

FALLBACK_ACTOR_NAME = 'Someone'

TEMPLATES: dict[NotificationType, tuple[str, str]] = {
    NotificationType.COMMENT: ('Your post got a comment', '{actor_name} commented on your post'),
    NotificationType.REPLY: ('Your comment got a reply', '{actor_name} replied to your comment'),
    NotificationType.WISHLIST: (
        'Your product was wishlisted',
        '{actor_name} added "{product_name}" to wishlist',
    ),
    NotificationType.PROFILE_VISIT: ('Profile visited', '{actor_name} visited your profile'),
}


class DispatchValidationError(ValueError):
    pass


class DispatchStatus(str, Enum):
    SKIPPED = 'skipped'
    PERSISTED = 'persisted'
    FAILED = 'failed'


@dataclass(frozen=True)
class NotificationEvent:
    kind: NotificationType
    actor_id: str
    recipient_id: str
    actor_name: Optional[str] = None
    product_id: Optional[str] = None
    product_name: Optional[str] = None
    comment_id: Optional[str] = None
    extra_data: dict[str, str] = field(default_factory=dict)


@dataclass
class DispatchResult:
    status: DispatchStatus
    notification: Optional[Notification] = None
    push: Optional[PushResult] = None

    @property
    def persisted(self) -> bool:
        return self.status == DispatchStatus.PERSISTED


def render(event: NotificationEvent) -> tuple[str, str]:
    template = TEMPLATES.get(event.kind)
    if template is None:
        raise DispatchValidationError(f"no template for notification type {event.kind!r}")
    title, body = template
    return title, body.format(
        actor_name=event.actor_name or FALLBACK_ACTOR_NAME,
        product_name=event.product_name or '',
    )


def push_data(event: NotificationEvent) -> dict[str, str]:
    data = {'type': event.kind.value}
    if event.product_id:
        data['product_id'] = str(event.product_id)
    if event.comment_id:
        data['comment_id'] = str(event.comment_id)
    data.update(event.extra_data)
    return data


class NotificationDispatcher:
    def __init__(self, session: Session, push: PushDeliveryAdapter) -> None:
        self._session = session
        self._push = push

    def dispatch(self, event: NotificationEvent) -> DispatchResult:
        if not event.recipient_id:
            raise DispatchValidationError('notification recipient is required')
        if event.actor_id == event.recipient_id:
            logger.info(
                "Skipping {} notification, user {} acted on their own content",
                event.kind.value,
                event.actor_id,
            )
            return DispatchResult(status=DispatchStatus.SKIPPED)

        title, body = render(event)
        try:
            record = create_notification(
                self._session,
                user_id=event.recipient_id,
                kind=event.kind,
                title=title,
                body=body,
                actor_id=event.actor_id,
                product_id=event.product_id,
                comment_id=event.comment_id,
            )
        except NotificationPersistError as exc:
            logger.error(
                "Could not store {} notification for user {} (actor {}): {}",
                event.kind.value,
                event.recipient_id,
                event.actor_id,
                exc,
            )
            return DispatchResult(status=DispatchStatus.FAILED)
        logger.info(
            "Notification {} created for user {} ({})",
            record.id,
            event.recipient_id,
            event.kind.value,
        )

        result = self._push.send(event.recipient_id, title, body, push_data(event))
        if not result:
            logger.warning(
                "Push for notification {} not delivered to user {}: {}",
                record.id,
                event.recipient_id,
                result.error,
            )
        return DispatchResult(status=DispatchStatus.PERSISTED, notification=record, push=result)

    def notify_comment(
        self,
        *,
        actor_id: str,
        actor_name: Optional[str],
        product_owner_id: str,
        product_id: str,
        comment_id: str,
    ) -> DispatchResult:
        return self.dispatch(
            NotificationEvent(
                kind=NotificationType.COMMENT,
                actor_id=actor_id,
                recipient_id=product_owner_id,
                actor_name=actor_name,
                product_id=product_id,
                comment_id=comment_id,
            )
        )

    def notify_reply(
        self,
        *,
        actor_id: str,
        actor_name: Optional[str],
        parent_author_id: str,
        product_id: str,
        comment_id: str,
    ) -> DispatchResult:
        return self.dispatch(
            NotificationEvent(
                kind=NotificationType.REPLY,
                actor_id=actor_id,
                recipient_id=parent_author_id,
                actor_name=actor_name,
                product_id=product_id,
                comment_id=comment_id,
            )
        )

    def notify_wishlist(
        self,
        *,
        actor_id: str,
        actor_name: Optional[str],
        product_owner_id: str,
        product_id: str,
        product_name: str,
    ) -> DispatchResult:
        return self.dispatch(
            NotificationEvent(
                kind=NotificationType.WISHLIST,
                actor_id=actor_id,
                recipient_id=product_owner_id,
                actor_name=actor_name,
                product_id=product_id,
                product_name=product_name,
            )
        )

    def retract_wishlist(self, *, actor_id: str, product_owner_id: str, product_id: str) -> Optional[str]:
        """Undo the wishlist notification for an un-wishlist; returns the removed id."""
        if actor_id == product_owner_id:
            return None
        try:
            removed = remove_wishlist_notification(self._session, product_owner_id, product_id, actor_id)
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.error(
                "Could not remove wishlist notification for product {} (actor {}): {}",
                product_id,
                actor_id,
                exc,
            )
            return None
        if removed:
            logger.info("Wishlist notification {} removed after un-wishlist by {}", removed, actor_id)
        else:
            logger.info("No wishlist notification to remove for product {} and user {}", product_id, product_owner_id)
        return removed

    def notify_profile_visit(self, *, visitor_id: str, visitor_name: Optional[str], profile_owner_id: str) -> DispatchResult:
        return self.dispatch(
            NotificationEvent(
                kind=NotificationType.PROFILE_VISIT,
                actor_id=visitor_id,
                recipient_id=profile_owner_id,
                actor_name=visitor_name,
                extra_data={
                    'visitor_id': visitor_id,
                    'visitor_name': visitor_name or FALLBACK_ACTOR_NAME,
                },
            )
        )


def get_notification_dispatcher(
    session: Session = Depends(get_session),
    push: PushDeliveryAdapter = Depends(get_push_adapter),
) -> NotificationDispatcher:
    return NotificationDispatcher(session, push)
