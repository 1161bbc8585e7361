from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
from app.db.session import get_session
from app.models.user import User
from app.schemas.notification import NotificationOut, UnreadCountOut
from app.services.auth_service import get_current_user
from app.services.notification_service import (
    annotate_notifications,
    delete_notification,
    list_notifications,
    mark_all_read,
    mark_read,
    unread_count,
)

router = APIRouter(prefix='/notifications', tags=['notifications'])


@router.get('', response_model=list[NotificationOut])
def list_notifications_endpoint(
    unread_only: bool = False,
    limit: Optional[int] = None,
    offset: int = 0,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> list[NotificationOut]:
    notifications = list_notifications(
        session,
        user.id,
        unread_only=unread_only,
        limit=limit,
        offset=offset,
    )
    return annotate_notifications(session, notifications)


@router.get('/unread-count', response_model=UnreadCountOut)
def unread_count_endpoint(
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> UnreadCountOut:
    return UnreadCountOut(count=unread_count(session, user.id))


@router.put('/read-all')
def mark_all_notifications_read(
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> dict:
    count = mark_all_read(session, user.id)
    return {'status': 'ok', 'updated': count}


@router.put('/{notification_id}/read')
def mark_notification_read(
    notification_id: str,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> dict:
    count = mark_read(session, user.id, notification_id)
    return {'status': 'ok', 'updated': count}


@router.delete('/{notification_id}')
def delete_notification_endpoint(
    notification_id: str,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> dict:
    if not delete_notification(session, user.id, notification_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Notification not found')
    return {'status': 'ok'}
