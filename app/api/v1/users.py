from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
from app.db.session import get_session
from app.models.user import User
from app.schemas.user import FcmTokenUpdate, PasswordChange, UserOut, UserProfileOut, UserUpdate
from app.services.auth_service import get_current_user, get_optional_user
from app.services.notification_dispatcher import NotificationDispatcher, get_notification_dispatcher
from app.services.product_service import count_products
from app.services.user_service import change_password, get_user, save_push_token, to_user_out, update_user

router = APIRouter(prefix='/users', tags=['users'])


@router.get('/me', response_model=UserOut)
def me(user: User = Depends(get_current_user)) -> UserOut:
    return to_user_out(user)


@router.patch('/me', response_model=UserOut)
def update_me(
    payload: UserUpdate,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> UserOut:
    try:
        record = update_user(session, user, payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return to_user_out(record)


@router.post('/me/change-password')
def change_my_password(
    payload: PasswordChange,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> dict:
    try:
        change_password(session, user, payload.current_password, payload.new_password)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {'status': 'ok'}


@router.post('/me/fcm-token', response_model=UserOut)
def register_push_token(
    payload: FcmTokenUpdate,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> UserOut:
    return to_user_out(save_push_token(session, user, payload.fcm_token))


@router.get('/{user_id}', response_model=UserProfileOut)
def get_profile(
    user_id: str,
    session: Session = Depends(get_session),
    visitor: Optional[User] = Depends(get_optional_user),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> UserProfileOut:
    owner = get_user(session, user_id)
    if not owner:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')
    if visitor is not None:
        dispatcher.notify_profile_visit(
            visitor_id=visitor.id,
            visitor_name=visitor.name,
            profile_owner_id=owner.id,
        )
    return UserProfileOut(
        id=owner.id,
        name=owner.name,
        username=owner.username,
        products_count=count_products(session, owner.id),
        created_at=owner.created_at,
    )
