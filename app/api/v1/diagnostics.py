from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
from app.db.session import get_session
from app.models.user import User
from app.schemas.notification import PushTokenStatusOut, TestPushOut, TestPushRequest
from app.services.auth_service import get_current_user
from app.services.push_service import PushDeliveryAdapter, get_push_adapter
from app.services.user_service import get_user

router = APIRouter(prefix='/test', tags=['diagnostics'])


def _send_test_push(push: PushDeliveryAdapter, target: User, payload: TestPushRequest) -> TestPushOut:
    if not target.fcm_token:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='User has no FCM token registered')
    result = push.send(target.id, payload.title, payload.message, {'type': 'test'})
    return TestPushOut(
        user_id=target.id,
        delivered=result.delivered,
        protocol=result.protocol,
        error=result.error,
    )


@router.post('/notification', response_model=TestPushOut)
def send_test_push_to_self(
    payload: TestPushRequest,
    user: User = Depends(get_current_user),
    push: PushDeliveryAdapter = Depends(get_push_adapter),
) -> TestPushOut:
    return _send_test_push(push, user, payload)


@router.get('/fcm-token', response_model=PushTokenStatusOut)
def push_token_status(
    user: User = Depends(get_current_user),
    push: PushDeliveryAdapter = Depends(get_push_adapter),
) -> PushTokenStatusOut:
    return PushTokenStatusOut(
        user_id=user.id,
        has_fcm_token=bool(user.fcm_token),
        fcm_token_preview=f"{user.fcm_token[:30]}..." if user.fcm_token else None,
        fcm_token_length=len(user.fcm_token or ''),
        primary_configured=push.primary_configured,
        legacy_configured=push.legacy_configured,
    )


@router.post('/notification/{user_id}', response_model=TestPushOut)
def send_test_push_to_user(
    user_id: str,
    payload: TestPushRequest,
    session: Session = Depends(get_session),
    _: User = Depends(get_current_user),
    push: PushDeliveryAdapter = Depends(get_push_adapter),
) -> TestPushOut:
    target = get_user(session, user_id)
    if not target:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')
    return _send_test_push(push, target, payload)
