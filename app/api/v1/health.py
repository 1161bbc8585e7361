from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlmodel import Session
from app.db.session import get_session
from app.services.push_service import PushDeliveryAdapter, get_push_adapter

router = APIRouter()


@router.get('/health')
def health(
    session: Session = Depends(get_session),
    push: PushDeliveryAdapter = Depends(get_push_adapter),
) -> dict:
    session.exec(text('SELECT 1'))
    return {
        'status': 'ok',
        'push': {'v1': push.primary_configured, 'legacy': push.legacy_configured},
    }
