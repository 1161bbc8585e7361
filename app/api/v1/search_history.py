from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlmodel import Session
from app.db.session import get_session
from app.models.search_history import SearchHistory
from app.models.user import User
from app.schemas.search_history import SearchHistoryCreate, SearchHistoryOut
from app.services.auth_service import get_current_user
from app.services.search_history_service import (
    clear_searches,
    delete_search,
    get_search,
    list_recent_searches,
    record_search,
)

router = APIRouter(prefix='/search-history', tags=['search-history'])


def _to_out(record: SearchHistory) -> SearchHistoryOut:
    return SearchHistoryOut(
        id=record.id,
        query=record.query,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


@router.get('', response_model=list[SearchHistoryOut])
def list_search_history(
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> list[SearchHistoryOut]:
    return [_to_out(record) for record in list_recent_searches(session, user.id)]


@router.post('', response_model=SearchHistoryOut, status_code=status.HTTP_201_CREATED)
def add_search_history(
    payload: SearchHistoryCreate,
    response: Response,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> SearchHistoryOut:
    record, created = record_search(session, user.id, payload.query)
    if not created:
        response.status_code = status.HTTP_200_OK
    return _to_out(record)


@router.delete('/{search_id}')
def delete_search_history(
    search_id: str,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> dict:
    record = get_search(session, user.id, search_id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Search history not found')
    delete_search(session, record)
    return {'status': 'ok'}


@router.delete('')
def clear_search_history(
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> dict:
    return {'status': 'ok', 'deleted': clear_searches(session, user.id)}
