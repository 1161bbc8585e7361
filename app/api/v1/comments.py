from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from app.db.session import get_session
from app.models.comment import Comment
from app.models.user import User
from app.schemas.comment import CommentOut, CommentUpdate
from app.services.auth_service import get_current_user
from app.services.comment_service import delete_comment, get_comment, to_comment_out, update_comment

router = APIRouter(prefix='/comments', tags=['comments'])


def _get_own_comment(session: Session, comment_id: str, user: User) -> Comment:
    record = get_comment(session, comment_id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Comment not found')
    if record.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Not allowed')
    return record


@router.put('/{comment_id}', response_model=CommentOut)
def update_comment_endpoint(
    comment_id: str,
    payload: CommentUpdate,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> CommentOut:
    record = _get_own_comment(session, comment_id, user)
    record = update_comment(session, record, payload.content)
    return to_comment_out(session, record)


@router.delete('/{comment_id}')
def delete_comment_endpoint(
    comment_id: str,
    session: Session = Depends(get_session),
    user: User = Depends(get_current_user),
) -> dict:
    record = _get_own_comment(session, comment_id, user)
    delete_comment(session, record)
    return {'status': 'ok'}
