from typing import Optional
from sqlmodel import Session, select
from app.models.base import utc_now
from app.models.search_history import SearchHistory

SEARCH_HISTORY_LIMIT = 10


def record_search(session: Session, user_id: str, query: str) -> tuple[SearchHistory, bool]:
    """Store a query, or bump an identical earlier one; returns (record, created)."""
    query = query.strip()
    record = session.exec(
        select(SearchHistory).where((SearchHistory.user_id == user_id) & (SearchHistory.query == query))
    ).first()
    created = record is None
    if record is None:
        record = SearchHistory(user_id=user_id, query=query)
    else:
        record.updated_at = utc_now()
    session.add(record)
    session.commit()
    session.refresh(record)
    return record, created


def list_recent_searches(session: Session, user_id: str, limit: int = SEARCH_HISTORY_LIMIT) -> list[SearchHistory]:
    statement = (
        select(SearchHistory)
        .where(SearchHistory.user_id == user_id)
        .order_by(SearchHistory.updated_at.desc())
        .limit(limit)
    )
    return list(session.exec(statement).all())


def get_search(session: Session, user_id: str, search_id: str) -> Optional[SearchHistory]:
    return session.exec(
        select(SearchHistory).where((SearchHistory.id == search_id) & (SearchHistory.user_id == user_id))
    ).first()


def delete_search(session: Session, record: SearchHistory) -> None:
    session.delete(record)
    session.commit()


def clear_searches(session: Session, user_id: str) -> int:
    records = session.exec(select(SearchHistory).where(SearchHistory.user_id == user_id)).all()
    for record in records:
        session.delete(record)
    session.commit()
    return len(records)
