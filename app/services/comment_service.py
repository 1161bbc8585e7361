from typing import Optional
from sqlmodel import Session, select
from app.models.comment import Comment
from app.models.user import User
from app.schemas.comment import CommentOut, CommentThreadOut


def add_comment(
    session: Session,
    user_id: str,
    product_id: str,
    content: str,
    parent_comment_id: Optional[str] = None,
) -> Comment:
    record = Comment(
        user_id=user_id,
        product_id=product_id,
        content=content,
        parent_comment_id=parent_comment_id,
    )
    session.add(record)
    session.commit()
    session.refresh(record)
    return record


def get_comment(session: Session, comment_id: str) -> Optional[Comment]:
    return session.exec(select(Comment).where(Comment.id == comment_id)).first()


def get_product_comment(session: Session, product_id: str, comment_id: str) -> Optional[Comment]:
    return session.exec(
        select(Comment).where((Comment.id == comment_id) & (Comment.product_id == product_id))
    ).first()


def list_comment_threads(session: Session, product_id: str) -> list[tuple[Comment, list[Comment]]]:
    """Top-level comments newest first, each with every reply beneath it oldest first.

    Replies to replies are flattened into the thread of their top-level comment.
    """
    comments = session.exec(
        select(Comment).where(Comment.product_id == product_id).order_by(Comment.created_at.desc())
    ).all()
    parents = {comment.id: comment.parent_comment_id for comment in comments}

    def _root(comment_id: str) -> str:
        seen = set()
        while parents.get(comment_id) and comment_id not in seen:
            seen.add(comment_id)
            comment_id = parents[comment_id]
        return comment_id

    replies: dict[str, list[Comment]] = {}
    for comment in reversed(comments):
        if comment.parent_comment_id:
            replies.setdefault(_root(comment.id), []).append(comment)
    return [
        (comment, replies.get(comment.id, []))
        for comment in comments
        if comment.parent_comment_id is None
    ]


def update_comment(session: Session, record: Comment, content: str) -> Comment:
    record.content = content
    session.add(record)
    session.commit()
    session.refresh(record)
    return record


def delete_comment(session: Session, record: Comment) -> None:
    pending = [record.id]
    while pending:
        children = session.exec(select(Comment).where(Comment.parent_comment_id.in_(pending))).all()
        pending = [child.id for child in children]
        for child in children:
            session.delete(child)
    session.delete(record)
    session.commit()


def _authors(session: Session, comments: list[Comment]) -> dict[str, User]:
    user_ids = {comment.user_id for comment in comments}
    if not user_ids:
        return {}
    return {user.id: user for user in session.exec(select(User).where(User.id.in_(list(user_ids)))).all()}


def _to_out(comment: Comment, author: Optional[User]) -> CommentOut:
    return CommentOut(
        id=comment.id,
        product_id=comment.product_id,
        user_id=comment.user_id,
        user_name=author.name if author else 'Unknown',
        user_username=author.username if author else None,
        content=comment.content,
        parent_comment_id=comment.parent_comment_id,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
    )


def to_comment_out(session: Session, comment: Comment) -> CommentOut:
    return _to_out(comment, _authors(session, [comment]).get(comment.user_id))


def to_thread_out(session: Session, threads: list[tuple[Comment, list[Comment]]]) -> list[CommentThreadOut]:
    flat: list[Comment] = []
    for comment, replies in threads:
        flat.append(comment)
        flat.extend(replies)
    authors = _authors(session, flat)
    return [
        CommentThreadOut(
            **_to_out(comment, authors.get(comment.user_id)).model_dump(),
            replies=[_to_out(reply, authors.get(reply.user_id)) for reply in replies],
        )
        for comment, replies in threads
    ]
