from typing import Optional
from sqlmodel import Session, select

from app.models.user import User
from app.schemas.user import UserOut, UserUpdate
from app.services.auth_service import hash_password, verify_password


def to_user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        name=user.name,
        username=user.username,
        email=user.email,
        is_active=user.is_active,
        has_fcm_token=bool(user.fcm_token),
    )


def get_user(session: Session, user_id: str) -> Optional[User]:
    return session.exec(select(User).where(User.id == user_id)).first()


def update_user(session: Session, user: User, payload: UserUpdate) -> User:
    data = payload.model_dump(exclude_unset=True)
    email = data.get('email')
    if email is not None and email != user.email:
        existing = session.exec(select(User).where(User.email == email)).first()
        if existing and existing.id != user.id:
            raise ValueError('Email already registered')
        user.email = email
    username = data.get('username')
    if username is not None and username != user.username:
        existing = session.exec(select(User).where(User.username == username)).first()
        if existing and existing.id != user.id:
            raise ValueError('Username already taken')
        user.username = username
    if data.get('name'):
        user.name = data['name']

    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def change_password(session: Session, user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.hashed_password):
        raise ValueError('Current password is incorrect')
    user.hashed_password = hash_password(new_password)
    session.add(user)
    session.commit()


def save_push_token(session: Session, user: User, token: str) -> User:
    user.fcm_token = token.strip()
    session.add(user)
    session.commit()
    session.refresh(user)
    return user
