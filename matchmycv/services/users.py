# matchmycv/services/users.py
from __future__ import annotations
import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from ..models import User

logger = logging.getLogger(__name__)

DEFAULT_CREDITS = 5


class UserExistsError(Exception):
    pass


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def find_user_by_email(session: Session, email: str) -> User | None:
    return session.execute(
        select(User).where(func.lower(User.email) == normalize_email(email))
    ).scalar_one_or_none()


def create_user(session: Session, name: str, email: str, password: str,
                role: str = "USER", plan: str = "FREE") -> User:
    if find_user_by_email(session, email):
        raise UserExistsError("User already exists")
    user = User(
        name=name.strip(),
        email=normalize_email(email),
        password_hash=generate_password_hash(password),
        role=role,
        plan=plan,
        credits=DEFAULT_CREDITS,
    )
    session.add(user)
    session.commit()
    logger.info("Registered user %s", user.id)
    return user


def password_matches(user: User, password: str) -> bool:
    return bool(user.password_hash) and check_password_hash(user.password_hash, password)


def authenticate(session: Session, email: str, password: str) -> User | None:
    user = find_user_by_email(session, email)
    if not user or not password_matches(user, password):
        return None
    return user


def set_password(session: Session, user: User, password: str) -> None:
    user.password_hash = generate_password_hash(password)
    session.commit()
