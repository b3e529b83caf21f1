"""
services.owner_service - Owner accounts (the scope every record belongs to).

All session management is the caller's responsibility.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from db.models import User


class OwnerService:

    @staticmethod
    def create(session: Session, username: str, password: str, **extra) -> User:
        user = User(
            username=username.strip(),
            password_hash=generate_password_hash(password),
            **extra,
        )
        session.add(user)
        session.flush()
        return user

    @staticmethod
    def authenticate(session: Session, username: str, password: str) -> User | None:
        user = session.scalars(
            select(User).where(User.username == (username or "").strip())
        ).first()
        if user is None or not check_password_hash(user.password_hash, password or ""):
            return None
        return user

    @staticmethod
    def get(session: Session, user_id) -> User | None:
        if user_id is None:
            return None
        return session.get(User, user_id)

    @staticmethod
    def seed_if_empty(session: Session, username: str, password: str) -> User | None:
        """Create the first owner on an empty database; None if owners exist."""
        if session.scalars(select(User).limit(1)).first() is not None:
            return None
        user = OwnerService.create(session, username, password)
        session.commit()
        return user
