# PURPOSE: user records for signup/signin; passwords are hashed by the model.

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import errors
from .db_models import UserDB, now_utc

logger = logging.getLogger(__name__)


def create_user(
    db: Session, *, username: str, email: str, password: str, rounds: int
) -> UserDB:
    """Persist a new user; Conflict if the username or email is taken."""
    existing = (
        db.query(UserDB)
        .filter(or_(UserDB.username == username, UserDB.email == email))
        .first()
    )
    if existing is not None:
        if existing.username == username:
            raise errors.Conflict("Username is already taken")
        raise errors.Conflict("Email is already registered")

    user = UserDB(username=username, email=email, created_at=now_utc())
    user.set_password(password, rounds=rounds)
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race against a concurrent signup with the same username/email
        db.rollback()
        raise errors.Conflict("Username or email already registered") from exc
    db.refresh(user)
    logger.info("user created user_id=%s", user.id)
    return user


def find_user_by_email(db: Session, email: str) -> Optional[UserDB]:
    return db.query(UserDB).filter(UserDB.email == email).one_or_none()
