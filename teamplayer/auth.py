from typing import Optional

import structlog
from passlib.hash import pbkdf2_sha256
from sqlalchemy.orm import Session

from . import crud, models, schemas
from .database import storage_operation
from .exceptions import DuplicateEntityError, NotFoundError, ValidationError

logger = structlog.get_logger()


def hash_pin(pin: str) -> str:
    return pbkdf2_sha256.hash(pin)


def verify_pin(plain_pin, pin_hash) -> bool:
    if not plain_pin or not pin_hash:
        return False
    try:
        return pbkdf2_sha256.verify(plain_pin, pin_hash)
    except ValueError:
        # Not a hash this scheme recognises; treat as a mismatch.
        return False


@storage_operation
def create_user(
    db: Session,
    username: str,
    pin: str,
    profile_name: Optional[str] = None,
    recovery_answer: Optional[str] = None,
):
    data = crud.parse_payload(
        schemas.UserCreate,
        {"username": username, "pin": pin, "profile_name": profile_name, "recovery_answer": recovery_answer},
    )
    if crud.get_user_by_username(db, data.username):
        raise DuplicateEntityError("user", "username", data.username)
    db_user = models.User(
        username=data.username,
        pin_hash=hash_pin(data.pin),
        profile_name=data.profile_name,
        recovery_answer=data.recovery_answer,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info("user_created", user_id=db_user.id, username=db_user.username)
    return db_user


@storage_operation
def login_user(db: Session, username: str, pin: str):
    """Return the user with ``last_login`` refreshed, or ``None``.

    Unknown usernames, deactivated accounts and wrong PINs all produce the
    same ``None`` so callers cannot tell them apart.
    """
    user = crud.get_user_by_username(db, username)
    if not user or not user.is_active or not verify_pin(pin, user.pin_hash):
        logger.info("login_rejected", username=username)
        return None
    user.last_login = models.utcnow()
    db.commit()
    db.refresh(user)
    logger.info("login_succeeded", user_id=user.id)
    return user


@storage_operation
def reset_pin(db: Session, username: str, recovery_answer: str, new_pin: str):
    user = crud.get_user_by_username(db, username)
    if not user or user.recovery_answer is None or user.recovery_answer != recovery_answer:
        logger.info("pin_reset_rejected", username=username)
        return None
    if not new_pin:
        raise ValidationError("new PIN cannot be empty")
    user.pin_hash = hash_pin(new_pin)
    user.updated_at = models.utcnow()
    db.commit()
    db.refresh(user)
    logger.info("pin_reset", user_id=user.id)
    return user


@storage_operation
def delete_user(db: Session, user_id: int):
    """Deactivate the account. The row is kept."""
    user = db.get(models.User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    user.is_active = False
    user.updated_at = models.utcnow()
    db.commit()
    db.refresh(user)
    logger.info("user_deactivated", user_id=user_id)
    return user
