import logging
from typing import Optional

from clerk_sync.db import models, schemas
from sqlalchemy import exc
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def _find_user(db: Session, external_id: str) -> Optional[models.User]:
    return db.query(models.User).filter_by(external_id=external_id).first()


def _insert(db: Session, user: models.User) -> Optional[models.User]:
    """Insert ``user``; on a unique-key race return the row that won instead."""
    db.add(user)
    try:
        db.flush()
    except exc.IntegrityError:
        db.rollback()
        logger.info(f"Concurrent insert for user {user.external_id}")
        return _find_user(db, user.external_id)
    return None


def get_user_by_external_id(db: Session, external_id: str) -> Optional[models.User]:
    user = _find_user(db, external_id)
    if user is None or user.is_deleted:
        return None
    return user


def upsert_user_by_external_id(
    db: Session, external_id: str, fields: schemas.UserFields
) -> Optional[models.User]:
    """
    Create or overwrite the user keyed by ``external_id``.

    Returns None without writing when the user has already been deleted.
    """
    values = fields.model_dump()
    user = _find_user(db, external_id)
    if user is None:
        user = models.User(external_id=external_id, **values)
        existing = _insert(db, user)
        if existing is None:
            return user
        user = existing

    if user.is_deleted:
        logger.warning(f"Ignoring upsert for deleted user {external_id}")
        return None
    for key, value in values.items():
        setattr(user, key, value)
    db.flush()
    return user


def delete_user_by_external_id(db: Session, external_id: str) -> bool:
    """
    Tombstone the user. Returns False if there was nothing live to delete.

    A delete for an unknown id still leaves a tombstone, so a create that
    arrives after its delete is not applied.
    """
    user = _find_user(db, external_id)
    if user is None:
        user = models.User(external_id=external_id, deleted_at=models.utc_now())
        existing = _insert(db, user)
        if existing is None:
            return False
        user = existing

    if user.is_deleted:
        return False
    user.deleted_at = models.utc_now()
    db.flush()
    return True


def list_users(db: Session, limit: int = 100):
    return (
        db.query(models.User)
        .filter(models.User.deleted_at.is_(None))
        .order_by(models.User.updated_at.desc())
        .limit(limit)
        .all()
    )
