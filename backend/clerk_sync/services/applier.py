import logging
from typing import Optional

from clerk_sync.db import crud, models, schemas
from clerk_sync.schemas.events import UserData
from clerk_sync.services.errors import InvalidUserError, StoreError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

# Fields mapped onto columns; everything else stays in the opaque profile.
_COLUMN_FIELDS = {"id", "username", "first_name", "last_name", "image_url"}


def user_fields(user: UserData) -> schemas.UserFields:
    profile = {
        key: value
        for key, value in user.model_dump(mode="json").items()
        if key not in _COLUMN_FIELDS
    }
    return schemas.UserFields(
        username=user.username,
        primary_email=user.primary_email,
        first_name=user.first_name,
        last_name=user.last_name,
        image_url=user.image_url,
        profile=profile,
    )


class UserProjectionApplier:
    """Applies user lifecycle events to the store, one transaction per call."""

    def __init__(self, db: Session):
        self.db = db

    def upsert(self, external_id: Optional[str], user: UserData) -> Optional[models.User]:
        if not external_id:
            raise InvalidUserError("Cannot sync a user without an external id")
        fields = user_fields(user)
        try:
            record = crud.upsert_user_by_external_id(self.db, external_id, fields)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Store error syncing user {external_id}: {e}")
            raise StoreError(str(e)) from e
        return record

    def delete(self, external_id: str) -> bool:
        if not external_id:
            raise InvalidUserError("Cannot delete a user without an external id")
        try:
            deleted = crud.delete_user_by_external_id(self.db, external_id)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Store error deleting user {external_id}: {e}")
            raise StoreError(str(e)) from e
        return deleted
