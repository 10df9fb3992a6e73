import pytest
from clerk_sync.db import crud, models
from clerk_sync.schemas.events import UserData
from clerk_sync.services.applier import UserProjectionApplier, user_fields
from clerk_sync.services.errors import InvalidUserError, StoreError
from sqlalchemy import exc
from sqlalchemy.orm import Session


def _user(**kwargs) -> UserData:
    data = {
        "id": "u_123",
        "username": "ada",
        "email_addresses": [
            {"id": "idn_1", "email_address": "a@b.com"},
            {"id": "idn_2", "email_address": "ada@work.example.com"},
        ],
        "public_metadata": {"plan": "pro"},
    }
    data.update(kwargs)
    return UserData.model_validate(data)


def _snapshot(db: Session):
    db.expire_all()
    return [
        (u.external_id, u.username, u.primary_email, u.profile)
        for u in db.query(models.User).all()
    ]


def test_user_fields_maps_primary_email_and_profile():
    fields = user_fields(_user())
    assert fields.primary_email == "a@b.com"
    assert fields.username == "ada"
    assert fields.profile["public_metadata"] == {"plan": "pro"}
    assert len(fields.profile["email_addresses"]) == 2
    assert "username" not in fields.profile


def test_upsert_is_idempotent(db: Session):
    applier = UserProjectionApplier(db)
    applier.upsert("u_123", _user())
    once = _snapshot(db)
    applier.upsert("u_123", _user())
    assert _snapshot(db) == once
    assert len(once) == 1


def test_upsert_last_applied_wins(db: Session):
    applier = UserProjectionApplier(db)
    applier.upsert("u_123", _user(username="ada_new"))
    applier.upsert("u_123", _user(username="ada_old"))
    assert crud.get_user_by_external_id(db, "u_123").username == "ada_old"


def test_upsert_requires_external_id(db: Session):
    applier = UserProjectionApplier(db)
    with pytest.raises(InvalidUserError):
        applier.upsert(None, _user(id=None))
    assert db.query(models.User).count() == 0


def test_delete_absent_user_succeeds(db: Session):
    assert UserProjectionApplier(db).delete("u_nobody") is False


def test_delete_twice(db: Session):
    applier = UserProjectionApplier(db)
    applier.upsert("u_123", _user())
    assert applier.delete("u_123") is True
    assert applier.delete("u_123") is False
    assert crud.get_user_by_external_id(db, "u_123") is None


def test_upsert_after_delete_returns_none(db: Session):
    applier = UserProjectionApplier(db)
    applier.upsert("u_123", _user())
    applier.delete("u_123")
    assert applier.upsert("u_123", _user()) is None


def test_store_error_is_wrapped(db: Session, monkeypatch):
    def boom(*args, **kwargs):
        raise exc.OperationalError("UPDATE users", {}, Exception("database is locked"))

    monkeypatch.setattr(crud, "upsert_user_by_external_id", boom)
    with pytest.raises(StoreError, match="database is locked"):
        UserProjectionApplier(db).upsert("u_123", _user())


def test_delete_store_error_is_wrapped(db: Session, monkeypatch):
    def boom(*args, **kwargs):
        raise exc.OperationalError("UPDATE users", {}, Exception("disk I/O error"))

    monkeypatch.setattr(crud, "delete_user_by_external_id", boom)
    with pytest.raises(StoreError):
        UserProjectionApplier(db).delete("u_123")
