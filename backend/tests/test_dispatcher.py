import logging
from unittest.mock import MagicMock

from clerk_sync.schemas.events import (
    DeletedUserData,
    EventKind,
    UserData,
    WebhookEvent,
)
from clerk_sync.services.applier import UserProjectionApplier
from clerk_sync.services.dispatcher import Outcome, dispatch


def _applier():
    return MagicMock(spec=UserProjectionApplier)


def test_created_and_updated_are_synced():
    for kind in (EventKind.USER_CREATED, EventKind.USER_UPDATED):
        applier = _applier()
        data = UserData(id="u_123", username="ada")
        event = WebhookEvent(kind=kind, type=kind.value, data=data)

        assert dispatch(event, applier) is Outcome.SYNCED
        applier.upsert.assert_called_once_with("u_123", data)
        applier.delete.assert_not_called()


def test_deleted_is_deleted():
    applier = _applier()
    event = WebhookEvent(
        kind=EventKind.USER_DELETED,
        type="user.deleted",
        data=DeletedUserData(id="u_123", deleted=True),
    )

    assert dispatch(event, applier) is Outcome.DELETED
    applier.delete.assert_called_once_with("u_123")
    applier.upsert.assert_not_called()


def test_unknown_kind_is_ignored(caplog):
    caplog.set_level(logging.INFO)
    applier = _applier()
    event = WebhookEvent(
        kind=EventKind.UNKNOWN, type="session.created", data={"id": "sess_1"}
    )

    assert dispatch(event, applier) is Outcome.IGNORED
    assert applier.method_calls == []
    assert "session.created" in caplog.text


def test_sync_logs_username(caplog):
    caplog.set_level(logging.INFO)
    event = WebhookEvent(
        kind=EventKind.USER_CREATED,
        type="user.created",
        data=UserData(
            id="u_123",
            username="ada",
            email_addresses=[{"email_address": "a@b.com"}],
        ),
    )

    dispatch(event, _applier())
    assert "username: ada" in caplog.text
    assert "a@b.com" not in caplog.text
