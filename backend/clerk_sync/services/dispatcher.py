import enum
import logging

from clerk_sync.schemas.events import EventKind, WebhookEvent
from clerk_sync.services.applier import UserProjectionApplier

logger = logging.getLogger(__name__)


class Outcome(str, enum.Enum):
    SYNCED = "synced"
    DELETED = "deleted"
    IGNORED = "ignored"


def dispatch(event: WebhookEvent, applier: UserProjectionApplier) -> Outcome:
    # created and updated carry the same user shape, so both are a sync.
    if event.kind in (EventKind.USER_CREATED, EventKind.USER_UPDATED):
        logger.info(
            f"Syncing user {event.external_id} ({event.type}), "
            f"username: {event.data.username}"
        )
        applier.upsert(event.external_id, event.data)
        return Outcome.SYNCED

    if event.kind is EventKind.USER_DELETED:
        logger.info(f"Deleting user {event.external_id}")
        applier.delete(event.external_id)
        return Outcome.DELETED

    logger.info(f"Unhandled Clerk webhook event type: {event.type}")
    return Outcome.IGNORED
