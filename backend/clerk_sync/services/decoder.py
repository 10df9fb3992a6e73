import logging
from typing import Union

from pydantic import ValidationError

from clerk_sync.schemas.events import (
    DeletedUserData,
    EventKind,
    UserData,
    WebhookEnvelope,
    WebhookEvent,
)
from clerk_sync.services.errors import DecodeError
from clerk_sync.services.svix_verify import VerifiedPayload

logger = logging.getLogger(__name__)


def _validation_message(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location or 'payload'}: {first.get('msg')}"


def decode(payload: Union[VerifiedPayload, bytes]) -> WebhookEvent:
    """Parse a verified body into a WebhookEvent, raising DecodeError."""
    raw = payload.body if isinstance(payload, VerifiedPayload) else payload

    try:
        envelope = WebhookEnvelope.model_validate_json(raw)
    except ValidationError as ve:
        raise DecodeError(f"Malformed event envelope ({_validation_message(ve)})")

    kind = EventKind.from_type(envelope.type)

    if kind is EventKind.USER_DELETED:
        try:
            data = DeletedUserData.model_validate(envelope.data)
        except ValidationError as ve:
            raise DecodeError(f"Malformed user.deleted data ({_validation_message(ve)})")

    elif kind in (EventKind.USER_CREATED, EventKind.USER_UPDATED):
        try:
            data = UserData.model_validate(envelope.data)
        except ValidationError as ve:
            raise DecodeError(f"Malformed {envelope.type} data ({_validation_message(ve)})")
        if not data.id:
            if not data.has_identifying_fields():
                raise DecodeError(f"{envelope.type} payload has no identifying fields")
            logger.warning(f"{envelope.type} payload is missing data.id")

    else:
        data = envelope.data

    return WebhookEvent(
        kind=kind, type=envelope.type, data=data, timestamp=envelope.timestamp
    )
