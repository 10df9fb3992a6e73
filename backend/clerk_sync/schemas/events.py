import enum
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class EventKind(str, enum.Enum):
    USER_CREATED = "user.created"
    USER_UPDATED = "user.updated"
    USER_DELETED = "user.deleted"
    UNKNOWN = "unknown"

    @classmethod
    def from_type(cls, event_type: str) -> "EventKind":
        for kind in cls:
            if kind is not cls.UNKNOWN and kind.value == event_type:
                return kind
        return cls.UNKNOWN


class WebhookEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str = Field(..., description="Event type, e.g. user.created")
    data: dict[str, Any]
    object: Optional[str] = None
    timestamp: Optional[int] = None


class EmailAddress(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    email_address: str


class UserData(BaseModel):
    """User payload for created/updated events. Unlisted fields pass through."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    image_url: Optional[str] = None
    email_addresses: list[EmailAddress] = Field(default_factory=list)

    @property
    def primary_email(self) -> Optional[str]:
        if not self.email_addresses:
            return None
        return self.email_addresses[0].email_address

    def has_identifying_fields(self) -> bool:
        return bool(self.username or self.email_addresses)


class DeletedUserData(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1)
    deleted: Optional[bool] = None
    object: Optional[str] = None


EventData = Union[UserData, DeletedUserData, dict[str, Any]]


@dataclass(frozen=True)
class WebhookEvent:
    kind: EventKind
    type: str
    data: EventData
    timestamp: Optional[int] = None

    @property
    def external_id(self) -> Optional[str]:
        if isinstance(self.data, BaseModel):
            return self.data.id
        return self.data.get("id")

    def to_envelope(self) -> dict[str, Any]:
        if isinstance(self.data, BaseModel):
            data = self.data.model_dump(mode="json", exclude_unset=True)
        else:
            data = dict(self.data)
        envelope = {"object": "event", "type": self.type, "data": data}
        if self.timestamp is not None:
            envelope["timestamp"] = self.timestamp
        return envelope
