import base64
import binascii
import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from typing import Mapping, Optional

from clerk_sync.services.errors import (
    ConfigurationError,
    MalformedHeaderError,
    MissingHeaderError,
    SignatureInvalidError,
    StaleRequestError,
)

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 300  # seconds either side of now
SECRET_PREFIX = "whsec_"
SIGNATURE_VERSION = "v1"
MAX_TIMESTAMP_DIGITS = 12

ID_HEADER = "svix-id"
TIMESTAMP_HEADER = "svix-timestamp"
SIGNATURE_HEADER = "svix-signature"


@dataclass(frozen=True)
class SvixHeaders:
    message_id: str
    timestamp: str
    signature: str

    @classmethod
    def from_mapping(cls, headers: Mapping[str, str]) -> "SvixHeaders":
        # Starlette's Headers is case-insensitive, a plain dict is not.
        lowered = {k.lower(): v for k, v in headers.items()}
        values = {}
        missing = []
        for name in (ID_HEADER, TIMESTAMP_HEADER, SIGNATURE_HEADER):
            value = lowered.get(name)
            if not value:
                missing.append(name)
            values[name] = value
        if missing:
            raise MissingHeaderError(f"Missing headers: {', '.join(missing)}")
        return cls(
            message_id=values[ID_HEADER],
            timestamp=values[TIMESTAMP_HEADER],
            signature=values[SIGNATURE_HEADER],
        )


@dataclass(frozen=True)
class VerifiedPayload:
    body: bytes
    message_id: str
    timestamp: int


def decode_secret(secret: Optional[str]) -> bytes:
    """Turn a ``whsec_``-prefixed base64 secret into the raw HMAC key."""
    if not secret:
        raise ConfigurationError("Webhook signing secret is not configured")
    if secret.startswith(SECRET_PREFIX):
        secret = secret[len(SECRET_PREFIX) :]
    try:
        key = base64.b64decode(secret, validate=True)
    except (binascii.Error, ValueError):
        raise ConfigurationError("Webhook signing secret is not valid base64")
    if not key:
        raise ConfigurationError("Webhook signing secret is empty")
    return key


def _signature(key: bytes, message_id: str, timestamp: int, body: bytes) -> str:
    to_sign = f"{message_id}.{timestamp}.".encode("utf-8") + body
    digest = hmac.new(key, to_sign, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def sign(secret: str, message_id: str, timestamp: int, body: bytes) -> str:
    """Build a ``svix-signature`` header value for ``body``."""
    key = decode_secret(secret)
    return f"{SIGNATURE_VERSION},{_signature(key, message_id, timestamp, body)}"


def _parse_timestamp(value: str) -> int:
    # Unix seconds only; an unbounded integer cannot be compared with time.time().
    if not (value.isascii() and value.isdigit()) or len(value) > MAX_TIMESTAMP_DIGITS:
        raise MalformedHeaderError("Invalid svix-timestamp header")
    return int(value)


def _candidate_signatures(header: str) -> list[str]:
    candidates = []
    for entry in header.split():
        version, sep, signature = entry.partition(",")
        if not sep or not signature:
            raise MalformedHeaderError("Invalid svix-signature header")
        if version == SIGNATURE_VERSION:
            candidates.append(signature)
    return candidates


class SvixVerifier:
    def __init__(self, secret: Optional[str], tolerance: int = DEFAULT_TOLERANCE):
        self._secret = secret
        self.tolerance = tolerance

    def verify(
        self, raw_body: bytes, headers: SvixHeaders, now: Optional[float] = None
    ) -> VerifiedPayload:
        """
        Return the verified payload or raise a VerificationError subclass.

        The body must be the exact bytes received; re-serialized JSON will
        not match the signature.
        """
        key = decode_secret(self._secret)
        timestamp = _parse_timestamp(headers.timestamp)

        if now is None:
            now = time.time()
        skew = abs(now - timestamp)
        if skew > self.tolerance:
            logger.warning(
                f"Timestamp for {headers.message_id} outside tolerance: "
                f"{skew:.0f}s > {self.tolerance}s"
            )
            raise StaleRequestError("Timestamp outside tolerance")

        candidates = _candidate_signatures(headers.signature)
        expected = _signature(key, headers.message_id, timestamp, raw_body)
        matched = False
        for candidate in candidates:
            if hmac.compare_digest(expected.encode(), candidate.encode("utf-8")):
                matched = True
        if not matched:
            logger.warning(f"Signature mismatch for message {headers.message_id}")
            raise SignatureInvalidError("Invalid signature")

        logger.debug(f"Verified message {headers.message_id}")
        return VerifiedPayload(
            body=raw_body, message_id=headers.message_id, timestamp=timestamp
        )
