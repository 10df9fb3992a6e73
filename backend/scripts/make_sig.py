#!/usr/bin/env python3

import json
import secrets
import sys
import time

from clerk_sync.services.svix_verify import sign


def make_svix_headers(secret: str, payload: str) -> dict:
    """Generate Svix webhook headers for testing."""
    msg_id = f"msg_{secrets.token_hex(12)}"
    ts = int(time.time())
    return {
        "svix-id": msg_id,
        "svix-timestamp": str(ts),
        "svix-signature": sign(secret, msg_id, ts, payload.encode("utf-8")),
    }


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("Usage: make_sig.py <secret> <payload>")
        sys.exit(1)

    secret = sys.argv[1]
    payload = sys.argv[2]

    # Validate payload is valid JSON
    try:
        json.loads(payload)
    except json.JSONDecodeError:
        print("Error: Payload must be valid JSON", file=sys.stderr)
        sys.exit(1)

    for name, value in make_svix_headers(secret, payload).items():
        print(f"-H '{name}: {value}'")
