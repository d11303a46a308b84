"""Identifier utilities for neo-rbac."""

import time
import uuid


def generate_internal_id() -> str:
    """
    Generate a time-ordered UUIDv7 for a user's internal id.

    Returns:
        String representation of UUIDv7
    """
    timestamp_bytes = int(time.time() * 1000).to_bytes(6, byteorder='big')
    random_bytes = uuid.uuid4().bytes[6:]
    uuid_bytes = bytearray(timestamp_bytes + random_bytes)

    # version 7, variant 10
    uuid_bytes[6] = (uuid_bytes[6] & 0x0f) | 0x70
    uuid_bytes[8] = (uuid_bytes[8] & 0x3f) | 0x80

    return str(uuid.UUID(bytes=bytes(uuid_bytes)))


def is_internal_id(value: str) -> bool:
    """Check if a string is a valid UUIDv7 internal id."""
    try:
        return uuid.UUID(value).version == 7
    except (ValueError, TypeError, AttributeError):
        return False
