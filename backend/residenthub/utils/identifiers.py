from __future__ import annotations

import os
import secrets
import time
import uuid
from typing import Callable, Optional

SOCIETY_CODE_PREFIX = "RH"
SOCIETY_CODE_MAX_ATTEMPTS = 100


def generate_uuid7() -> str:
    """
    Generate a UUIDv7 string (time-ordered).

    UUIDv7 layout per draft:
    - 48-bit Unix timestamp in milliseconds
    - 4-bit version (0b0111)
    - 74-bit randomness
    """
    ts_ms = int(time.time() * 1000)
    ts_bytes = ts_ms.to_bytes(6, "big", signed=False)
    rand_bytes = os.urandom(10)
    raw = bytearray(ts_bytes + rand_bytes)
    raw[6] = (raw[6] & 0x0F) | 0x70
    raw[8] = (raw[8] & 0x3F) | 0x80
    return str(uuid.UUID(bytes=bytes(raw)))


def random_society_code() -> str:
    """Random human-friendly code such as ``RH-4821``."""
    return f"{SOCIETY_CODE_PREFIX}-{1000 + secrets.randbelow(9000)}"


def fallback_society_code(now_ms: Optional[int] = None) -> str:
    """Timestamp-derived code used once random codes keep colliding."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{SOCIETY_CODE_PREFIX}-{str(now_ms)[-6:]}"


def generate_society_code(
    code_exists: Callable[[str], bool],
    *,
    max_attempts: int = SOCIETY_CODE_MAX_ATTEMPTS,
    candidate: Callable[[], str] = random_society_code,
) -> str:
    """
    Return a society code that `code_exists` reports as free.

    Random 4-digit codes are tried up to `max_attempts` times; after that the
    timestamp fallback is returned without a further lookup (the unique
    constraint on societies.code is the final guard).
    """
    for _ in range(max_attempts):
        code = candidate()
        if not code_exists(code):
            return code
    return fallback_society_code()
