# =============================================================================
# content_core/offline/identity.py
# Identifiers for records created in the local cache
# =============================================================================
"""
Local ids look like ``1717236000123-k3x9q0abz``: 13 digits of epoch
milliseconds, a dash, and 9 random base36 characters. The shape can never
match a UUID or an integer primary key issued by the remote store.
"""

from __future__ import annotations
import secrets
import string
import threading
import time

ALPHABET = string.digits + string.ascii_lowercase
SUFFIX_LENGTH = 9

_lock = threading.Lock()
_last_ms = 0


def _next_millis() -> int:
    """Current epoch milliseconds, never lower than a previous call."""
    global _last_ms
    now = time.time_ns() // 1_000_000
    with _lock:
        if now < _last_ms:
            now = _last_ms
        _last_ms = now
    return now


def new_id() -> str:
    """Return a new collision-resistant, time-ordered record id."""
    suffix = "".join(secrets.choice(ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"{_next_millis():013d}-{suffix}"
