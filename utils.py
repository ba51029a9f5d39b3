# utils.py
import re
from datetime import datetime, timezone

_CREDENTIALS_RE = re.compile(r":[^:@/]+@")


def mask_connection_string(url: str) -> str:
    """Hide the password in a user:password@host connection string."""
    if not url:
        return ""
    return _CREDENTIALS_RE.sub(":****@", url)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def normalize_score(value):
    """
    Return integral floats as ints so every store renders the same JSON.
    Example: 100.0 (DOUBLE PRECISION column) -> 100
    """
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
