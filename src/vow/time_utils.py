"""Clock and identifier helpers.

All timestamps on the wire are integer milliseconds since the Unix epoch.
"""

from __future__ import annotations

import secrets
import string
from datetime import datetime, timezone

ID_CHARSET = string.ascii_lowercase + string.digits  # base36
ID_SUFFIX_LENGTH = 9


def now_ms() -> int:
    """Current UTC time in epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def generate_id(prefix: str, now: int | None = None) -> str:
    """Build an opaque id like ``promise_1718000000000_k3j9x0a2b``."""
    if now is None:
        now = now_ms()
    suffix = "".join(secrets.choice(ID_CHARSET) for _ in range(ID_SUFFIX_LENGTH))
    return f"{prefix}_{now}_{suffix}"


def backup_stamp(dt: datetime | None = None) -> str:
    """Filesystem-safe ISO timestamp, e.g. ``2026-10-19T02-51-00-123Z``."""
    if dt is None:
        dt = datetime.now(timezone.utc)
    iso = dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return iso.replace(":", "-").replace(".", "-")
