# -*- coding: utf-8 -*-
"""Time helpers for particleflow."""

# Import datetime helpers.
from datetime import datetime, timezone


def utc_now_iso() -> str:
    """Return current UTC time as an ISO-8601 string with 'Z'."""
    now = datetime.now(timezone.utc)
    # Convert to ISO string and force 'Z' suffix.
    return now.isoformat().replace("+00:00", "Z")
