"""Timestamps for stored documents."""

from datetime import datetime, timezone

ISO_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def now_iso() -> str:
    """Current UTC time as ISO 8601 string with 'Z' suffix, second precision."""
    return datetime.now(timezone.utc).strftime(ISO_FORMAT)
