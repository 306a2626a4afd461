from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how datetimes are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
