from datetime import datetime, timezone


def utcnow() -> datetime:
    """Aware UTC timestamp, the form every DateTime column stores and returns."""
    return datetime.now(tz=timezone.utc)
