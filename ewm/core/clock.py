from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time, naive, truncated to whole seconds."""
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)
