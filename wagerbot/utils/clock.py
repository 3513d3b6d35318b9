from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what SQLite DateTime columns round-trip."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_date_string(moment: datetime = None) -> str:
    """YYYY-MM-DD of the given (or current) UTC moment; daily records roll over on it."""
    return (moment or utcnow()).strftime('%Y-%m-%d')
