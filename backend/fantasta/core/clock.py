from datetime import datetime, timezone


def utcnow() -> datetime:
    # Naive UTC: SQLite DateTime columns round-trip without tzinfo.
    return datetime.now(timezone.utc).replace(tzinfo=None)
