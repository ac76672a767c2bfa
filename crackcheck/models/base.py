from datetime import datetime, timezone

from sqlalchemy import DateTime

# Timestamps are stored timezone-aware, always in UTC
UTCDateTime = DateTime(timezone=True)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
