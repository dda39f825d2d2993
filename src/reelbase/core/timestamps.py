"""UTC timestamp utilities.

Timestamps are stored in the same text form SQLite's ``CURRENT_TIMESTAMP``
produces (``YYYY-MM-DD HH:MM:SS``), so rows stamped by the database and rows
stamped here sort and compare alike.
"""

from datetime import UTC, datetime

SQL_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def sql_timestamp(dt: datetime | None = None) -> str:
    """Format ``dt`` (default: now) as a SQLite timestamp string."""
    if dt is None:
        dt = utc_now()
    return dt.astimezone(UTC).strftime(SQL_TIMESTAMP_FORMAT)


def from_sql_timestamp(s: str | None) -> datetime | None:
    """Parse a SQLite timestamp string into an aware UTC datetime."""
    if s is None:
        return None
    return datetime.strptime(s, SQL_TIMESTAMP_FORMAT).replace(tzinfo=UTC)
