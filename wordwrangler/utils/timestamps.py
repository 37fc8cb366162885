"""UTC timestamp helpers shared by the server and the Python client."""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime.

    Timestamps are stored naive (UTC implied) so that SQLite and Postgres
    round-trip the same values.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_timestamp(value: datetime | None) -> str | None:
    """Serialise a stored timestamp as ISO-8601 with an explicit ``Z`` suffix."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.isoformat() + "Z"


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse an ISO-8601 string into a naive UTC datetime.

    Accepts a trailing ``Z`` or any explicit offset. Returns None for None.

    Raises:
        ValueError: If the string is not a valid ISO-8601 timestamp.
        TypeError: If the value is neither a string nor a datetime.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif not isinstance(value, str):
        raise TypeError(f"expected an ISO-8601 string, got {type(value).__name__}")
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
