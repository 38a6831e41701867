from datetime import datetime, timezone


def to_millis(value):
    """
    Resolve a stored timestamp to epoch milliseconds.

    Accepts datetimes (naive ones are UTC, as pymongo returns them),
    ISO-8601 strings, epoch numbers (ms) and serialized server timestamps
    of the form {"_seconds": .., "_nanoseconds": ..}. Anything else is 0.
    """
    if value is None:
        return 0
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, dict):
        seconds = value.get("_seconds", value.get("seconds"))
        nanos = value.get("_nanoseconds", value.get("nanoseconds", 0)) or 0
        if seconds is None:
            return 0
        try:
            return int(seconds) * 1000 + int(nanos) // 1_000_000
        except (TypeError, ValueError):
            return 0
    if isinstance(value, str):
        parsed = parse_timestamp(value)
        return to_millis(parsed) if parsed else 0
    return 0


def parse_timestamp(value):
    """Parse a caller-supplied timestamp into a naive UTC datetime, or None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc).replace(tzinfo=None)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return parse_timestamp(int(text))
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parse_timestamp(parsed)
    return None


def isoformat(value):
    if isinstance(value, datetime):
        return parse_timestamp(value).isoformat() + "Z"
    return value
