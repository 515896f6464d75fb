from datetime import datetime, UTC


def as_utc(value):
    """Return ``value`` as an aware UTC datetime; naive values are assumed to be UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_isoformat(value: datetime):
    if value is None:
        return None
    return as_utc(value).isoformat().replace("+00:00", "Z")
