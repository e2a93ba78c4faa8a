import logging
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_datetime(dt_value) -> datetime | None:
    """
    Parse an activity cursor or stored value to aware UTC.

    ISO strings without an offset (and naive datetimes) are taken as UTC.
    Anything unparseable yields None, which callers treat as "no cursor".
    """
    if dt_value is None:
        return None

    if isinstance(dt_value, datetime):
        return ensure_utc(dt_value)

    if isinstance(dt_value, str):
        try:
            return ensure_utc(datetime.fromisoformat(dt_value.strip().replace("Z", "+00:00")))
        except ValueError:
            logger.warning("Ignoring unparseable datetime: %r", dt_value)
            return None

    logger.warning("Unexpected datetime type: %s", type(dt_value).__name__)
    return None


def ensure_utc(dt_value: datetime | None) -> datetime | None:
    """
    Ensure a datetime is timezone-aware UTC.

    Naive values (e.g. written by a client that was not tz_aware) are
    interpreted as UTC.
    """
    if dt_value is None:
        return None

    if isinstance(dt_value, datetime):
        if dt_value.tzinfo is None:
            return dt_value.replace(tzinfo=timezone.utc)
        return dt_value.astimezone(timezone.utc)

    return None
