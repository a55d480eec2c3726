"""
Arrow Options SDK - Time Utilities

Readable ("MMDDYYYY") timestamps and option expiration timestamps.
Arrow options always expire on a Friday at 08:00 UTC.
"""

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from .exceptions import UnsupportedExpirationError

SECONDS_PER_DAY = 60 * 60 * 24
EXPIRATION_HOUR_UTC = 8
READABLE_FORMAT = "%m%d%Y"
READABLE_FORMAT_SLASHES = "%m/%d/%Y"


@dataclass(frozen=True)
class UTCTime:
    """One instant in its datetime, unix, millisecond and readable forms."""
    datetime: datetime
    unix_timestamp: int
    millis_timestamp: int
    readable_timestamp: Optional[str] = None


def get_readable_timestamp(millis_timestamp: int, include_slashes: bool = False) -> str:
    """
    Get readable timestamp from millisecond timestamp.

    Args:
        millis_timestamp: Millisecond timestamp, e.g. 1664879367000
        include_slashes: Render as "MM/DD/YYYY" instead of "MMDDYYYY"

    Returns:
        Readable UTC date, e.g. "10042022"
    """
    moment = datetime.fromtimestamp(millis_timestamp / 1000, tz=timezone.utc)
    return moment.strftime(READABLE_FORMAT_SLASHES if include_slashes else READABLE_FORMAT)


def get_time_utc(millis_timestamp: int) -> UTCTime:
    """Get datetime, unix and readable representations of a millisecond timestamp."""
    moment = datetime.fromtimestamp(millis_timestamp / 1000, tz=timezone.utc)
    return UTCTime(
        datetime=moment,
        unix_timestamp=millis_timestamp // 1000,
        millis_timestamp=millis_timestamp,
        readable_timestamp=get_readable_timestamp(millis_timestamp),
    )


def get_current_time_utc() -> UTCTime:
    """Get the current time in UTC."""
    return get_time_utc(int(time.time() * 1000))


def is_friday(unix_timestamp: int) -> bool:
    """
    Check if a unix timestamp falls on a Friday (UTC).

    1970-01-01 was a Thursday, hence the +4 offset.
    """
    day_of_week = (unix_timestamp // SECONDS_PER_DAY + 4) % 7
    return day_of_week == 5


def get_expiration_timestamp(readable_expiration: str) -> UTCTime:
    """
    Get the unix and millisecond timestamps of a readable expiration.

    Args:
        readable_expiration: Date in "MMDDYYYY" format, e.g. "10072022"

    Returns:
        UTCTime at 08:00 UTC of that date

    Raises:
        UnsupportedExpirationError: If the date is malformed or not a Friday
    """
    text = str(readable_expiration)
    if len(text) != 8 or not text.isdigit():
        raise UnsupportedExpirationError(
            "Expiration must be a readable MMDDYYYY date",
            expiration=text, field="readable_expiration"
        )
    try:
        expiration = datetime.strptime(text, READABLE_FORMAT).replace(
            hour=EXPIRATION_HOUR_UTC, tzinfo=timezone.utc
        )
    except ValueError:
        raise UnsupportedExpirationError(
            "Expiration must be a readable MMDDYYYY date",
            expiration=text, field="readable_expiration"
        )

    unix_timestamp = int(expiration.timestamp())
    if not is_friday(unix_timestamp):
        raise UnsupportedExpirationError(
            "Please select a Friday expiration date",
            expiration=text, field="readable_expiration"
        )

    return UTCTime(
        datetime=expiration,
        unix_timestamp=unix_timestamp,
        millis_timestamp=unix_timestamp * 1000,
        readable_timestamp=text,
    )
