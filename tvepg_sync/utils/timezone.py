"""
Date and Time utilities

Resolves the guide's relative day codes to calendar dates and formats XMLTV
timestamps. All guide timestamps carry a fixed UTC offset.
"""
from datetime import date, datetime, timedelta
from types import MappingProxyType
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging
import re

logger = logging.getLogger(__name__)

# tvepg.eu encodes the listing day as a two digit token relative to today
DAY_CODE_OFFSETS = MappingProxyType({
    "07": -1,
    "08": 0,
    "09": 1,
    "10": 2,
})

_UTC_OFFSET_RE = re.compile(r"^[+-](?:[01]\d|2[0-3])[0-5]\d$")


class DateFormatError(ValueError):
    """Raised when a date, offset or timezone setting is invalid"""
    pass


def validate_utc_offset(offset: str) -> str:
    """
    Validate an XMLTV UTC offset such as '+0100'

    Raises:
        DateFormatError: If the offset is not in [+-]HHMM form
    """
    if not _UTC_OFFSET_RE.match(offset):
        raise DateFormatError(f"Invalid UTC offset: '{offset}' (expected e.g. '+0100')")
    return offset


def validate_timezone_name(name: str) -> str:
    """
    Validate an IANA timezone name

    Raises:
        DateFormatError: If zoneinfo doesn't know the timezone
    """
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise DateFormatError(f"Invalid timezone: '{name}'") from e
    return name


def today_in(tz_name: str) -> date:
    """Current calendar date in the given timezone"""
    return datetime.now(ZoneInfo(tz_name)).date()


def resolve_day_code(day_code: str, today: date) -> date:
    """
    Map a guide day code to an absolute date

    Unknown codes fall back to today, which may misdate unusual entries.
    """
    offset = DAY_CODE_OFFSETS.get(day_code)
    if offset is None:
        logger.debug(f"Unknown day code '{day_code}', assuming today")
        offset = 0
    return today + timedelta(days=offset)


def format_xmltv_timestamp(day: date, time_code: str, utc_offset: str) -> str:
    """
    Build an XMLTV start timestamp

    Args:
        day: Calendar date of the programme
        time_code: Four digit HHMM token from the guide link
        utc_offset: Offset suffix like '+0100'

    Returns:
        Timestamp like '20240601143000 +0100'
    """
    return f"{day:%Y%m%d}{time_code}00 {utc_offset}"
