"""Date manipulation utilities"""

import calendar
from datetime import datetime, timedelta, timezone

MS_PER_HOUR = 60 * 60 * 1000


def local_now() -> datetime:
    """Current wall-clock time, timezone-aware in the host's local zone"""
    return datetime.now().astimezone()


def to_epoch_ms(moment: datetime) -> int:
    """Convert an aware datetime to epoch milliseconds"""
    return int(moment.timestamp() * 1000)


def today_string(moment: datetime) -> str:
    """Local calendar date as YYYY-MM-DD"""
    return moment.date().isoformat()


def _is_host_local(moment: datetime) -> bool:
    # timezone.utc itself is an explicit zone, not a pinned local offset
    if not isinstance(moment.tzinfo, timezone) or moment.tzinfo is timezone.utc:
        return False
    return moment.utcoffset() == moment.replace(tzinfo=None).astimezone().utcoffset()


def _rezone(original: datetime, shifted: datetime) -> datetime:
    """
    Re-resolve the UTC offset after moving a host-local wall time.

    astimezone() pins a fixed offset, so a shift across a DST change would
    otherwise keep the old offset and land an hour off.
    """
    if _is_host_local(original):
        return shifted.replace(tzinfo=None).astimezone()
    return shifted


def subtract_months(moment: datetime, months: int) -> datetime:
    """
    Step back a number of calendar months, keeping the time of day.

    When the day does not exist in the target month it is clamped to the last
    day of that month:
        2026-03-31 minus 1 month -> 2026-02-28
        2024-03-31 minus 1 month -> 2024-02-29
    """
    if months <= 0:
        return moment

    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]

    return _rezone(moment, moment.replace(year=year, month=month, day=min(moment.day, last_day)))


def start_of_day(moment: datetime) -> datetime:
    """Midnight of the same local calendar day"""
    return _rezone(moment, moment.replace(hour=0, minute=0, second=0, microsecond=0))


def add_days_ms(epoch_ms: int, days: int) -> int:
    """Shift an epoch-millisecond timestamp by whole days"""
    return epoch_ms + int(timedelta(days=days).total_seconds() * 1000)
