from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo


def local_to_utc_naive(day: date, hhmm: str, tz: ZoneInfo) -> datetime:
    """Absolute UTC instant (naive) of a venue wall-clock time."""
    hours, minutes = (int(part) for part in hhmm.split(":"))
    local = datetime.combine(day, time(hours, minutes), tzinfo=tz)
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def venue_today(tz: ZoneInfo) -> date:
    return datetime.now(tz).date()
