"""Clock helpers.

Hold expiries and audit timestamps are stored as naive UTC. Calendar
decisions ("is this date in the past?", photoshoot opening hours) use the
club's local wall clock.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from app.config import settings


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_naive_utc(moment: datetime) -> datetime:
    """Drop tzinfo after converting to UTC; naive inputs are assumed UTC."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def club_now(moment: datetime) -> datetime:
    """Convert an aware instant to naive club-local wall time."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(ZoneInfo(settings.club_timezone)).replace(tzinfo=None)
