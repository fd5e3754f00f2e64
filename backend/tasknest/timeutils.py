"""
Timestamp helpers.

Everything Tasknest stores is a naive UTC datetime, so values coming in
with an offset are converted once at the edge.
"""

from datetime import datetime, time, timedelta, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def local_day_bounds(now: datetime | None = None) -> tuple[datetime, datetime]:
    """
    Return the server-local calendar day containing ``now`` as naive UTC bounds.

    The end bound is inclusive (23:59:59.999999 local time).
    """
    local_now = (now.replace(tzinfo=timezone.utc) if now else datetime.now(timezone.utc)).astimezone()
    start = datetime.combine(local_now.date(), time.min, tzinfo=local_now.tzinfo)
    end = start + timedelta(days=1) - timedelta(microseconds=1)
    return to_naive_utc(start), to_naive_utc(end)
