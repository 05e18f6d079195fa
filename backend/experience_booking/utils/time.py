from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


def utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today_in(tz_name: str) -> date:
    """Calendar date in the given IANA zone; slot dates are stored as local dates."""
    return datetime.now(ZoneInfo(tz_name)).date()


def utc_naive_to_aware(dt: datetime) -> datetime:
    return dt.replace(tzinfo=timezone.utc)
