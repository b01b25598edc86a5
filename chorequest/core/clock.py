from __future__ import annotations

from datetime import UTC, date, datetime, tzinfo
from zoneinfo import ZoneInfo

from chorequest.core.config import settings


def local_timezone() -> tzinfo:
    return ZoneInfo(settings.timezone)


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back naive; they are always written as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def local_date(value: datetime | date, tz: tzinfo | None = None) -> date:
    if isinstance(value, datetime):
        return ensure_utc(value).astimezone(tz or local_timezone()).date()
    return value


def local_today(now: datetime | None = None, tz: tzinfo | None = None) -> date:
    return local_date(now or utc_now(), tz)
