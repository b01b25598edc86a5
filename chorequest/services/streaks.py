from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from chorequest.core.clock import local_date
from chorequest.models import Kid


@dataclass(frozen=True, slots=True)
class StreakSnapshot:
    current_streak: int
    longest_streak: int
    last_activity_date: date | None
    is_active: bool


def is_streak_active(last_activity_date: date | datetime | None, *, today: date) -> bool:
    if last_activity_date is None:
        return False
    return local_date(last_activity_date) == today


def _is_broken(last_activity_date: date | None, *, today: date) -> bool:
    if last_activity_date is None:
        return True
    return (today - last_activity_date).days > 1


def effective_current_streak(kid: Kid, *, today: date) -> int:
    if _is_broken(kid.last_activity_date, today=today):
        return 0
    return kid.current_streak


def get_streak_snapshot(kid: Kid, *, today: date) -> StreakSnapshot:
    current = effective_current_streak(kid, today=today)
    return StreakSnapshot(
        current_streak=current,
        longest_streak=max(kid.longest_streak, current),
        last_activity_date=kid.last_activity_date,
        is_active=is_streak_active(kid.last_activity_date, today=today),
    )


def register_activity(kid: Kid, *, activity_date: date) -> bool:
    """Count a qualifying activity on ``activity_date``.

    Returns True when the streak value changed. Activity dated before the
    last recorded one is ignored.
    """
    last = kid.last_activity_date
    if last is None:
        kid.current_streak = 1
    else:
        gap = (activity_date - last).days
        if gap <= 0:
            return False
        if gap == 1:
            kid.current_streak += 1
        else:
            kid.current_streak = 1

    kid.last_activity_date = activity_date
    kid.longest_streak = max(kid.longest_streak, kid.current_streak)
    return True


def decay_streak(kid: Kid, *, today: date) -> bool:
    if kid.current_streak == 0 or not _is_broken(kid.last_activity_date, today=today):
        return False
    kid.longest_streak = max(kid.longest_streak, kid.current_streak)
    kid.current_streak = 0
    return True
