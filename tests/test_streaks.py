from __future__ import annotations

import random
from collections.abc import Callable
from datetime import date, timedelta

import pytest
from sqlalchemy.orm import Session

from chorequest.jobs.streak_decay import decay_stale_streaks
from chorequest.models import Kid
from chorequest.services.streaks import (
    decay_streak,
    effective_current_streak,
    get_streak_snapshot,
    is_streak_active,
    register_activity,
)

TODAY = date(2026, 3, 10)


def _kid(**overrides: object) -> Kid:
    values: dict[str, object] = {
        "family_id": 1,
        "name": "Bo",
        "points": 0,
        "total_xp": 0,
        "current_streak": 0,
        "longest_streak": 0,
        "last_activity_date": None,
    }
    values.update(overrides)
    kid = Kid(**values)
    kid.id = 2
    return kid


def test_first_activity_starts_streak() -> None:
    kid = _kid()
    assert register_activity(kid, activity_date=TODAY) is True
    assert kid.current_streak == 1
    assert kid.longest_streak == 1
    assert kid.last_activity_date == TODAY


def test_consecutive_days_extend_streak() -> None:
    kid = _kid()
    for offset in range(5):
        register_activity(kid, activity_date=TODAY + timedelta(days=offset))
    assert kid.current_streak == 5
    assert kid.longest_streak == 5


def test_same_day_activity_is_counted_once() -> None:
    kid = _kid(current_streak=3, longest_streak=4, last_activity_date=TODAY)
    assert register_activity(kid, activity_date=TODAY) is False
    assert kid.current_streak == 3
    assert kid.longest_streak == 4


def test_gap_resets_streak_but_keeps_longest() -> None:
    kid = _kid(current_streak=6, longest_streak=6, last_activity_date=TODAY - timedelta(days=3))
    register_activity(kid, activity_date=TODAY)
    assert kid.current_streak == 1
    assert kid.longest_streak == 6


def test_backdated_activity_is_ignored() -> None:
    kid = _kid(current_streak=2, longest_streak=2, last_activity_date=TODAY)
    assert register_activity(kid, activity_date=TODAY - timedelta(days=1)) is False
    assert kid.last_activity_date == TODAY


@pytest.mark.parametrize("seed", [3, 17, 2026])
def test_longest_never_below_current(seed: int) -> None:
    rng = random.Random(seed)
    kid = _kid()
    day = TODAY
    best_run = 0
    run = 0
    for _ in range(300):
        gap = rng.choice([0, 1, 1, 1, 2, 5])
        day += timedelta(days=gap)
        if kid.last_activity_date is None or gap > 1:
            run = 1
        elif gap == 1:
            run += 1
        best_run = max(best_run, run)

        register_activity(kid, activity_date=day)

        assert kid.current_streak == run
        assert kid.longest_streak >= kid.current_streak
        assert kid.longest_streak == best_run


def test_is_streak_active_only_for_today() -> None:
    assert is_streak_active(TODAY, today=TODAY) is True
    assert is_streak_active(TODAY - timedelta(days=1), today=TODAY) is False
    assert is_streak_active(None, today=TODAY) is False


def test_effective_streak_survives_one_day_gap() -> None:
    kid = _kid(current_streak=4, longest_streak=4, last_activity_date=TODAY - timedelta(days=1))
    assert effective_current_streak(kid, today=TODAY) == 4

    snapshot = get_streak_snapshot(kid, today=TODAY)
    assert snapshot.current_streak == 4
    assert snapshot.is_active is False


def test_effective_streak_is_zero_after_missed_day() -> None:
    kid = _kid(current_streak=4, longest_streak=9, last_activity_date=TODAY - timedelta(days=2))
    snapshot = get_streak_snapshot(kid, today=TODAY)
    assert snapshot.current_streak == 0
    assert snapshot.longest_streak == 9
    assert kid.current_streak == 4


def test_decay_streak_resets_stale_streak() -> None:
    kid = _kid(current_streak=4, longest_streak=3, last_activity_date=TODAY - timedelta(days=2))
    assert decay_streak(kid, today=TODAY) is True
    assert kid.current_streak == 0
    assert kid.longest_streak == 4


def test_decay_streak_leaves_live_streak() -> None:
    kid = _kid(current_streak=4, longest_streak=4, last_activity_date=TODAY - timedelta(days=1))
    assert decay_streak(kid, today=TODAY) is False
    assert kid.current_streak == 4


def test_decay_stale_streaks_job(db: Session, make_kid: Callable[..., Kid]) -> None:
    stale = make_kid(name="Stale", current_streak=5, longest_streak=5, last_activity_date=TODAY - timedelta(days=3))
    live = make_kid(name="Live", current_streak=2, longest_streak=2, last_activity_date=TODAY)
    make_kid(name="Idle")

    result = decay_stale_streaks(db, today=TODAY)
    db.commit()

    assert result == {"checked": 2, "reset": 1, "kid_ids": [stale.id]}
    assert db.get(Kid, stale.id).current_streak == 0
    assert db.get(Kid, stale.id).longest_streak == 5
    assert db.get(Kid, live.id).current_streak == 2
