from __future__ import annotations

from collections.abc import Callable
from typing import Any

from chorequest.services.notifications import LevelUpEvent, LevelUpNotifier


class FakeTimer:
    def __init__(self, interval: float, function: Callable[..., Any], args: tuple[Any, ...] = ()) -> None:
        self.interval = interval
        self.function = function
        self.args = args
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.function(*self.args)


class FakeTimerFactory:
    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def __call__(self, interval: float, function: Callable[..., Any], args: tuple[Any, ...] = ()) -> FakeTimer:
        timer = FakeTimer(interval, function, args)
        self.timers.append(timer)
        return timer


def _event(kid_id: int = 1, new_level: int = 2, family_id: int = 1) -> LevelUpEvent:
    return LevelUpEvent(
        family_id=family_id,
        kid_id=kid_id,
        kid_name="Ada",
        previous_level=new_level - 1,
        new_level=new_level,
        xp_gained=25,
    )


def _notifier() -> tuple[LevelUpNotifier, FakeTimerFactory]:
    factory = FakeTimerFactory()
    return LevelUpNotifier(dismiss_after_seconds=5.0, timer_factory=factory), factory


def test_notify_shows_event_and_schedules_dismiss() -> None:
    notifier, factory = _notifier()
    event = _event()

    notifier.notify(event)

    assert notifier.current(1) is event
    assert len(factory.timers) == 1
    timer = factory.timers[0]
    assert timer.interval == 5.0
    assert timer.started is True
    assert timer.daemon is True


def test_timer_expiry_clears_event() -> None:
    notifier, factory = _notifier()
    notifier.notify(_event())

    factory.timers[0].fire()

    assert notifier.current(1) is None


def test_new_event_replaces_visible_one() -> None:
    notifier, factory = _notifier()
    first = _event(kid_id=1)
    second = _event(kid_id=2, new_level=5)

    notifier.notify(first)
    notifier.notify(second)

    assert notifier.current(1) is second
    assert factory.timers[0].cancelled is True
    assert factory.timers[1].cancelled is False


def test_stale_timer_does_not_clear_newer_event() -> None:
    notifier, factory = _notifier()
    first = _event(kid_id=1)
    second = _event(kid_id=2)
    notifier.notify(first)
    notifier.notify(second)

    factory.timers[0].fire()

    assert notifier.current(1) is second


def test_dismiss_cancels_timer() -> None:
    notifier, factory = _notifier()
    event = _event()
    notifier.notify(event)

    assert notifier.dismiss(1) is event
    assert notifier.current(1) is None
    assert factory.timers[0].cancelled is True
    assert notifier.dismiss(1) is None


def test_close_cancels_and_ignores_later_events() -> None:
    notifier, factory = _notifier()
    notifier.notify(_event())

    notifier.close()
    notifier.notify(_event(kid_id=3))

    assert notifier.current(1) is None
    assert factory.timers[0].cancelled is True
    assert len(factory.timers) == 1


def test_families_keep_separate_notifications() -> None:
    notifier, factory = _notifier()
    first_family = _event(kid_id=1, family_id=1)
    second_family = _event(kid_id=2, family_id=2)

    notifier.notify(first_family)
    notifier.notify(second_family)

    assert notifier.current(1) is first_family
    assert notifier.current(2) is second_family
    assert factory.timers[0].cancelled is False

    assert notifier.dismiss(2) is second_family
    assert notifier.current(1) is first_family
    assert factory.timers[1].cancelled is True
    assert notifier.current(3) is None


def test_expiry_only_clears_its_own_family() -> None:
    notifier, factory = _notifier()
    notifier.notify(_event(kid_id=1, family_id=1))
    kept = _event(kid_id=2, family_id=2)
    notifier.notify(kept)

    factory.timers[0].fire()

    assert notifier.current(1) is None
    assert notifier.current(2) is kept
