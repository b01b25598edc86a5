from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from chorequest.core.config import settings

logger = logging.getLogger("chorequest.notifications")

TimerFactory = Callable[..., Any]


@dataclass(frozen=True, slots=True)
class LevelUpEvent:
    family_id: int
    kid_id: int
    kid_name: str
    previous_level: int
    new_level: int
    xp_gained: int


class LevelUpNotifier:
    """Holds the live level-up notification of each family.

    A family sees at most one notification at a time: a new event replaces the
    visible one instead of queueing behind it. Each event gets its own
    auto-dismiss timer; dismissing or replacing cancels it.
    """

    def __init__(
        self,
        *,
        dismiss_after_seconds: float | None = None,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        self._dismiss_after = (
            dismiss_after_seconds if dismiss_after_seconds is not None else settings.level_up_dismiss_seconds
        )
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._current: dict[int, LevelUpEvent] = {}
        self._timers: dict[int, Any] = {}
        self._closed = False

    def current(self, family_id: int) -> LevelUpEvent | None:
        with self._lock:
            return self._current.get(family_id)

    def notify(self, event: LevelUpEvent) -> None:
        with self._lock:
            if self._closed:
                return
            self._cancel_timer(event.family_id)
            replaced = self._current.get(event.family_id)
            if replaced is not None:
                logger.info("level_up.replaced", extra={"family_id": event.family_id, "kid_id": replaced.kid_id})
            self._current[event.family_id] = event
            timer = self._timer_factory(self._dismiss_after, self._expire, args=(event,))
            timer.daemon = True
            self._timers[event.family_id] = timer
            timer.start()
        logger.info(
            "level_up.shown",
            extra={"family_id": event.family_id, "kid_id": event.kid_id, "new_level": event.new_level},
        )

    def dismiss(self, family_id: int) -> LevelUpEvent | None:
        with self._lock:
            self._cancel_timer(family_id)
            return self._current.pop(family_id, None)

    def close(self) -> None:
        with self._lock:
            self._closed = True
            for family_id in list(self._timers):
                self._cancel_timer(family_id)
            self._current.clear()

    def _expire(self, event: LevelUpEvent) -> None:
        with self._lock:
            # A timer that lost the race against a replacement must not clear the newer event.
            if self._current.get(event.family_id) is not event:
                return
            del self._current[event.family_id]
            self._timers.pop(event.family_id, None)
        logger.info("level_up.auto_dismissed", extra={"family_id": event.family_id, "kid_id": event.kid_id})

    def _cancel_timer(self, family_id: int) -> None:
        timer = self._timers.pop(family_id, None)
        if timer is not None:
            timer.cancel()
