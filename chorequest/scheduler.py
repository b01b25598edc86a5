"""Interval trigger for the periodic jobs.

Only enqueues; the worker does the actual work. Jobs carry a dedupe key, so a
tick that fires while the previous check is still queued is a no-op.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from chorequest.core.config import settings
from chorequest.core.logging import setup_json_logging
from chorequest.jobs.enqueue import enqueue_recurring_chores, enqueue_streak_decay

logger = logging.getLogger("chorequest.scheduler")


def tick() -> dict[str, str | None]:
    return {
        "recurring": enqueue_recurring_chores(),
        "streak_decay": enqueue_streak_decay(),
    }


def run_scheduler(
    interval_seconds: int | None = None,
    *,
    sleep: Callable[[float], None] = time.sleep,
    max_ticks: int | None = None,
) -> int:
    interval = interval_seconds or settings.recurring_check_interval_seconds
    ticks = 0
    logger.info("scheduler.started", extra={"result": interval})
    while max_ticks is None or ticks < max_ticks:
        try:
            job_ids = tick()
            logger.info("scheduler.tick", extra={"result": job_ids})
        except Exception:
            logger.exception("scheduler.tick.failed")
        ticks += 1
        if max_ticks is None or ticks < max_ticks:
            sleep(interval)
    return ticks


if __name__ == "__main__":
    setup_json_logging()
    run_scheduler()
