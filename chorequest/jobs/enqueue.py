from __future__ import annotations

from chorequest.services.queue import enqueue_job

RECURRING_CHORES_JOB = "chores.recurring.process"
STREAK_DECAY_JOB = "streaks.decay"


def enqueue_recurring_chores(reference_time: str | None = None) -> str | None:
    payload: dict[str, str] = {}
    if reference_time:
        payload["reference_time"] = reference_time
    return enqueue_job(RECURRING_CHORES_JOB, payload=payload, dedupe_key=RECURRING_CHORES_JOB)


def enqueue_streak_decay(reference_date: str | None = None) -> str | None:
    payload: dict[str, str] = {}
    if reference_date:
        payload["reference_date"] = reference_date
    return enqueue_job(STREAK_DECAY_JOB, payload=payload, dedupe_key=STREAK_DECAY_JOB)
