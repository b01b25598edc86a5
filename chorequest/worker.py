from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import asdict
from datetime import date, datetime
from typing import Any

from chorequest.core.logging import setup_json_logging
from chorequest.db.session import SessionLocal
from chorequest.jobs.enqueue import RECURRING_CHORES_JOB, STREAK_DECAY_JOB
from chorequest.jobs.streak_decay import decay_stale_streaks
from chorequest.services.queue import JobEnvelope, dequeue_job, release_job
from chorequest.services.recurrence import process_recurring_chores

logger = logging.getLogger("chorequest.worker")


def _handle_recurring_chores(payload: dict[str, Any]) -> dict[str, Any]:
    reference_time: datetime | None = None
    raw_reference_time = payload.get("reference_time")
    if isinstance(raw_reference_time, str):
        reference_time = datetime.fromisoformat(raw_reference_time)

    db = SessionLocal()
    try:
        summary = process_recurring_chores(db, now=reference_time)
        return asdict(summary)
    finally:
        db.close()


def _handle_streak_decay(payload: dict[str, Any]) -> dict[str, Any]:
    reference_date: date | None = None
    raw_reference_date = payload.get("reference_date")
    if isinstance(raw_reference_date, str):
        reference_date = date.fromisoformat(raw_reference_date)

    db = SessionLocal()
    try:
        result = decay_stale_streaks(db, today=reference_date)
        db.commit()
        return result
    finally:
        db.close()


JOB_HANDLERS: dict[str, Callable[[dict[str, Any]], dict[str, Any]]] = {
    RECURRING_CHORES_JOB: _handle_recurring_chores,
    STREAK_DECAY_JOB: _handle_streak_decay,
}


def process_job(job: JobEnvelope) -> None:
    handler = JOB_HANDLERS.get(job.type)
    if handler is None:
        logger.warning(
            "worker.job.unknown",
            extra={"job_id": job.id, "job_type": job.type},
        )
        return

    result = handler(job.payload)
    logger.info(
        "worker.job.completed",
        extra={"job_id": job.id, "job_type": job.type, "result": result},
    )


def run_worker() -> None:
    setup_json_logging()
    logger.info("worker.started")
    while True:
        job = dequeue_job(block_timeout_seconds=5)
        if job is None:
            continue

        try:
            process_job(job)
        except Exception:
            logger.exception(
                "worker.job.failed",
                extra={"job_id": job.id, "job_type": job.type},
            )
        finally:
            release_job(job)


if __name__ == "__main__":
    run_worker()
