from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import date, timedelta
from typing import Any

import pytest
from sqlalchemy.orm import Session

from chorequest import scheduler, worker
from chorequest.core.config import settings
from chorequest.core.logging import JsonFormatter
from chorequest.jobs import enqueue
from chorequest.jobs.enqueue import RECURRING_CHORES_JOB, STREAK_DECAY_JOB
from chorequest.models import Chore, Kid
from chorequest.services import queue
from chorequest.services.queue import JobEnvelope, dequeue_job, enqueue_job, release_job


class FakeRedis:
    def __init__(self) -> None:
        self.lists: dict[str, list[str]] = {}
        self.values: dict[str, str] = {}
        self.closed = False

    def set(self, key: str, value: str, *, nx: bool = False, ex: int | None = None) -> bool | None:
        if nx and key in self.values:
            return None
        self.values[key] = value
        return True

    def rpush(self, key: str, value: str) -> int:
        self.lists.setdefault(key, []).append(value)
        return len(self.lists[key])

    def blpop(self, key: str, timeout: int = 0) -> tuple[str, str] | None:
        items = self.lists.get(key) or []
        if not items:
            return None
        return key, items.pop(0)

    def delete(self, key: str) -> int:
        return 1 if self.values.pop(key, None) is not None else 0

    def close(self) -> None:
        self.closed = True


def test_enqueue_and_dequeue_round_trip() -> None:
    redis = FakeRedis()

    job_id = enqueue_job("demo.job", {"answer": 42}, client=redis)  # type: ignore[arg-type]
    job = dequeue_job(client=redis)  # type: ignore[arg-type]

    assert job is not None
    assert job.id == job_id
    assert job.type == "demo.job"
    assert job.payload == {"answer": 42}
    assert dequeue_job(client=redis) is None  # type: ignore[arg-type]


def test_dedupe_key_blocks_duplicates_until_released() -> None:
    redis = FakeRedis()

    first = enqueue_job(RECURRING_CHORES_JOB, dedupe_key=RECURRING_CHORES_JOB, client=redis)  # type: ignore[arg-type]
    second = enqueue_job(RECURRING_CHORES_JOB, dedupe_key=RECURRING_CHORES_JOB, client=redis)  # type: ignore[arg-type]

    assert first is not None
    assert second is None
    assert len(redis.lists[settings.queue_name]) == 1

    job = dequeue_job(client=redis)  # type: ignore[arg-type]
    assert job is not None
    release_job(job, client=redis)  # type: ignore[arg-type]

    third = enqueue_job(RECURRING_CHORES_JOB, dedupe_key=RECURRING_CHORES_JOB, client=redis)  # type: ignore[arg-type]
    assert third is not None


def test_enqueue_closes_its_own_client(monkeypatch: pytest.MonkeyPatch) -> None:
    redis = FakeRedis()
    monkeypatch.setattr(queue, "redis_client", lambda: redis)

    enqueue_job("demo.job")

    assert redis.closed is True


def test_enqueue_helpers_use_job_types(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[tuple[str, dict[str, Any], str | None]] = []

    def fake_enqueue(job_type: str, payload: dict[str, Any] | None = None, *, dedupe_key: str | None = None) -> str:
        calls.append((job_type, payload or {}, dedupe_key))
        return "job-1"

    monkeypatch.setattr(enqueue, "enqueue_job", fake_enqueue)

    assert enqueue.enqueue_recurring_chores("2026-03-10T09:00:00+00:00") == "job-1"
    assert enqueue.enqueue_streak_decay() == "job-1"
    assert calls == [
        (RECURRING_CHORES_JOB, {"reference_time": "2026-03-10T09:00:00+00:00"}, RECURRING_CHORES_JOB),
        (STREAK_DECAY_JOB, {}, STREAK_DECAY_JOB),
    ]


def _bind_session(monkeypatch: pytest.MonkeyPatch, db: Session) -> None:
    # Handlers close their session; keep the fixture's session usable afterwards.
    monkeypatch.setattr(db, "close", lambda: None)
    monkeypatch.setattr(worker, "SessionLocal", lambda: db)


def test_recurring_job_handler_processes_templates(
    db: Session,
    make_chore: Callable[..., Chore],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    template = make_chore(recurrence_pattern="daily")
    template.updated_at = template.updated_at - timedelta(days=1)
    db.commit()
    _bind_session(monkeypatch, db)

    result = worker._handle_recurring_chores({})

    assert result["checked"] == 1
    assert result["created"] == 1
    assert db.get(Chore, result["chore_ids"][0]).parent_chore_id == template.id


def test_streak_decay_job_handler_commits(
    db: Session,
    make_kid: Callable[..., Kid],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    kid = make_kid(current_streak=3, longest_streak=3, last_activity_date=date(2026, 3, 1))
    _bind_session(monkeypatch, db)

    result = worker._handle_streak_decay({"reference_date": "2026-03-10"})

    assert result["reset"] == 1
    db.expire_all()
    assert db.get(Kid, kid.id).current_streak == 0


def test_process_job_dispatches_to_handler(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[dict[str, Any]] = []

    def handler(payload: dict[str, Any]) -> dict[str, Any]:
        seen.append(payload)
        return {"ok": True}

    monkeypatch.setitem(worker.JOB_HANDLERS, STREAK_DECAY_JOB, handler)
    job = JobEnvelope(id="1", type=STREAK_DECAY_JOB, payload={"reference_date": "2026-03-10"}, created_at="now")

    worker.process_job(job)

    assert seen == [{"reference_date": "2026-03-10"}]


def test_process_job_ignores_unknown_type(caplog: pytest.LogCaptureFixture) -> None:
    job = JobEnvelope(id="2", type="nope", payload={}, created_at="now")
    with caplog.at_level(logging.WARNING, logger="chorequest.worker"):
        worker.process_job(job)
    assert [record.getMessage() for record in caplog.records] == ["worker.job.unknown"]


def test_scheduler_ticks_and_sleeps_between(monkeypatch: pytest.MonkeyPatch) -> None:
    enqueued: list[str] = []
    sleeps: list[float] = []
    monkeypatch.setattr(scheduler, "enqueue_recurring_chores", lambda: enqueued.append("recurring") or "r")
    monkeypatch.setattr(scheduler, "enqueue_streak_decay", lambda: enqueued.append("decay") or "d")

    ticks = scheduler.run_scheduler(60, sleep=sleeps.append, max_ticks=3)

    assert ticks == 3
    assert enqueued == ["recurring", "decay"] * 3
    assert sleeps == [60, 60]


def test_scheduler_survives_failed_tick(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken() -> str:
        raise ConnectionError("redis down")

    monkeypatch.setattr(scheduler, "enqueue_recurring_chores", broken)
    monkeypatch.setattr(scheduler, "enqueue_streak_decay", lambda: None)

    assert scheduler.run_scheduler(1, sleep=lambda _: None, max_ticks=2) == 2


def test_json_formatter_includes_context_fields() -> None:
    record = logging.LogRecord("chorequest.chores", logging.INFO, __file__, 1, "chore.approved", None, None)
    record.chore_id = 9
    record.new_level = 3

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "chore.approved"
    assert payload["service"] == "chorequest-api"
    assert payload["chore_id"] == 9
    assert payload["new_level"] == 3
    assert "kid_id" not in payload
