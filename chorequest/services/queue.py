from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from redis import Redis

from chorequest.core.config import settings

logger = logging.getLogger("chorequest.queue")

PENDING_MARKER_TTL_SECONDS = 6 * 60 * 60


@dataclass(frozen=True)
class JobEnvelope:
    id: str
    type: str
    payload: dict[str, Any]
    created_at: str
    dedupe_key: str | None = None

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=True)

    @classmethod
    def from_json(cls, raw: str) -> JobEnvelope:
        data = json.loads(raw)
        return cls(
            id=str(data["id"]),
            type=str(data["type"]),
            payload=dict(data.get("payload") or {}),
            created_at=str(data["created_at"]),
            dedupe_key=data.get("dedupe_key"),
        )


def redis_client() -> Redis:
    return Redis.from_url(settings.redis_url, decode_responses=True, encoding="utf-8")


def _pending_marker(dedupe_key: str) -> str:
    return f"{settings.queue_name}:pending:{dedupe_key}"


def enqueue_job(
    job_type: str,
    payload: dict[str, Any] | None = None,
    *,
    dedupe_key: str | None = None,
    client: Redis | None = None,
) -> str | None:
    """Push a job onto the queue.

    With ``dedupe_key`` the job is skipped (returns None) while an earlier job
    with the same key is still waiting or running.
    """
    job = JobEnvelope(
        id=str(uuid4()),
        type=job_type,
        payload=payload or {},
        created_at=datetime.now(UTC).isoformat(),
        dedupe_key=dedupe_key,
    )
    redis = client or redis_client()
    try:
        if dedupe_key is not None:
            acquired = redis.set(_pending_marker(dedupe_key), job.id, nx=True, ex=PENDING_MARKER_TTL_SECONDS)
            if not acquired:
                logger.info("queue.job.deduplicated", extra={"job_type": job_type})
                return None
        redis.rpush(settings.queue_name, job.to_json())
    finally:
        if client is None:
            redis.close()
    return job.id


def dequeue_job(block_timeout_seconds: int = 5, *, client: Redis | None = None) -> JobEnvelope | None:
    redis = client or redis_client()
    try:
        result = redis.blpop(settings.queue_name, timeout=block_timeout_seconds)
    finally:
        if client is None:
            redis.close()

    if result is None:
        return None
    _queue_name, raw_job = result
    return JobEnvelope.from_json(raw_job)


def release_job(job: JobEnvelope, *, client: Redis | None = None) -> None:
    if job.dedupe_key is None:
        return
    redis = client or redis_client()
    try:
        redis.delete(_pending_marker(job.dedupe_key))
    finally:
        if client is None:
            redis.close()
