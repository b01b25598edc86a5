from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from chorequest.core.clock import local_today
from chorequest.models import EventLog, Kid
from chorequest.services.streaks import register_activity

logger = logging.getLogger("chorequest.events")

ACTIVITY_LABELS: dict[str, str] = {
    "chore.completed": "Quest Completed",
    "chore.approved": "Quest Approved",
    "kid.level_up": "Level Up!",
    "reward.redeemed": "Reward Redeemed",
}
ACTIVITY_LIMIT = 20


class EventService:
    def __init__(self, db: Session):
        self.db = db

    def emit(
        self,
        type: str,
        family_id: int,
        kid_id: int | None = None,
        payload: dict[str, Any] | None = None,
    ) -> EventLog:
        event = EventLog(
            family_id=family_id,
            kid_id=kid_id,
            type=type,
            payload=payload or {},
        )
        self.db.add(event)
        self.db.flush()

        self.streak_handler(event)
        return event

    def streak_handler(self, event: EventLog) -> None:
        if event.type != "chore.completed" or event.kid_id is None:
            return

        kid = self.db.get(Kid, event.kid_id)
        if kid is None:
            return

        raw_date = event.payload.get("date")
        try:
            activity_date = date.fromisoformat(raw_date) if isinstance(raw_date, str) else local_today()
        except ValueError:
            activity_date = local_today()

        if register_activity(kid, activity_date=activity_date):
            logger.info(
                "streak.updated",
                extra={"kid_id": kid.id, "family_id": kid.family_id, "result": kid.current_streak},
            )


def list_kid_activity(db: Session, kid_id: int, *, limit: int = ACTIVITY_LIMIT) -> list[EventLog]:
    """Newest-first timeline of the events a kid's activity feed shows."""
    return list(
        db.scalars(
            select(EventLog)
            .where(EventLog.kid_id == kid_id, EventLog.type.in_(tuple(ACTIVITY_LABELS)))
            .order_by(EventLog.created_at.desc(), EventLog.id.desc())
            .limit(limit),
        ).all(),
    )
