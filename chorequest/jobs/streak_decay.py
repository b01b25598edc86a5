from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from chorequest.core.clock import local_today
from chorequest.models import Kid
from chorequest.services.streaks import decay_streak

logger = logging.getLogger("chorequest.jobs.streak_decay")


def decay_stale_streaks(db: Session, *, today: date | None = None) -> dict[str, Any]:
    current_day = today or local_today()
    kids = db.scalars(select(Kid).where(Kid.current_streak > 0).order_by(Kid.id.asc())).all()

    reset_ids: list[int] = []
    for kid in kids:
        if decay_streak(kid, today=current_day):
            reset_ids.append(kid.id)

    for kid_id in reset_ids:
        logger.info("streak.reset", extra={"kid_id": kid_id})
    return {"checked": len(kids), "reset": len(reset_ids), "kid_ids": reset_ids}
