from __future__ import annotations

from fastapi import APIRouter

from chorequest.api.deps import DBSession, Notifier, get_family_or_404
from chorequest.schemas.chores import LevelUpOut

router = APIRouter(prefix="/families/{family_id}/notifications", tags=["notifications"])


@router.get("/level-up", response_model=LevelUpOut | None)
def get_level_up(family_id: int, db: DBSession, notifier: Notifier) -> LevelUpOut | None:
    get_family_or_404(db, family_id)
    event = notifier.current(family_id)
    return LevelUpOut.model_validate(event) if event is not None else None


@router.post("/level-up/dismiss", response_model=LevelUpOut | None)
def dismiss_level_up(family_id: int, db: DBSession, notifier: Notifier) -> LevelUpOut | None:
    get_family_or_404(db, family_id)
    event = notifier.dismiss(family_id)
    return LevelUpOut.model_validate(event) if event is not None else None
