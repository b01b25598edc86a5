from __future__ import annotations

from collections.abc import Iterator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from chorequest.core.exceptions import NotFoundError
from chorequest.db.session import SessionLocal
from chorequest.models import Family
from chorequest.services.notifications import LevelUpNotifier


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


DBSession = Annotated[Session, Depends(get_db)]


def get_notifier(request: Request) -> LevelUpNotifier:
    return request.app.state.level_up_notifier


Notifier = Annotated[LevelUpNotifier, Depends(get_notifier)]


def get_family_or_404(db: Session, family_id: int) -> Family:
    family = db.get(Family, family_id)
    if family is None:
        raise NotFoundError("family", family_id)
    return family
