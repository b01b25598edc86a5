from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chorequest.api.deps import DBSession, get_family_or_404
from chorequest.core.clock import local_today
from chorequest.core.exceptions import NotFoundError
from chorequest.models import Family, Kid
from chorequest.schemas.kids import (
    ActivityEntryOut,
    FamilyCreateRequest,
    FamilyOut,
    KidCreateRequest,
    KidOut,
    StreakResponse,
)
from chorequest.schemas.levels import LevelResponse
from chorequest.services.events import ACTIVITY_LABELS, ACTIVITY_LIMIT, list_kid_activity
from chorequest.services.levels import get_level_info
from chorequest.services.streaks import get_streak_snapshot

router = APIRouter(tags=["kids"])


def _get_kid_or_404(db: Session, kid_id: int) -> Kid:
    kid = db.get(Kid, kid_id)
    if kid is None:
        raise NotFoundError("kid", kid_id)
    return kid


@router.post("/families", response_model=FamilyOut, status_code=status.HTTP_201_CREATED)
def create_family(payload: FamilyCreateRequest, db: DBSession) -> FamilyOut:
    family = Family(name=payload.name)
    try:
        db.add(family)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return FamilyOut.model_validate(family)


@router.get("/families/{family_id}", response_model=FamilyOut)
def get_family(family_id: int, db: DBSession) -> FamilyOut:
    return FamilyOut.model_validate(get_family_or_404(db, family_id))


@router.get("/families/{family_id}/kids", response_model=list[KidOut])
def list_kids(family_id: int, db: DBSession) -> list[KidOut]:
    get_family_or_404(db, family_id)
    kids = db.scalars(select(Kid).where(Kid.family_id == family_id).order_by(Kid.id.asc())).all()
    return [KidOut.model_validate(kid) for kid in kids]


@router.post("/families/{family_id}/kids", response_model=KidOut, status_code=status.HTTP_201_CREATED)
def create_kid(family_id: int, payload: KidCreateRequest, db: DBSession) -> KidOut:
    get_family_or_404(db, family_id)
    kid = Kid(
        family_id=family_id,
        name=payload.name,
        avatar_url=payload.avatar_url,
        points=0,
        total_xp=0,
        current_streak=0,
        longest_streak=0,
    )
    try:
        db.add(kid)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return KidOut.model_validate(kid)


@router.get("/kids/{kid_id}/levels", response_model=LevelResponse)
def get_levels(kid_id: int, db: DBSession) -> LevelResponse:
    kid = _get_kid_or_404(db, kid_id)
    info = get_level_info(kid.total_xp)
    return LevelResponse(
        kid_id=kid.id,
        total_xp=kid.total_xp,
        level=info.level,
        current_level_xp=info.current_level_xp,
        next_level_xp=info.next_level_xp,
        progress_percentage=info.progress_percentage,
        xp_to_next_level=info.xp_to_next_level,
    )


@router.get("/kids/{kid_id}/streak", response_model=StreakResponse)
def get_streak(kid_id: int, db: DBSession) -> StreakResponse:
    kid = _get_kid_or_404(db, kid_id)
    snapshot = get_streak_snapshot(kid, today=local_today())
    return StreakResponse(
        kid_id=kid.id,
        current_streak=snapshot.current_streak,
        longest_streak=snapshot.longest_streak,
        last_activity_date=snapshot.last_activity_date,
        is_active=snapshot.is_active,
    )


@router.get("/kids/{kid_id}/activity", response_model=list[ActivityEntryOut])
def get_activity(
    kid_id: int,
    db: DBSession,
    limit: Annotated[int, Query(ge=1, le=100)] = ACTIVITY_LIMIT,
) -> list[ActivityEntryOut]:
    _get_kid_or_404(db, kid_id)
    return [
        ActivityEntryOut(
            id=event.id,
            type=event.type,
            label=ACTIVITY_LABELS[event.type],
            xp_earned=event.payload.get("xp_reward"),
            points_earned=event.payload.get("points_reward"),
            payload=event.payload,
            created_at=event.created_at,
        )
        for event in list_kid_activity(db, kid_id, limit=limit)
    ]
