from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Query, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from chorequest.api.deps import DBSession, Notifier, get_family_or_404
from chorequest.core.clock import utc_now
from chorequest.core.exceptions import NotFoundError
from chorequest.models import Chore, ChoreDifficulty, ChoreStatus, Kid, RecurrencePattern
from chorequest.schemas.chores import (
    ChoreApprovalResponse,
    ChoreCreateRequest,
    ChoreOut,
    ChoreUpdateRequest,
    LevelUpOut,
    RecurringChoreGroupsOut,
    RecurringRunResponse,
)
from chorequest.services.chore_lifecycle import (
    approve_chore,
    delete_chore,
    filter_active_chores,
    mark_chore_done,
    update_chore,
)
from chorequest.services.events import EventService
from chorequest.services.recurrence import group_by_recurrence, process_recurring_chores, recurrence_label

router = APIRouter(tags=["chores"])
logger = logging.getLogger("chorequest.api.chores")

NULLABLE_FIELDS = frozenset({"description", "assigned_to", "due_date", "recurrence_pattern"})


def _chore_out(chore: Chore) -> ChoreOut:
    return ChoreOut(
        id=chore.id,
        family_id=chore.family_id,
        title=chore.title,
        description=chore.description,
        points=chore.points,
        assigned_to=chore.assigned_to,
        due_date=chore.due_date,
        difficulty=ChoreDifficulty(chore.difficulty).value,
        status=ChoreStatus(chore.status).value,
        is_recurring=chore.is_recurring,
        recurrence_pattern=RecurrencePattern(chore.recurrence_pattern).value if chore.recurrence_pattern else None,
        recurrence_label=recurrence_label(chore.recurrence_pattern),
        parent_chore_id=chore.parent_chore_id,
        updated_at=chore.updated_at,
    )


@router.get("/families/{family_id}/chores", response_model=list[ChoreOut])
def list_chores(
    family_id: int,
    db: DBSession,
    active: Annotated[bool, Query()] = False,
) -> list[ChoreOut]:
    get_family_or_404(db, family_id)
    chores = db.scalars(
        select(Chore).where(Chore.family_id == family_id).order_by(Chore.created_at.desc(), Chore.id.desc()),
    ).all()
    if active:
        chores = filter_active_chores(chores, now=utc_now())
    return [_chore_out(chore) for chore in chores]


@router.get("/families/{family_id}/chores/recurring", response_model=RecurringChoreGroupsOut)
def list_recurring_chores(family_id: int, db: DBSession) -> RecurringChoreGroupsOut:
    get_family_or_404(db, family_id)
    chores = db.scalars(
        select(Chore)
        .where(Chore.family_id == family_id, Chore.is_instance.is_(False))
        .order_by(Chore.title.asc(), Chore.id.asc()),
    ).all()
    groups = group_by_recurrence(chores)
    return RecurringChoreGroupsOut(
        daily=[_chore_out(chore) for chore in groups.daily],
        weekly=[_chore_out(chore) for chore in groups.weekly],
        one_time=[_chore_out(chore) for chore in groups.one_time],
    )


@router.post("/families/{family_id}/chores", response_model=ChoreOut, status_code=status.HTTP_201_CREATED)
def create_chore(
    family_id: int,
    payload: ChoreCreateRequest,
    db: DBSession,
) -> ChoreOut:
    get_family_or_404(db, family_id)
    if payload.assigned_to is not None:
        kid = db.get(Kid, payload.assigned_to)
        if kid is None or kid.family_id != family_id:
            raise NotFoundError("kid", payload.assigned_to)

    now = utc_now()
    pattern = RecurrencePattern(payload.recurrence_pattern) if payload.recurrence_pattern else None
    chore = Chore(
        family_id=family_id,
        title=payload.title,
        description=payload.description,
        points=payload.points,
        assigned_to=payload.assigned_to,
        due_date=payload.due_date,
        difficulty=ChoreDifficulty(payload.difficulty),
        status=ChoreStatus.PENDING,
        is_recurring=pattern is not None,
        recurrence_pattern=pattern,
        created_at=now,
        updated_at=now,
    )
    try:
        db.add(chore)
        db.flush()
        EventService(db).emit(
            type="chore.created",
            family_id=family_id,
            kid_id=chore.assigned_to,
            payload={"chore_id": chore.id},
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info("chore.created", extra={"chore_id": chore.id, "family_id": family_id})
    return _chore_out(chore)


@router.put("/chores/{chore_id}", response_model=ChoreOut)
def edit_chore(
    chore_id: int,
    payload: ChoreUpdateRequest,
    db: DBSession,
) -> ChoreOut:
    changes = {
        key: value
        for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or key in NULLABLE_FIELDS
    }
    chore = update_chore(db, chore_id=chore_id, changes=changes, now=utc_now())
    return _chore_out(chore)


@router.delete("/chores/{chore_id}", response_model=ChoreOut)
def remove_chore(chore_id: int, db: DBSession) -> ChoreOut:
    return _chore_out(delete_chore(db, chore_id=chore_id))


@router.post("/chores/{chore_id}/done", response_model=ChoreOut)
def mark_done(chore_id: int, db: DBSession) -> ChoreOut:
    return _chore_out(mark_chore_done(db, chore_id=chore_id, now=utc_now()))


@router.post("/chores/{chore_id}/approve", response_model=ChoreApprovalResponse)
def approve(chore_id: int, db: DBSession, notifier: Notifier) -> ChoreApprovalResponse:
    result = approve_chore(db, chore_id=chore_id, now=utc_now())
    if result.level_up is not None:
        notifier.notify(result.level_up)

    return ChoreApprovalResponse(
        chore=_chore_out(result.chore),
        xp_awarded=result.xp_awarded,
        points_awarded=result.points_awarded,
        level_up=LevelUpOut.model_validate(result.level_up) if result.level_up else None,
    )


@router.post("/chores/recurring/process", response_model=RecurringRunResponse)
def run_recurring_check(db: DBSession) -> RecurringRunResponse:
    summary = process_recurring_chores(db, now=utc_now())
    return RecurringRunResponse(checked=summary.checked, created=summary.created, chore_ids=summary.chore_ids)
