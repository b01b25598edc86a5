from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chorequest.core.clock import ensure_utc, local_date, utc_now
from chorequest.core.config import settings
from chorequest.core.exceptions import InvalidTransitionError, NotFoundError
from chorequest.models import Chore, ChoreDifficulty, ChoreStatus, Kid, RecurrencePattern
from chorequest.services.events import EventService
from chorequest.services.levels import check_level_up, xp_for_difficulty
from chorequest.services.notifications import LevelUpEvent

logger = logging.getLogger("chorequest.chores")

EDITABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "points",
        "assigned_to",
        "due_date",
        "difficulty",
        "status",
        "recurrence_pattern",
    },
)


@dataclass(slots=True)
class ApprovalResult:
    chore: Chore
    kid: Kid | None
    xp_awarded: int
    points_awarded: int
    level_up: LevelUpEvent | None


def _status_of(chore: Chore) -> ChoreStatus:
    return ChoreStatus(chore.status)


def mark_done(chore: Chore, *, now: datetime | None = None) -> Chore:
    current = _status_of(chore)
    if current != ChoreStatus.PENDING:
        raise InvalidTransitionError(chore.id, current.value, ChoreStatus.COMPLETED.value)

    chore.status = ChoreStatus.COMPLETED
    chore.updated_at = now or utc_now()
    return chore


def approve(chore: Chore, kid: Kid | None, *, now: datetime | None = None) -> ApprovalResult:
    current = _status_of(chore)
    if current != ChoreStatus.COMPLETED:
        raise InvalidTransitionError(chore.id, current.value, ChoreStatus.APPROVED.value)
    if chore.assigned_to is not None and (kid is None or kid.id != chore.assigned_to):
        raise ValueError("kid must be the chore assignee")
    if chore.assigned_to is None:
        kid = None

    chore.status = ChoreStatus.APPROVED
    chore.updated_at = now or utc_now()

    if kid is None:
        return ApprovalResult(chore=chore, kid=None, xp_awarded=0, points_awarded=0, level_up=None)

    xp_reward = xp_for_difficulty(chore.difficulty)
    previous_xp = kid.total_xp
    kid.total_xp = previous_xp + xp_reward
    kid.points += chore.points

    level_check = check_level_up(previous_xp, kid.total_xp)
    level_up = None
    if level_check.leveled_up:
        level_up = LevelUpEvent(
            family_id=kid.family_id,
            kid_id=kid.id,
            kid_name=kid.name,
            previous_level=level_check.previous_level,
            new_level=level_check.new_level,
            xp_gained=xp_reward,
        )

    return ApprovalResult(
        chore=chore,
        kid=kid,
        xp_awarded=xp_reward,
        points_awarded=chore.points,
        level_up=level_up,
    )


def edit_chore(
    chore: Chore,
    changes: Mapping[str, Any],
    *,
    now: datetime | None = None,
    allow_status_override: bool | None = None,
) -> Chore:
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown chore fields: {', '.join(sorted(unknown))}")

    allow_override = settings.allow_status_override if allow_status_override is None else allow_status_override
    if "status" in changes:
        new_status = ChoreStatus(changes["status"])
        current = _status_of(chore)
        if new_status != current:
            if not allow_override:
                raise InvalidTransitionError(chore.id, current.value, new_status.value)
            chore.status = new_status
            chore.updated_at = now or utc_now()

    for field in ("title", "description", "points", "assigned_to", "due_date"):
        if field in changes:
            setattr(chore, field, changes[field])
    if "difficulty" in changes:
        chore.difficulty = ChoreDifficulty(changes["difficulty"] or ChoreDifficulty.EASY)
    if "recurrence_pattern" in changes:
        pattern = changes["recurrence_pattern"]
        chore.recurrence_pattern = RecurrencePattern(pattern) if pattern else None
        chore.is_recurring = chore.recurrence_pattern is not None
    return chore


def is_active(chore: Chore, *, now: datetime | None = None, visibility_hours: int | None = None) -> bool:
    if _status_of(chore) != ChoreStatus.APPROVED:
        return True
    hours = settings.approved_visibility_hours if visibility_hours is None else visibility_hours
    elapsed = ensure_utc(now or utc_now()) - ensure_utc(chore.updated_at)
    return elapsed <= timedelta(hours=hours)


def filter_active_chores(
    chores: Iterable[Chore],
    *,
    now: datetime | None = None,
    visibility_hours: int | None = None,
) -> list[Chore]:
    read_time = now or utc_now()
    return [chore for chore in chores if is_active(chore, now=read_time, visibility_hours=visibility_hours)]


def get_chore(db: Session, chore_id: int) -> Chore:
    chore = db.get(Chore, chore_id)
    if chore is None:
        raise NotFoundError("chore", chore_id)
    return chore


def mark_chore_done(db: Session, *, chore_id: int, now: datetime | None = None) -> Chore:
    chore = get_chore(db, chore_id)
    at = now or utc_now()
    mark_done(chore, now=at)

    try:
        EventService(db).emit(
            type="chore.completed",
            family_id=chore.family_id,
            kid_id=chore.assigned_to,
            payload={"chore_id": chore.id, "date": local_date(at).isoformat()},
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(
        "chore.completed",
        extra={"chore_id": chore.id, "family_id": chore.family_id, "kid_id": chore.assigned_to},
    )
    return chore


def approve_chore(db: Session, *, chore_id: int, now: datetime | None = None) -> ApprovalResult:
    chore = get_chore(db, chore_id)
    kid = None
    if chore.assigned_to is not None:
        kid = db.get(Kid, chore.assigned_to)
        if kid is None:
            raise NotFoundError("kid", chore.assigned_to)

    result = approve(chore, kid, now=now)
    payload: dict[str, Any] = {
        "chore_id": chore.id,
        "xp_reward": result.xp_awarded,
        "points_reward": result.points_awarded,
    }
    if result.level_up is not None:
        payload["new_level"] = result.level_up.new_level

    try:
        events = EventService(db)
        events.emit(type="chore.approved", family_id=chore.family_id, kid_id=chore.assigned_to, payload=payload)
        if result.level_up is not None:
            events.emit(
                type="kid.level_up",
                family_id=chore.family_id,
                kid_id=result.level_up.kid_id,
                payload={
                    "previous_level": result.level_up.previous_level,
                    "new_level": result.level_up.new_level,
                },
            )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(
        "chore.approved",
        extra={
            "chore_id": chore.id,
            "family_id": chore.family_id,
            "kid_id": chore.assigned_to,
            "xp_reward": result.xp_awarded,
            "points_reward": result.points_awarded,
            "new_level": result.level_up.new_level if result.level_up else None,
        },
    )
    return result


def update_chore(
    db: Session,
    *,
    chore_id: int,
    changes: Mapping[str, Any],
    now: datetime | None = None,
) -> Chore:
    chore = get_chore(db, chore_id)
    if changes.get("assigned_to") is not None:
        kid = db.get(Kid, changes["assigned_to"])
        if kid is None or kid.family_id != chore.family_id:
            raise NotFoundError("kid", changes["assigned_to"])

    try:
        edit_chore(chore, changes, now=now)
    except (ValueError, InvalidTransitionError):
        db.rollback()
        raise

    try:
        EventService(db).emit(
            type="chore.updated",
            family_id=chore.family_id,
            kid_id=chore.assigned_to,
            payload={"chore_id": chore.id, "fields": sorted(changes)},
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return chore


def delete_chore(db: Session, *, chore_id: int) -> Chore:
    chore = get_chore(db, chore_id)
    try:
        db.delete(chore)
        EventService(db).emit(
            type="chore.deleted",
            family_id=chore.family_id,
            kid_id=chore.assigned_to,
            payload={"chore_id": chore.id},
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info("chore.deleted", extra={"chore_id": chore.id, "family_id": chore.family_id})
    return chore
