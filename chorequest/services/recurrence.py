from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chorequest.core.clock import local_date, local_today, utc_now
from chorequest.models import Chore, ChoreStatus, RecurrencePattern
from chorequest.services.events import EventService

logger = logging.getLogger("chorequest.recurrence")

WEEKLY_PERIOD_DAYS = 7

RECURRENCE_LABELS: dict[RecurrencePattern, str] = {
    RecurrencePattern.DAILY: "Daily",
    RecurrencePattern.WEEKLY: "Weekly",
}


@dataclass(slots=True)
class RecurringRunSummary:
    checked: int = 0
    created: int = 0
    chore_ids: list[int] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class RecurrenceGroups:
    daily: list[Chore]
    weekly: list[Chore]
    one_time: list[Chore]


def _coerce_date(value: datetime | date | str) -> date:
    if isinstance(value, str):
        return local_date(datetime.fromisoformat(value))
    return local_date(value)


def should_create_instance(
    chore: Chore,
    last_updated_at: datetime | date | str,
    *,
    today: date | None = None,
) -> bool:
    if not chore.is_recurring:
        return False

    last_updated = _coerce_date(last_updated_at)
    current_day = today or local_today()

    if chore.recurrence_pattern == RecurrencePattern.DAILY:
        return last_updated < current_day
    if chore.recurrence_pattern == RecurrencePattern.WEEKLY:
        return last_updated <= current_day - timedelta(days=WEEKLY_PERIOD_DAYS)
    return False


def next_due_date(pattern: RecurrencePattern | str | None, *, today: date | None = None) -> date | None:
    current_day = today or local_today()
    if pattern == RecurrencePattern.DAILY:
        return current_day + timedelta(days=1)
    if pattern == RecurrencePattern.WEEKLY:
        return current_day + timedelta(days=WEEKLY_PERIOD_DAYS)
    return None


def recurrence_label(pattern: RecurrencePattern | str | None) -> str:
    try:
        return RECURRENCE_LABELS[RecurrencePattern(pattern)]
    except ValueError:
        return "One-time"


def group_by_recurrence(chores: Iterable[Chore]) -> RecurrenceGroups:
    items = list(chores)
    return RecurrenceGroups(
        daily=[chore for chore in items if chore.recurrence_pattern == RecurrencePattern.DAILY],
        weekly=[chore for chore in items if chore.recurrence_pattern == RecurrencePattern.WEEKLY],
        one_time=[chore for chore in items if not chore.is_recurring],
    )


def generation_anchor(template: Chore) -> datetime:
    """When the template last produced an instance, or its last update if never."""
    return template.last_generated_at or template.updated_at


def build_instance(template: Chore, *, today: date | None = None, now: datetime | None = None) -> Chore:
    created_at = now or utc_now()
    return Chore(
        family_id=template.family_id,
        title=template.title,
        description=template.description,
        points=template.points,
        assigned_to=template.assigned_to,
        difficulty=template.difficulty,
        recurrence_pattern=template.recurrence_pattern,
        is_recurring=template.recurrence_pattern is not None,
        is_instance=True,
        due_date=next_due_date(template.recurrence_pattern, today=today or local_date(created_at)),
        status=ChoreStatus.PENDING,
        parent_chore_id=template.id,
        created_at=created_at,
        updated_at=created_at,
    )


def process_recurring_chores(db: Session, *, now: datetime | None = None) -> RecurringRunSummary:
    """Materialize every recurring template that is due as of ``now``.

    Each template is handled in its own transaction: the instance insert and
    the template's ``last_generated_at`` stamp commit together, so a re-run in
    the same period finds nothing due. ``updated_at`` is left alone; it drives
    the approved-chore visibility window.
    """
    run_at = now or utc_now()
    today = local_date(run_at)
    summary = RecurringRunSummary()

    template_ids = db.scalars(
        select(Chore.id)
        .where(Chore.is_recurring.is_(True), Chore.is_instance.is_(False))
        .order_by(Chore.id.asc()),
    ).all()

    for template_id in template_ids:
        try:
            template = db.scalar(
                select(Chore).where(Chore.id == template_id).with_for_update(skip_locked=True),
            )
            # Deleted or edited since the listing, or locked by a concurrent run.
            if template is None or not template.is_template:
                db.rollback()
                continue

            summary.checked += 1
            if not should_create_instance(template, generation_anchor(template), today=today):
                db.rollback()
                continue

            instance = build_instance(template, today=today, now=run_at)
            db.add(instance)
            template.last_generated_at = run_at
            db.flush()

            EventService(db).emit(
                type="chore.recurring.created",
                family_id=template.family_id,
                kid_id=template.assigned_to,
                payload={"chore_id": instance.id, "template_id": template.id},
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

        summary.created += 1
        summary.chore_ids.append(instance.id)
        logger.info(
            "recurring.instance.created",
            extra={"chore_id": instance.id, "template_id": template.id, "family_id": template.family_id},
        )

    logger.info("recurring.run.completed", extra={"checked": summary.checked, "created": summary.created})
    return summary
