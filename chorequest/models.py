from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    false,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from chorequest.core.clock import utc_now
from chorequest.db.base import Base


class ChoreStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    APPROVED = "approved"


class ChoreDifficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class RecurrencePattern(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"


def _enum_values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class Family(Base):
    __tablename__ = "families"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )


class Kid(Base):
    __tablename__ = "kids"
    __table_args__ = (Index("ix_kids_family_id", "family_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    family_id: Mapped[int] = mapped_column(ForeignKey("families.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    total_xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    longest_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    last_activity_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )


class Chore(Base):
    __tablename__ = "chores"
    __table_args__ = (
        Index("ix_chores_family_id_status", "family_id", "status"),
        Index("ix_chores_parent_chore_id", "parent_chore_id"),
        CheckConstraint(
            "(is_recurring AND recurrence_pattern IS NOT NULL) OR (NOT is_recurring AND recurrence_pattern IS NULL)",
            name="ck_chores_recurring_pattern",
        ),
        CheckConstraint("points BETWEEN 1 AND 100", name="ck_chores_points_range"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    family_id: Mapped[int] = mapped_column(ForeignKey("families.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    assigned_to: Mapped[int | None] = mapped_column(ForeignKey("kids.id"), nullable=True)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    difficulty: Mapped[ChoreDifficulty] = mapped_column(
        SqlEnum(ChoreDifficulty, name="chore_difficulty", values_callable=_enum_values),
        nullable=False,
        default=ChoreDifficulty.EASY,
        server_default=text("'easy'"),
    )
    status: Mapped[ChoreStatus] = mapped_column(
        SqlEnum(ChoreStatus, name="chore_status", values_callable=_enum_values),
        nullable=False,
        default=ChoreStatus.PENDING,
        server_default=text("'pending'"),
    )
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    recurrence_pattern: Mapped[RecurrencePattern | None] = mapped_column(
        SqlEnum(RecurrencePattern, name="recurrence_pattern", values_callable=_enum_values),
        nullable=True,
    )
    parent_chore_id: Mapped[int | None] = mapped_column(
        ForeignKey("chores.id", ondelete="SET NULL"),
        nullable=True,
    )
    # Stays true after the template is deleted and parent_chore_id is nulled.
    is_instance: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    last_generated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )

    @property
    def is_template(self) -> bool:
        return self.is_recurring and not self.is_instance


class Reward(Base):
    __tablename__ = "rewards"
    __table_args__ = (CheckConstraint("cost BETWEEN 1 AND 500", name="ck_rewards_cost_range"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    family_id: Mapped[int] = mapped_column(ForeignKey("families.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    cost: Mapped[int] = mapped_column(Integer, nullable=False)
    icon: Mapped[str | None] = mapped_column(String(32), nullable=True)


class EventLog(Base):
    __tablename__ = "event_log"
    __table_args__ = (
        Index("ix_event_log_family_id_created_at", "family_id", "created_at"),
        Index("ix_event_log_kid_id_created_at", "kid_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    family_id: Mapped[int] = mapped_column(ForeignKey("families.id"), nullable=False)
    kid_id: Mapped[int | None] = mapped_column(ForeignKey("kids.id"), nullable=True)
    type: Mapped[str] = mapped_column(String(255), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )
