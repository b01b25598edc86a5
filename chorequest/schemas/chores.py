from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Difficulty = Literal["easy", "medium", "hard"]
Status = Literal["pending", "completed", "approved"]
Pattern = Literal["daily", "weekly"]


class ChoreCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    points: int = Field(ge=1, le=100)
    assigned_to: int | None = None
    due_date: date | None = None
    difficulty: Difficulty = "easy"
    recurrence_pattern: Pattern | None = None


class ChoreUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    points: int | None = Field(default=None, ge=1, le=100)
    assigned_to: int | None = None
    due_date: date | None = None
    difficulty: Difficulty | None = None
    status: Status | None = None
    recurrence_pattern: Pattern | None = None


class ChoreOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    family_id: int
    title: str
    description: str | None
    points: int
    assigned_to: int | None
    due_date: date | None
    difficulty: str
    status: str
    is_recurring: bool
    recurrence_pattern: str | None
    recurrence_label: str
    parent_chore_id: int | None
    updated_at: datetime


class RecurringChoreGroupsOut(BaseModel):
    daily: list[ChoreOut]
    weekly: list[ChoreOut]
    one_time: list[ChoreOut]


class LevelUpOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    family_id: int
    kid_id: int
    kid_name: str
    previous_level: int
    new_level: int
    xp_gained: int


class ChoreApprovalResponse(BaseModel):
    chore: ChoreOut
    xp_awarded: int
    points_awarded: int
    level_up: LevelUpOut | None


class RecurringRunResponse(BaseModel):
    checked: int
    created: int
    chore_ids: list[int]
