from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FamilyCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)


class FamilyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class KidCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    avatar_url: str | None = None


class KidOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    family_id: int
    name: str
    avatar_url: str | None
    points: int
    total_xp: int
    current_streak: int
    longest_streak: int
    last_activity_date: date | None


class StreakResponse(BaseModel):
    kid_id: int
    current_streak: int
    longest_streak: int
    last_activity_date: date | None
    is_active: bool


class ActivityEntryOut(BaseModel):
    id: int
    type: str
    label: str
    xp_earned: int | None = None
    points_earned: int | None = None
    payload: dict[str, Any]
    created_at: datetime
