from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RewardCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    cost: int = Field(ge=1, le=500)
    icon: str | None = Field(default=None, max_length=32)


class RewardOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    family_id: int
    title: str
    description: str | None
    cost: int
    icon: str | None


class RewardRedeemRequest(BaseModel):
    kid_id: int


class RewardRedeemResponse(BaseModel):
    reward_id: int
    kid_id: int
    points: int
