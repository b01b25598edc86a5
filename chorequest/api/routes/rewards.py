from __future__ import annotations

from fastapi import APIRouter, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from chorequest.api.deps import DBSession, get_family_or_404
from chorequest.models import Reward
from chorequest.schemas.rewards import (
    RewardCreateRequest,
    RewardOut,
    RewardRedeemRequest,
    RewardRedeemResponse,
)
from chorequest.services.rewards import redeem_reward

router = APIRouter(tags=["rewards"])


@router.get("/families/{family_id}/rewards", response_model=list[RewardOut])
def list_rewards(family_id: int, db: DBSession) -> list[RewardOut]:
    get_family_or_404(db, family_id)
    rewards = db.scalars(select(Reward).where(Reward.family_id == family_id).order_by(Reward.cost.asc())).all()
    return [RewardOut.model_validate(reward) for reward in rewards]


@router.post("/families/{family_id}/rewards", response_model=RewardOut, status_code=status.HTTP_201_CREATED)
def create_reward(family_id: int, payload: RewardCreateRequest, db: DBSession) -> RewardOut:
    get_family_or_404(db, family_id)
    reward = Reward(
        family_id=family_id,
        title=payload.title,
        description=payload.description,
        cost=payload.cost,
        icon=payload.icon,
    )
    try:
        db.add(reward)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return RewardOut.model_validate(reward)


@router.post("/rewards/{reward_id}/redeem", response_model=RewardRedeemResponse)
def redeem(reward_id: int, payload: RewardRedeemRequest, db: DBSession) -> RewardRedeemResponse:
    kid = redeem_reward(db, reward_id=reward_id, kid_id=payload.kid_id)
    return RewardRedeemResponse(reward_id=reward_id, kid_id=kid.id, points=kid.points)
