from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chorequest.core.exceptions import InsufficientPointsError, NotFoundError
from chorequest.models import Kid, Reward
from chorequest.services.events import EventService

logger = logging.getLogger("chorequest.rewards")


def redeem(kid: Kid, reward: Reward) -> int:
    if kid.points < reward.cost:
        raise InsufficientPointsError(kid.id, kid.points, reward.cost)
    kid.points -= reward.cost
    return kid.points


def redeem_reward(db: Session, *, reward_id: int, kid_id: int) -> Kid:
    reward = db.get(Reward, reward_id)
    if reward is None:
        raise NotFoundError("reward", reward_id)
    kid = db.get(Kid, kid_id)
    if kid is None or kid.family_id != reward.family_id:
        raise NotFoundError("kid", kid_id)

    redeem(kid, reward)
    try:
        EventService(db).emit(
            type="reward.redeemed",
            family_id=kid.family_id,
            kid_id=kid.id,
            payload={"reward_id": reward.id, "cost": reward.cost, "balance": kid.points},
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info("reward.redeemed", extra={"kid_id": kid.id, "reward_id": reward.id, "family_id": kid.family_id})
    return kid
