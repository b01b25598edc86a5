from __future__ import annotations

from pydantic import BaseModel


class LevelResponse(BaseModel):
    kid_id: int
    total_xp: int
    level: int
    current_level_xp: int
    next_level_xp: int
    progress_percentage: float
    xp_to_next_level: int
