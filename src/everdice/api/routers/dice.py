"""Dice roller endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import Field

from everdice.api.deps import get_db, get_user_id
from everdice.engine.dice import DEFAULT_DIE, get_dice_roller
from everdice.models.base import EverdiceModel
from everdice.models.dice import DiceRoll
from everdice.storage.database import Database


router = APIRouter(prefix="/dice", tags=["dice"])


class RollRequest(EverdiceModel):
    dice_type: str = DEFAULT_DIE
    count: int = Field(default=1, ge=1, le=100)
    modifier: int = 0
    purpose: str | None = None
    character_id: int | None = None
    campaign_id: int | None = None


class RollResponse(EverdiceModel):
    """A stored roll together with the individual dice."""

    roll: DiceRoll
    rolls: list[int]
    total: int
    is_critical: bool
    is_fumble: bool


@router.post("/roll", response_model=RollResponse, status_code=201)
def roll_dice(
    request: RollRequest,
    db: Database = Depends(get_db),
    user_id: int = Depends(get_user_id),
) -> RollResponse:
    result = get_dice_roller().roll_pool(request.dice_type, request.count, request.modifier)
    stored = db.create_dice_roll(
        DiceRoll(
            user_id=user_id,
            character_id=request.character_id,
            campaign_id=request.campaign_id,
            dice_type=result.dice_type,
            result=result.total,
            modifier=result.modifier,
            count=result.count,
            purpose=request.purpose,
        )
    )
    return RollResponse(
        roll=stored,
        rolls=result.rolls,
        total=result.total,
        is_critical=result.is_critical,
        is_fumble=result.is_fumble,
    )


@router.get("/history", response_model=list[DiceRoll])
def roll_history(
    limit: int = Query(default=10, ge=1, le=100),
    db: Database = Depends(get_db),
    user_id: int = Depends(get_user_id),
) -> list[DiceRoll]:
    return db.get_dice_roll_history(user_id, limit)
