"""Character endpoints, including XP awards and milestone levelling."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import Field

from everdice.api.deps import get_db, get_user_id
from everdice.core.exceptions import RecordNotFoundError
from everdice.core.logging import get_logger
from everdice.models.base import EverdiceModel
from everdice.models.character import Character
from everdice.rules.xp import LevelProgress, get_xp_to_next_level
from everdice.storage.database import Database


logger = get_logger(__name__)

router = APIRouter(prefix="/characters", tags=["characters"])


class XPAward(EverdiceModel):
    amount: int = Field(ge=0, description="XP to add")


class MilestoneRequest(EverdiceModel):
    level: int = Field(ge=1, le=20, description="New character level")


class CharacterProgress(EverdiceModel):
    """A character after an XP or level change."""

    character: Character
    previous_level: int
    leveled_up: bool
    progress: LevelProgress


def _progress_response(character: Character, previous_level: int) -> CharacterProgress:
    return CharacterProgress(
        character=character,
        previous_level=previous_level,
        leveled_up=character.level > previous_level,
        progress=get_xp_to_next_level(character.experience),
    )


@router.get("", response_model=list[Character])
def list_characters(
    db: Database = Depends(get_db),
    user_id: int = Depends(get_user_id),
) -> list[Character]:
    return [c for c in db.list("characters") if c.user_id == user_id]


@router.post("", response_model=Character, status_code=201)
def create_character(
    character: Character,
    db: Database = Depends(get_db),
    user_id: int = Depends(get_user_id),
) -> Character:
    created = db.create("characters", character.model_copy(update={"user_id": user_id}))
    logger.info("Character created", character_id=created.id, name=created.name)
    return created


@router.get("/{character_id}", response_model=Character)
def get_character(character_id: int, db: Database = Depends(get_db)) -> Character:
    return db.require("characters", character_id)


@router.post("/{character_id}/xp", response_model=CharacterProgress)
def award_xp(
    character_id: int,
    award: XPAward,
    db: Database = Depends(get_db),
) -> CharacterProgress:
    previous = db.require("characters", character_id)
    updated = db.award_xp_to_character(character_id, award.amount)
    if updated is None:
        raise RecordNotFoundError("Character not found", entity="characters", record_id=character_id)
    return _progress_response(updated, previous.level)


@router.post("/{character_id}/milestone", response_model=CharacterProgress)
def set_milestone_level(
    character_id: int,
    request: MilestoneRequest,
    db: Database = Depends(get_db),
) -> CharacterProgress:
    previous = db.require("characters", character_id)
    updated = db.update_character_level(character_id, request.level)
    if updated is None:
        raise RecordNotFoundError("Character not found", entity="characters", record_id=character_id)
    return _progress_response(updated, previous.level)
