"""Campaign context handed to the prompt builder.

``DMContext`` is a snapshot of what the narrator needs to know: the campaign,
the party, the previous scene, recent rolls and open narrative threads. It can
be posted directly to the prompt endpoint or assembled from storage with
:func:`assemble_context`.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from pydantic import Field

from everdice.core.config import get_settings
from everdice.core.logging import get_logger
from everdice.models.base import EverdiceModel


if TYPE_CHECKING:
    from everdice.storage.database import Database


logger = get_logger(__name__)


# =============================================================================
# Context Models
# =============================================================================


class CampaignSummary(EverdiceModel):
    """The campaign as the narrator sees it."""

    title: str = Field(default="Untitled Campaign")
    description: str | None = None
    difficulty: str | None = None
    narrative_style: str | None = None


class CharacterSummary(EverdiceModel):
    """A party member rendered in the character roster."""

    name: str
    level: int = Field(default=1, ge=1)
    character_class: str = Field(default="Adventurer", alias="class")
    race: str | None = None


class SessionSummary(EverdiceModel):
    """The scene the previous session ended on."""

    session_number: int | None = None
    narrative: str = ""
    location: str | None = None


class RollSummary(EverdiceModel):
    """A recent skill check to weave into the narration."""

    player_name: str
    skill_name: str
    result: int


class DMContext(EverdiceModel):
    """Everything the prompt builder reads.

    Attributes:
        campaign: Campaign being narrated, if known.
        location: Where the party currently is.
        characters: Party roster.
        previous_session: Scene the last session ended with.
        last_rolls: Recent skill checks.
        unresolved_threads: Narrative hooks still open.
    """

    campaign: CampaignSummary | None = None
    location: str | None = None
    characters: list[CharacterSummary] = Field(default_factory=list)
    previous_session: SessionSummary | None = None
    last_rolls: list[RollSummary] = Field(default_factory=list)
    unresolved_threads: list[str] = Field(default_factory=list)


# =============================================================================
# Assembly
# =============================================================================


def assemble_context(
    db: Database,
    campaign_id: int,
    *,
    window_minutes: int | None = None,
    roll_limit: int | None = None,
) -> DMContext:
    """Build a DMContext from stored campaign state.

    Args:
        db: Database to read from.
        campaign_id: Campaign to describe.
        window_minutes: How far back recent rolls are taken from.
        roll_limit: Maximum number of recent rolls.

    Returns:
        The assembled context.

    Raises:
        RecordNotFoundError: If the campaign does not exist.
    """
    settings = get_settings().narrative
    if window_minutes is None:
        window_minutes = settings.recent_roll_window_minutes
    if roll_limit is None:
        roll_limit = settings.recent_roll_limit

    campaign = db.require("campaigns", campaign_id)

    characters: list[CharacterSummary] = []
    names_by_character: dict[int, str] = {}
    for participant in db.get_campaign_participants(campaign_id):
        character = db.get_character(participant.character_id)
        if character is None:
            logger.warning(
                "Participant character missing",
                campaign_id=campaign_id,
                character_id=participant.character_id,
            )
            continue
        names_by_character[participant.character_id] = character.name
        characters.append(
            CharacterSummary(
                name=character.name,
                level=character.level,
                character_class=character.character_class,
                race=character.race,
            )
        )

    latest = db.get_latest_campaign_session(campaign_id)
    previous_session = None
    threads: list[str] = []
    location = None
    if latest is not None:
        previous_session = SessionSummary(
            session_number=latest.session_number,
            narrative=latest.narrative,
            location=latest.location,
        )
        threads = list(latest.unresolved_hooks)
        location = latest.location

    since = (datetime.now(timezone.utc) - timedelta(minutes=window_minutes)).isoformat()
    rolls = [
        RollSummary(
            player_name=names_by_character.get(roll.character_id or 0, "A player"),
            skill_name=roll.purpose or roll.dice_type,
            result=roll.result,
        )
        for roll in db.get_recent_dice_rolls(campaign_id, since, roll_limit)
    ]

    context = DMContext(
        campaign=CampaignSummary(
            title=campaign.title,
            description=campaign.description,
            difficulty=campaign.difficulty,
            narrative_style=campaign.narrative_style,
        ),
        location=location,
        characters=characters,
        previous_session=previous_session,
        last_rolls=rolls,
        unresolved_threads=threads,
    )
    logger.debug(
        "DM context assembled",
        campaign_id=campaign_id,
        characters=len(characters),
        rolls=len(rolls),
        threads=len(threads),
    )
    return context


__all__ = [
    "CampaignSummary",
    "CharacterSummary",
    "SessionSummary",
    "RollSummary",
    "DMContext",
    "assemble_context",
]
