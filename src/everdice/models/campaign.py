"""Pydantic V2 schemas for campaigns, their participants and sessions."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from everdice.models.base import EverdiceModel, Record
from everdice.models.enums import DifficultyTier, ParticipantRole


class Campaign(Record):
    """Campaign metadata and state.

    Attributes:
        user_id: Campaign creator (the DM).
        title: Campaign title.
        description: Campaign premise.
        difficulty: Difficulty tier name.
        narrative_style: Storytelling style requested from the narrator.
        current_session: Number of the latest session.
        xp_reward: XP awarded on completion.
        is_archived: Whether the campaign is archived.
        is_completed: Whether the campaign is completed.
        completed_at: When the campaign was completed.
        current_turn_participant_id: Participant whose turn it is, if any.
        turn_started_at: When the current turn started.
        turn_time_limit: Seconds allowed per turn; None means no limit.
    """

    user_id: int = Field(default=1, ge=1)
    title: str = Field(min_length=1, max_length=200, description="Campaign title")
    description: str | None = Field(default=None, max_length=5000)
    difficulty: str = Field(default=DifficultyTier.NORMAL.value, description="Difficulty tier")
    narrative_style: str = Field(default="descriptive", description="Narrative style")
    current_session: int = Field(default=1, ge=0, description="Current session number")
    is_turn_based: bool = False
    xp_reward: int = Field(default=0, ge=0)
    is_archived: bool = False
    is_completed: bool = False
    completed_at: str | None = None
    max_players: int = Field(default=6, ge=1)
    current_turn_participant_id: int | None = None
    turn_started_at: str | None = None
    turn_time_limit: int | None = Field(default=None, ge=1)


class CampaignParticipant(Record):
    """Join record tying a character to a campaign.

    Attributes:
        campaign_id: Campaign joined.
        user_id: User controlling the character.
        character_id: Character played in this campaign.
        role: Player or DM.
        turn_order: Position in the turn order.
        is_active: Whether the participant is active.
        last_active_at: When the participant last started a turn.
    """

    campaign_id: int
    user_id: int = Field(default=1, ge=1)
    character_id: int
    role: ParticipantRole = ParticipantRole.PLAYER
    turn_order: int | None = Field(default=None, ge=1)
    is_active: bool = True
    last_active_at: str | None = None


class StoryChoice(EverdiceModel):
    """An action offered to the players at the end of a scene."""

    action: str
    description: str = ""
    icon: str = "sword"
    requires_dice_roll: bool = False
    dice_type: str | None = None
    roll_dc: int | None = Field(default=None, alias="rollDC")
    roll_modifier: int | None = None
    roll_purpose: str | None = None
    success_text: str | None = None
    failure_text: str | None = None


class CampaignSession(Record):
    """A single scene/session of narration.

    Attributes:
        campaign_id: Owning campaign.
        session_number: Sequential number within the campaign.
        title: Scene title.
        narrative: Narrative shown to players.
        location: Where the scene takes place.
        choices: Actions offered to the players.
        unresolved_hooks: Narrative threads still open.
        story_state: Free-form story context.
        combat_outcome: 'victory' when the scene ended a fight in the party's favour.
        enemies_defeated: Description of enemies defeated.
        skill_checks: Skill checks made during the scene.
    """

    campaign_id: int
    session_number: int = Field(ge=1)
    title: str = Field(min_length=1, max_length=200)
    narrative: str
    location: str | None = None
    choices: list[StoryChoice] = Field(default_factory=list)
    session_xp_reward: int = Field(default=0, ge=0)
    is_completed: bool = False
    completed_at: str | None = None
    unresolved_hooks: list[str] = Field(default_factory=list)
    story_state: dict[str, Any] | None = None
    combat_outcome: str | None = None
    enemies_defeated: str | None = None
    skill_checks: list[dict[str, Any]] = Field(default_factory=list)


__all__ = [
    "Campaign",
    "CampaignParticipant",
    "StoryChoice",
    "CampaignSession",
]
