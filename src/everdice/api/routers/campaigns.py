"""Campaign endpoints: campaigns, their sessions, participants and turns, and story generation."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field

from everdice.api.deps import get_db, get_narrator, get_user_id
from everdice.api.routers.trace import load_trace
from everdice.core.config import get_settings
from everdice.core.exceptions import RecordNotFoundError
from everdice.core.logging import get_logger
from everdice.dm.narrator import Narrator
from everdice.dm.prompts import build_story_prompt
from everdice.models.base import EverdiceModel
from everdice.models.campaign import (
    Campaign,
    CampaignParticipant,
    CampaignSession,
    StoryChoice,
)
from everdice.models.character import Character
from everdice.models.enums import ParticipantRole
from everdice.rules.skills import (
    calculate_success_probability,
    get_likelihood_description,
    get_skill_modifier,
    parse_dc_from_text,
)
from everdice.storage.database import Database
from everdice.trace.recorder import TraceRecorder


logger = get_logger(__name__)

router = APIRouter(prefix="/campaigns", tags=["campaigns"])


# =============================================================================
# Request Bodies
# =============================================================================


class SessionCreate(EverdiceModel):
    """A session posted for a campaign; the number defaults to the next one."""

    session_number: int | None = Field(default=None, ge=1)
    title: str = Field(min_length=1, max_length=200)
    narrative: str
    location: str | None = None
    choices: list[StoryChoice] = Field(default_factory=list)
    unresolved_hooks: list[str] = Field(default_factory=list)
    story_state: dict[str, Any] | None = None
    combat_outcome: str | None = None
    enemies_defeated: str | None = None
    skill_checks: list[dict[str, Any]] = Field(default_factory=list)


class ParticipantCreate(EverdiceModel):
    character_id: int
    role: ParticipantRole = ParticipantRole.PLAYER
    turn_order: int | None = Field(default=None, ge=1)


class AdvanceStoryRequest(EverdiceModel):
    campaign_id: int
    prompt: str = ""
    narrative_style: str | None = None
    difficulty: str | None = None
    story_direction: str | None = None
    current_location: str | None = None


class ChoiceOdds(EverdiceModel):
    """Chance of a story choice's roll succeeding for one character."""

    action: str
    roll_purpose: str | None = None
    dc: int | None = None
    modifier: int = 0
    breakdown: str = ""
    probability: float | None = None
    likelihood: str | None = None
    color: str | None = None


class TurnInfo(EverdiceModel):
    """Whose turn it is in a turn-based campaign."""

    active: bool
    participant_id: int | None = None
    character: Character | None = None
    started_at: str | None = None
    time_limit: int | None = None


def _next_session_number(db: Database, campaign_id: int) -> int:
    latest = db.get_latest_campaign_session(campaign_id)
    return latest.session_number + 1 if latest else 1


def _party(db: Database, campaign_id: int) -> list[tuple[CampaignParticipant, Character]]:
    party = []
    for participant in db.get_campaign_participants(campaign_id):
        character = db.get_character(participant.character_id)
        if character is not None:
            party.append((participant, character))
    return party


# =============================================================================
# Story Generation
# =============================================================================


@router.post("/advance-story", response_model=CampaignSession, status_code=201)
def advance_story(
    request: AdvanceStoryRequest,
    db: Database = Depends(get_db),
    narrator: Narrator = Depends(get_narrator),
) -> CampaignSession:
    """Generate the next scene from the player's action and store it as a session."""
    campaign: Campaign = db.require("campaigns", request.campaign_id)
    party = _party(db, campaign.id)
    characters = [character for _, character in party]
    names = {character.id: character.name for character in characters}
    companions = [npc for npc in db.list("npcs") if npc.is_companion]

    narrative = get_settings().narrative
    since = datetime.now(timezone.utc) - timedelta(minutes=narrative.recent_roll_window_minutes)
    recent = db.get_recent_dice_rolls(campaign.id, since.isoformat(), narrative.recent_roll_limit)
    rolls = [(names.get(roll.character_id, "Unknown Character"), roll) for roll in recent]

    prompt = build_story_prompt(
        campaign,
        request.prompt,
        characters=characters,
        companions=companions,
        rolls=rolls,
        location=request.current_location,
        difficulty=request.difficulty or campaign.difficulty,
        story_direction=request.story_direction,
        narrative_style=request.narrative_style or campaign.narrative_style,
    )
    beat = narrator.advance_story(prompt)

    session = db.create_campaign_session(
        CampaignSession(
            campaign_id=campaign.id,
            session_number=_next_session_number(db, campaign.id),
            title=beat.session_title,
            narrative=beat.narrative,
            location=beat.location,
            choices=beat.choices,
        )
    )

    trace = load_trace(db, campaign)
    TraceRecorder(trace).record_narrative(beat.narrative, choice_made=request.prompt or None)
    db.save_trace(campaign.id, trace)

    logger.info(
        "Story advanced",
        campaign_id=campaign.id,
        session_number=session.session_number,
        rolls=len(rolls),
    )
    return session


# =============================================================================
# Campaigns
# =============================================================================


@router.get("", response_model=list[Campaign])
def list_campaigns(
    db: Database = Depends(get_db),
    user_id: int = Depends(get_user_id),
) -> list[Campaign]:
    return [c for c in db.list("campaigns") if c.user_id == user_id and not c.is_archived]


@router.get("/archived", response_model=list[Campaign])
def list_archived_campaigns(
    db: Database = Depends(get_db),
    user_id: int = Depends(get_user_id),
) -> list[Campaign]:
    return db.get_archived_campaigns(user_id)


@router.post("", response_model=Campaign, status_code=201)
def create_campaign(
    campaign: Campaign,
    db: Database = Depends(get_db),
    user_id: int = Depends(get_user_id),
) -> Campaign:
    created = db.create("campaigns", campaign.model_copy(update={"user_id": user_id}))
    logger.info("Campaign created", campaign_id=created.id, title=created.title)
    return created


@router.get("/{campaign_id}", response_model=Campaign)
def get_campaign(campaign_id: int, db: Database = Depends(get_db)) -> Campaign:
    return db.require("campaigns", campaign_id)


@router.post("/{campaign_id}/complete", response_model=Campaign)
def complete_campaign(campaign_id: int, db: Database = Depends(get_db)) -> Campaign:
    completed = db.complete_campaign(campaign_id)
    if completed is None:
        raise RecordNotFoundError("Campaign not found", entity="campaigns", record_id=campaign_id)
    return completed


@router.post("/{campaign_id}/archive", response_model=Campaign)
def archive_campaign(campaign_id: int, db: Database = Depends(get_db)) -> Campaign:
    archived = db.archive_campaign(campaign_id)
    if archived is None:
        raise RecordNotFoundError("Campaign not found", entity="campaigns", record_id=campaign_id)
    logger.info("Campaign archived", campaign_id=campaign_id)
    return archived


@router.post("/{campaign_id}/restore", response_model=Campaign)
def restore_campaign(campaign_id: int, db: Database = Depends(get_db)) -> Campaign:
    restored = db.restore_campaign(campaign_id)
    if restored is None:
        raise RecordNotFoundError("Campaign not found", entity="campaigns", record_id=campaign_id)
    logger.info("Campaign restored", campaign_id=campaign_id)
    return restored


# =============================================================================
# Sessions
# =============================================================================


@router.get("/{campaign_id}/sessions", response_model=list[CampaignSession])
def list_sessions(campaign_id: int, db: Database = Depends(get_db)) -> list[CampaignSession]:
    db.require("campaigns", campaign_id)
    return db.get_campaign_sessions(campaign_id)


@router.post("/{campaign_id}/sessions", response_model=CampaignSession, status_code=201)
def create_session(
    campaign_id: int,
    body: SessionCreate,
    db: Database = Depends(get_db),
) -> CampaignSession:
    db.require("campaigns", campaign_id)
    fields = body.model_dump(exclude={"session_number"})
    session = CampaignSession(
        campaign_id=campaign_id,
        session_number=body.session_number or _next_session_number(db, campaign_id),
        **fields,
    )
    return db.create_campaign_session(session)


@router.get("/{campaign_id}/sessions/{session_number}", response_model=CampaignSession)
def get_session(
    campaign_id: int,
    session_number: int,
    db: Database = Depends(get_db),
) -> CampaignSession:
    session = db.get_campaign_session(campaign_id, session_number)
    if session is None:
        raise RecordNotFoundError(
            "Session not found", entity="campaign_sessions", details={"session_number": session_number}
        )
    return session


# =============================================================================
# Participants
# =============================================================================


@router.get("/{campaign_id}/participants", response_model=list[CampaignParticipant])
def list_participants(
    campaign_id: int,
    db: Database = Depends(get_db),
) -> list[CampaignParticipant]:
    db.require("campaigns", campaign_id)
    return db.get_campaign_participants(campaign_id)


@router.post("/{campaign_id}/participants", response_model=CampaignParticipant, status_code=201)
def add_participant(
    campaign_id: int,
    body: ParticipantCreate,
    db: Database = Depends(get_db),
    user_id: int = Depends(get_user_id),
) -> CampaignParticipant:
    db.require("campaigns", campaign_id)
    db.require("characters", body.character_id)
    return db.add_campaign_participant(
        CampaignParticipant(
            campaign_id=campaign_id,
            user_id=user_id,
            character_id=body.character_id,
            role=body.role,
            turn_order=body.turn_order,
        )
    )


@router.get("/{campaign_id}/sessions/{session_number}/odds", response_model=list[ChoiceOdds])
def get_choice_odds(
    campaign_id: int,
    session_number: int,
    character_id: int | None = None,
    db: Database = Depends(get_db),
) -> list[ChoiceOdds]:
    """Success odds for each choice offered at the end of a session.

    With a character, the modifier comes from their abilities and skills;
    otherwise the modifier suggested with the choice is used.
    """
    session = get_session(campaign_id, session_number, db)
    character = db.require("characters", character_id) if character_id is not None else None

    odds = []
    for choice in session.choices:
        if not choice.requires_dice_roll:
            odds.append(ChoiceOdds(action=choice.action))
            continue

        dc = choice.roll_dc or parse_dc_from_text(f"{choice.action} {choice.description}")
        if character is not None:
            skill = (choice.roll_purpose or "").removesuffix("Check").strip() or "strength"
            modifier, breakdown = get_skill_modifier(character, skill)
        else:
            modifier, breakdown = choice.roll_modifier or 0, "Suggested modifier"

        entry = ChoiceOdds(
            action=choice.action,
            roll_purpose=choice.roll_purpose,
            dc=dc,
            modifier=modifier,
            breakdown=breakdown,
        )
        if dc is not None:
            entry.probability = calculate_success_probability(dc, modifier)
            entry.likelihood, entry.color = get_likelihood_description(entry.probability)
        odds.append(entry)
    return odds


# =============================================================================
# Turns
# =============================================================================


def _require_turn_based(db: Database, campaign_id: int) -> Campaign:
    campaign: Campaign = db.require("campaigns", campaign_id)
    if not campaign.is_turn_based:
        raise HTTPException(status_code=400, detail="This campaign is not turn-based")
    return campaign


def _turn_info(db: Database, campaign: Campaign, participant: CampaignParticipant) -> TurnInfo:
    return TurnInfo(
        active=True,
        participant_id=participant.id,
        character=db.get_character(participant.character_id),
        started_at=campaign.turn_started_at,
        time_limit=campaign.turn_time_limit,
    )


@router.get("/{campaign_id}/turn", response_model=TurnInfo)
def get_current_turn(campaign_id: int, db: Database = Depends(get_db)) -> TurnInfo:
    campaign = _require_turn_based(db, campaign_id)
    participant = db.get_current_turn(campaign_id)
    if participant is None:
        return TurnInfo(active=False, time_limit=campaign.turn_time_limit)
    return _turn_info(db, campaign, participant)


@router.post("/{campaign_id}/turn/next", response_model=TurnInfo)
def start_next_turn(campaign_id: int, db: Database = Depends(get_db)) -> TurnInfo:
    _require_turn_based(db, campaign_id)
    participant = db.start_next_turn(campaign_id)
    if participant is None:
        raise HTTPException(status_code=400, detail="No active participants to take a turn")
    return _turn_info(db, db.require("campaigns", campaign_id), participant)


@router.post("/{campaign_id}/turn/end")
def end_current_turn(campaign_id: int, db: Database = Depends(get_db)) -> dict[str, bool]:
    _require_turn_based(db, campaign_id)
    db.end_current_turn(campaign_id)
    logger.info("Turn ended", campaign_id=campaign_id)
    return {"success": True}
