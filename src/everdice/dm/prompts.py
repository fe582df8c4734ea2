"""DM prompts: builders for the narrator and the stalling detector."""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any, NamedTuple

from pydantic import BaseModel, Field

from everdice.core.config import get_settings
from everdice.dm.context import DMContext
from everdice.models.campaign import Campaign, CampaignSession
from everdice.models.character import Character
from everdice.models.dice import DiceRoll
from everdice.models.enums import DifficultyTier
from everdice.models.toolkit import NPC


# =============================================================================
# Templates
# =============================================================================


ENHANCED_SYSTEM_PROMPT = """You are an expert Dungeon Master for D&D 5e running "{title}".

CORE PRINCIPLES:
- Respond to player actions with meaningful consequences that affect the world
- Integrate dice roll results naturally into the narrative and story progression
- Advance the story based on character choices, successes, and failures
- Build continuity from previous sessions rather than resetting scenarios
- Create escalating tension and meaningful character development

CURRENT CONTEXT:
Campaign: {title}
Location: {location}
Characters: {characters}"""

CONTINUATION_INSTRUCTION = (
    "Continue the narrative from the previous point, resolving relevant threads "
    "and responding to player actions."
)

ANTI_STALLING_INSTRUCTION = (
    "The story must move forward. Do not repeat earlier descriptions or return "
    "the party to where they started; introduce a new development instead."
)

STORY_PROMPT = """
You are an expert Dungeon Master for a D&D game with a {style} storytelling style.
{campaign_context}
{location_context}
Difficulty level: {difficulty}
Story direction preference: {direction}{dice_context}

Based on the player's action: "{action}", generate the next part of the adventure. Include:
1. A descriptive narrative of what happens next (3-4 paragraphs)
2. A title for this scene/encounter
3. Four possible actions the player can take next, with at least 2 actions requiring dice rolls (skill checks, saving throws, or combat rolls)

IMPORTANT: If there are any companions traveling with the party, make sure they actively participate in the narrative. They should:
- Contribute meaningful dialogue and interactions
- Provide assistance during challenging situations based on their type (combat companions should help in battles, support companions should offer healing, etc.)
- Have distinct personalities that show through their actions and words
- Offer advice or suggestions related to their skills and knowledge

Return your response as a JSON object with these fields:
- narrative: The descriptive text of what happens next
- sessionTitle: A short, engaging title for this scene
- location: The current location or setting where this scene takes place
- choices: An array of 4 objects, each with:
  - action: A short description of a possible action
  - description: A brief explanation of what this action entails
  - icon: A simple icon identifier (use: "search", "hand-sparkles", "running", "sword", or any basic icon name)
  - requiresDiceRoll: Boolean indicating if this action requires a dice roll
  - diceType: If requiresDiceRoll is true, include the type of dice to roll ("d20" for most skill checks and attacks, "d4", "d6", "d8", etc. for damage)
  - rollDC: If requiresDiceRoll is true, include the DC/difficulty (number to beat) for this roll
  - rollModifier: The modifier to add to the roll (based on character attributes, usually -2 to +5)
  - rollPurpose: A short explanation of what the roll is for (e.g., "Perception Check", "Athletics Check", "Attack Roll")
  - successText: Brief text to display on a successful roll
  - failureText: Brief text to display on a failed roll
"""

DICE_CONTEXT_FOOTER = (
    "\nIMPORTANT: Use these dice roll results to determine the outcome of the "
    "player's actions and advance the story accordingly. Success or failure "
    "should be reflected in the narrative.\n"
)

DEFAULT_STORY_DIRECTION = "balanced mix of combat, roleplay, and exploration"

_MODIFIER_PATTERN = re.compile(r"([-+]?\d+)")
_LINE_SPLIT_PATTERN = re.compile(r"\n|\.\s")
_WHAT_WILL_YOU_DO = re.compile(r"What will you do\?")


class PromptPair(NamedTuple):
    """System and user prompts for one narrator call."""

    system_prompt: str
    user_prompt: str


# =============================================================================
# Parsing & Stalling Detection
# =============================================================================


def parse_modifier(text: str) -> int:
    """Extract the first signed integer from a modifier string.

    >>> parse_modifier("DEX (+1)")
    1
    >>> parse_modifier("-2")
    -2
    """
    match = _MODIFIER_PATTERN.search(text.strip())
    return int(match.group(1)) if match else 0


def check_for_stalling(
    narrative: str,
    *,
    threshold: float | None = None,
    phrase: str | None = None,
) -> bool:
    """Detect narration that repeats itself or loops back to the start.

    The narrative is split into lines and sentences. When more than
    ``threshold`` of them are repeats, or the text contains the stalling
    phrase, the narration is considered stalled.

    Args:
        narrative: Narration to inspect.
        threshold: Repetition ratio above which narration stalls.
        phrase: Phrase that always marks a stall.

    Returns:
        True if the narration is stalling.
    """
    settings = get_settings().narrative
    if threshold is None:
        threshold = settings.stalling_threshold
    if phrase is None:
        phrase = settings.stalling_phrase

    lines = [line.strip() for line in _LINE_SPLIT_PATTERN.split(narrative)]
    lines = [line for line in lines if line]
    ratio = (len(lines) - len(set(lines))) / len(lines) if lines else 0.0

    return ratio > threshold or phrase.lower() in narrative.lower()


# =============================================================================
# Prompt Builders
# =============================================================================


def build_enhanced_prompt(context: DMContext | None) -> PromptPair:
    """Build the narrator prompt pair from campaign context.

    A missing context yields a sparse prompt that still ends with the
    continuation instruction.
    """
    context = context or DMContext()
    title = context.campaign.title if context.campaign else "Untitled Campaign"
    roster = ", ".join(
        f"{c.name} (level {c.level} {c.character_class})" for c in context.characters
    )
    system_prompt = ENHANCED_SYSTEM_PROMPT.format(
        title=title,
        location=context.location or "Unknown",
        characters=roster or "None",
    )

    user_prompt = ""
    if context.previous_session:
        user_prompt += (
            "The last session ended with this scene:\n"
            f"{context.previous_session.narrative}\n\n"
        )

    if context.last_rolls:
        user_prompt += "Recent skill checks:\n"
        for roll in context.last_rolls:
            user_prompt += (
                f"- {roll.player_name} attempted a {roll.skill_name} check "
                f"and rolled {roll.result}.\n"
            )
        user_prompt += "\n"

    if context.unresolved_threads:
        user_prompt += "Unresolved narrative threads:\n"
        for thread in context.unresolved_threads:
            user_prompt += f"- {thread}\n"
        user_prompt += "\n"

    user_prompt += CONTINUATION_INSTRUCTION
    return PromptPair(system_prompt, user_prompt)


def build_session_recap_prompt(
    sessions: Sequence[CampaignSession] | None,
    *,
    count: int | None = None,
) -> str:
    """Prompt asking the narrator to summarize the most recent sessions."""
    if count is None:
        count = get_settings().narrative.recap_session_count

    recent = list(sessions or [])[-count:] if count > 0 else []
    prompt = "You are a DM. Summarize recent sessions:\n"
    for session in recent:
        prompt += f"Session {session.session_number}: {session.narrative}\n"
    return prompt


class Consequences(BaseModel):
    """Lasting effects of earlier sessions."""

    unresolved: list[str] = Field(default_factory=list)
    environmental: list[str] = Field(default_factory=list)
    character: list[str] = Field(default_factory=list)


def build_consequences_tracker(sessions: Sequence[CampaignSession]) -> Consequences:
    """Collect combat victories and successful skill checks from session history."""
    consequences = Consequences()
    for session in sessions:
        if session.combat_outcome == "victory":
            consequences.environmental.append(
                f"Defeated {session.enemies_defeated or 'creatures'} in {session.location}"
            )
        success = next((c for c in session.skill_checks if c.get("success")), None)
        if success is not None:
            consequences.character.append(
                f"Successfully used {success.get('abilityType')} in {session.location}"
            )
        consequences.unresolved.extend(session.unresolved_hooks)
    return consequences


def _describe_character(character: Character) -> str:
    return (
        f"{character.name or 'Unknown'} (Level {character.level or 1} "
        f"{character.race or 'Human'} {character.character_class or 'Fighter'})"
    )


def _describe_companion(npc: NPC) -> str:
    return f"{npc.name} ({npc.race} {npc.occupation}, {npc.companion_type or 'companion'})"


def _format_roll(character_name: str, roll: DiceRoll) -> str:
    sign = "+" if roll.modifier > 0 else ""
    purpose = roll.purpose or "Unknown action"
    return (
        f'- {character_name} rolled {roll.dice_type} for "{purpose}": '
        f"Result {roll.result} ({sign}{roll.modifier} modifier)\n"
    )


def build_story_prompt(
    campaign: Campaign,
    action: str,
    *,
    characters: Sequence[Character] = (),
    companions: Sequence[NPC] = (),
    rolls: Sequence[tuple[str, DiceRoll]] = (),
    location: str | None = None,
    difficulty: str | None = None,
    story_direction: str | None = None,
    narrative_style: str | None = None,
) -> str:
    """Build the JSON-mode prompt that generates the next scene.

    Args:
        campaign: Campaign being played.
        action: What the player did; "What will you do?" is stripped.
        characters: Party members.
        companions: NPCs travelling with the party.
        rolls: Recent rolls paired with the roller's name.
        location: Current location, if known.
        difficulty: Difficulty tier shown to the narrator.
        story_direction: Preferred balance of combat, roleplay and exploration.
        narrative_style: Storytelling style.

    Returns:
        The complete prompt text.
    """
    cleaned_action = _WHAT_WILL_YOU_DO.sub("", action or "").strip()

    campaign_context = f"Campaign: {campaign.title}. {campaign.description or ''}"
    if characters:
        campaign_context += " Characters in party: " + ", ".join(
            _describe_character(c) for c in characters
        )
    if companions:
        campaign_context += " Companions traveling with the party: " + ", ".join(
            _describe_companion(npc) for npc in companions
        )

    dice_context = ""
    if rolls:
        dice_context = "\n\nRECENT DICE ROLL RESULTS TO INCORPORATE:\n"
        dice_context += "".join(_format_roll(name, roll) for name, roll in rolls)
        dice_context += DICE_CONTEXT_FOOTER

    return STORY_PROMPT.format(
        style=narrative_style or "descriptive",
        campaign_context=campaign_context,
        location_context=f"Current location: {location}." if location else "",
        difficulty=difficulty or DifficultyTier.NORMAL.value,
        direction=story_direction or DEFAULT_STORY_DIRECTION,
        dice_context=dice_context,
        action=cleaned_action,
    )


def format_messages(prompts: PromptPair, extra_instruction: str | None = None) -> list[dict[str, Any]]:
    """Chat messages for a prompt pair, optionally with a trailing instruction."""
    user_prompt = prompts.user_prompt
    if extra_instruction:
        user_prompt = f"{user_prompt}\n\n{extra_instruction}"
    return [
        {"role": "system", "content": prompts.system_prompt},
        {"role": "user", "content": user_prompt},
    ]


__all__ = [
    "ENHANCED_SYSTEM_PROMPT",
    "CONTINUATION_INSTRUCTION",
    "ANTI_STALLING_INSTRUCTION",
    "PromptPair",
    "Consequences",
    "parse_modifier",
    "check_for_stalling",
    "build_enhanced_prompt",
    "build_session_recap_prompt",
    "build_consequences_tracker",
    "build_story_prompt",
    "format_messages",
]
