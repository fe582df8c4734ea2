"""AI Dungeon Master: context assembly, prompt building and narration."""

from __future__ import annotations

from everdice.dm.context import (
    CampaignSummary,
    CharacterSummary,
    DMContext,
    RollSummary,
    SessionSummary,
    assemble_context,
)
from everdice.dm.narrator import NarrationResult, Narrator, StoryBeat
from everdice.dm.prompts import (
    Consequences,
    PromptPair,
    build_consequences_tracker,
    build_enhanced_prompt,
    build_session_recap_prompt,
    build_story_prompt,
    check_for_stalling,
    parse_modifier,
)


__all__ = [
    # Context
    "CampaignSummary",
    "CharacterSummary",
    "DMContext",
    "RollSummary",
    "SessionSummary",
    "assemble_context",
    # Prompts
    "Consequences",
    "PromptPair",
    "build_consequences_tracker",
    "build_enhanced_prompt",
    "build_session_recap_prompt",
    "build_story_prompt",
    "check_for_stalling",
    "parse_modifier",
    # Narrator
    "NarrationResult",
    "Narrator",
    "StoryBeat",
]
