"""Tests for DM prompt builders and stalling detection."""

from __future__ import annotations

import pytest

from everdice.dm.context import (
    CampaignSummary,
    CharacterSummary,
    DMContext,
    RollSummary,
    SessionSummary,
)
from everdice.dm.prompts import (
    CONTINUATION_INSTRUCTION,
    DEFAULT_STORY_DIRECTION,
    build_consequences_tracker,
    build_enhanced_prompt,
    build_session_recap_prompt,
    build_story_prompt,
    check_for_stalling,
    format_messages,
    parse_modifier,
)
from everdice.models import NPC, Campaign, CampaignSession, Character, DiceRoll, DifficultyTier


def _session(number: int, narrative: str, **fields: object) -> CampaignSession:
    return CampaignSession(
        campaign_id=1,
        session_number=number,
        title=f"Scene {number}",
        narrative=narrative,
        **fields,
    )


class TestParseModifier:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [("+3", 3), ("-2", -2), ("4", 4), ("DEX (+1)", 1), ("  -5 ", -5), ("none", 0), ("", 0)],
    )
    def test_parse_modifier(self, text: str, expected: int) -> None:
        assert parse_modifier(text) == expected


class TestStallingDetection:
    def test_repeated_lines_stall(self) -> None:
        narrative = "The door creaks.\nThe door creaks.\nThe door creaks.\nA rat scurries."

        assert check_for_stalling(narrative, threshold=0.4) is True

    def test_threshold_is_exclusive(self) -> None:
        narrative = "The door creaks.\nThe door creaks.\nThe door creaks.\nA rat scurries."

        assert check_for_stalling(narrative, threshold=0.5) is False

    def test_ratio_at_default_threshold_does_not_stall(self) -> None:
        narrative = "The door creaks.\nThe door creaks.\nThe door creaks.\nA rat scurries.\nWind howls."

        assert check_for_stalling(narrative) is False

    def test_ratio_above_default_threshold_stalls(self) -> None:
        narrative = "The door creaks.\nThe door creaks.\nThe door creaks.\nThe door creaks.\nA rat scurries."

        assert check_for_stalling(narrative) is True

    def test_varied_narrative_does_not_stall(self) -> None:
        narrative = (
            "The door creaks open. Beyond it a stair descends into the dark.\n"
            "Water drips somewhere below."
        )

        assert check_for_stalling(narrative) is False

    def test_phrase_always_stalls(self) -> None:
        assert check_for_stalling("After hours of walking, You Find Yourself Where You Started.")

    def test_empty_narrative(self) -> None:
        assert check_for_stalling("") is False

    def test_threshold_from_settings(self, mock_env_vars: dict[str, str]) -> None:
        narrative = "The door creaks.\nThe door creaks.\nThe door creaks.\nA rat scurries."

        assert check_for_stalling(narrative) is False


class TestEnhancedPrompt:
    def test_sparse_context(self) -> None:
        prompts = build_enhanced_prompt(None)

        assert 'running "Untitled Campaign"' in prompts.system_prompt
        assert "Location: Unknown" in prompts.system_prompt
        assert prompts.system_prompt.endswith("Characters: None")
        assert prompts.user_prompt == CONTINUATION_INSTRUCTION

    def test_full_context(self) -> None:
        context = DMContext(
            campaign=CampaignSummary(title="The Sunken Keep"),
            location="Flooded Chapel",
            characters=[
                CharacterSummary(name="Mira", level=3, character_class="Rogue"),
                CharacterSummary(name="Brannoc", level=4, character_class="Fighter"),
            ],
            previous_session=SessionSummary(narrative="The altar split in two."),
            last_rolls=[RollSummary(player_name="Mira", skill_name="Stealth", result=17)],
            unresolved_threads=["Who opened the floodgates?"],
        )

        system_prompt, user_prompt = build_enhanced_prompt(context)

        assert "Campaign: The Sunken Keep" in system_prompt
        assert "Location: Flooded Chapel" in system_prompt
        assert "Characters: Mira (level 3 Rogue), Brannoc (level 4 Fighter)" in system_prompt
        assert user_prompt == (
            "The last session ended with this scene:\n"
            "The altar split in two.\n\n"
            "Recent skill checks:\n"
            "- Mira attempted a Stealth check and rolled 17.\n\n"
            "Unresolved narrative threads:\n"
            "- Who opened the floodgates?\n\n"
            f"{CONTINUATION_INSTRUCTION}"
        )

    def test_context_accepts_camel_case_json(self) -> None:
        context = DMContext.model_validate(
            {
                "campaign": {"title": "Ashes"},
                "characters": [{"name": "Io", "level": 2, "class": "Wizard"}],
                "lastRolls": [{"playerName": "Io", "skillName": "Arcana", "result": 12}],
            }
        )

        system_prompt, user_prompt = build_enhanced_prompt(context)

        assert "Characters: Io (level 2 Wizard)" in system_prompt
        assert "- Io attempted a Arcana check and rolled 12." in user_prompt

    def test_format_messages(self) -> None:
        prompts = build_enhanced_prompt(None)

        messages = format_messages(prompts, "Move on.")

        assert [m["role"] for m in messages] == ["system", "user"]
        assert messages[1]["content"] == f"{CONTINUATION_INSTRUCTION}\n\nMove on."


class TestSessionRecap:
    def test_recap_lists_recent_sessions(self) -> None:
        sessions = [_session(n, f"Event {n}") for n in range(1, 5)]

        prompt = build_session_recap_prompt(sessions, count=2)

        assert prompt == (
            "You are a DM. Summarize recent sessions:\n"
            "Session 3: Event 3\n"
            "Session 4: Event 4\n"
        )

    def test_recap_without_sessions(self) -> None:
        assert build_session_recap_prompt(None) == "You are a DM. Summarize recent sessions:\n"


class TestConsequences:
    def test_tracks_victories_and_skill_checks(self) -> None:
        sessions = [
            _session(
                1,
                "A skirmish on the causeway.",
                location="Causeway",
                combat_outcome="victory",
                enemies_defeated="three bog wights",
            ),
            _session(
                2,
                "The lock gives way.",
                location="Gatehouse",
                skill_checks=[
                    {"abilityType": "Athletics", "success": False},
                    {"abilityType": "Sleight of Hand", "success": True},
                ],
                unresolved_hooks=["The gatekeeper fled north."],
            ),
            _session(3, "An uneventful night.", location="Camp", combat_outcome="retreat"),
        ]

        consequences = build_consequences_tracker(sessions)

        assert consequences.environmental == ["Defeated three bog wights in Causeway"]
        assert consequences.character == ["Successfully used Sleight of Hand in Gatehouse"]
        assert consequences.unresolved == ["The gatekeeper fled north."]

    def test_unnamed_enemies(self) -> None:
        sessions = [_session(1, "Steel rings.", location="Crypt", combat_outcome="victory")]

        assert build_consequences_tracker(sessions).environmental == [
            "Defeated creatures in Crypt"
        ]


class TestStoryPrompt:
    @pytest.fixture
    def campaign(self) -> Campaign:
        return Campaign(id=1, title="The Sunken Keep", description="A drowned fortress.")

    def test_minimal_prompt(self, campaign: Campaign) -> None:
        prompt = build_story_prompt(campaign, "I search the altar. What will you do?")

        assert "with a descriptive storytelling style" in prompt
        assert "Campaign: The Sunken Keep. A drowned fortress." in prompt
        assert f"Difficulty level: {DifficultyTier.NORMAL.value}" in prompt
        assert f"Story direction preference: {DEFAULT_STORY_DIRECTION}" in prompt
        assert 'Based on the player\'s action: "I search the altar.", generate' in prompt
        assert "Current location" not in prompt
        assert "RECENT DICE ROLL RESULTS" not in prompt

    def test_party_companions_and_rolls(self, campaign: Campaign) -> None:
        mira = Character(name="Mira Thornwood", race="Elf", character_class="Rogue", level=3)
        brannoc = NPC(
            name="Brannoc",
            race="Dwarf",
            occupation="Smith",
            is_companion=True,
            companion_type="combat",
        )
        rolls = [
            ("Mira Thornwood", DiceRoll(dice_type="d20", result=17, modifier=2, purpose="Stealth Check")),
            ("Mira Thornwood", DiceRoll(dice_type="d20", result=6, modifier=-1)),
            ("Brannoc", DiceRoll(dice_type="d8", result=5, modifier=0, purpose="Damage")),
        ]

        prompt = build_story_prompt(
            campaign,
            "Sneak past the guards",
            characters=[mira],
            companions=[brannoc],
            rolls=rolls,
            location="Gatehouse",
            difficulty="Hard - Tough Choices",
            story_direction="roleplay",
            narrative_style="grim",
        )

        assert "with a grim storytelling style" in prompt
        assert "Characters in party: Mira Thornwood (Level 3 Elf Rogue)" in prompt
        assert "Companions traveling with the party: Brannoc (Dwarf Smith, combat)" in prompt
        assert "Current location: Gatehouse." in prompt
        assert "Difficulty level: Hard - Tough Choices" in prompt
        assert '- Mira Thornwood rolled d20 for "Stealth Check": Result 17 (+2 modifier)' in prompt
        assert '- Mira Thornwood rolled d20 for "Unknown action": Result 6 (-1 modifier)' in prompt
        assert '- Brannoc rolled d8 for "Damage": Result 5 (0 modifier)' in prompt
        assert "Use these dice roll results" in prompt
