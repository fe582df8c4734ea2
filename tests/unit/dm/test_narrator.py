"""Tests for the LLM narrator using a fake chat client."""

from __future__ import annotations

import json
from typing import Any

import httpx
import openai
import pytest

from everdice.core.config import clear_settings_cache
from everdice.core.exceptions import (
    AIConnectionError,
    AIControlError,
    AIRateLimitError,
    AIResponseError,
)
from everdice.dm.context import CampaignSummary, DMContext
from everdice.dm.narrator import Narrator
from everdice.dm.prompts import ANTI_STALLING_INSTRUCTION
from everdice.models import CampaignSession


_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")

STORY_JSON = json.dumps(
    {
        "narrative": "The portcullis groans upward, revealing a flooded courtyard.",
        "sessionTitle": "The Drowned Courtyard",
        "location": "Keep Courtyard",
        "choices": [
            {
                "action": "Wade across",
                "description": "Cross the waist-deep water",
                "icon": "running",
                "requiresDiceRoll": True,
                "diceType": "d20",
                "rollDC": 12,
                "rollModifier": 2,
                "rollPurpose": "Athletics Check",
                "successText": "You reach the far side.",
                "failureText": "You slip beneath the surface.",
            },
            {"action": "Call out", "description": "Announce yourselves", "icon": "hand-sparkles"},
        ],
    }
)


def _connection_error() -> openai.APIConnectionError:
    return openai.APIConnectionError(request=_REQUEST)


class TestNarrate:
    def test_narrate(self, narrator: Narrator, fake_client: Any) -> None:
        fake_client.queue("Rain hammers the battlements as the party climbs.")
        context = DMContext(campaign=CampaignSummary(title="The Sunken Keep"))

        result = narrator.narrate(context)

        assert result.narrative.startswith("Rain hammers")
        assert result.stalled is False
        assert result.retried is False
        messages = fake_client.calls[0]["messages"]
        assert messages[0]["role"] == "system"
        assert "The Sunken Keep" in messages[0]["content"]
        assert "response_format" not in fake_client.calls[0]

    def test_stalled_narration_is_regenerated(self, narrator: Narrator, fake_client: Any) -> None:
        fake_client.queue(
            "You walk for hours. In the end you find yourself where you started.",
            "A hidden stair opens beneath the statue.",
        )

        result = narrator.narrate(None)

        assert result.retried is True
        assert result.stalled is False
        assert result.narrative == "A hidden stair opens beneath the statue."
        assert len(fake_client.calls) == 2
        assert fake_client.calls[1]["messages"][1]["content"].endswith(ANTI_STALLING_INSTRUCTION)

    def test_connection_errors_are_retried(self, narrator: Narrator, fake_client: Any) -> None:
        fake_client.queue(_connection_error(), "The storm breaks.")

        result = narrator.narrate(None)

        assert result.narrative == "The storm breaks."
        assert len(fake_client.calls) == 2

    def test_connection_errors_exhaust_attempts(self, narrator: Narrator, fake_client: Any) -> None:
        fake_client.queue(_connection_error(), _connection_error(), _connection_error())

        with pytest.raises(AIConnectionError):
            narrator.narrate(None)

        assert len(fake_client.calls) == 3

    def test_rate_limit_is_not_retried(self, narrator: Narrator, fake_client: Any) -> None:
        response = httpx.Response(429, request=_REQUEST)
        fake_client.queue(openai.RateLimitError("Slow down", response=response, body=None))

        with pytest.raises(AIRateLimitError):
            narrator.narrate(None)

        assert len(fake_client.calls) == 1

    def test_empty_response(self, narrator: Narrator, fake_client: Any) -> None:
        fake_client.queue("")

        with pytest.raises(AIResponseError):
            narrator.narrate(None)

    def test_missing_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("EVERDICE_AI_API_KEY", raising=False)
        clear_settings_cache()

        with pytest.raises(AIControlError, match="API key not configured"):
            Narrator().narrate(None)


class TestAdvanceStory:
    def test_valid_story(self, narrator: Narrator, fake_client: Any) -> None:
        fake_client.queue(STORY_JSON)

        beat = narrator.advance_story("Open the gate")

        assert beat.session_title == "The Drowned Courtyard"
        assert beat.location == "Keep Courtyard"
        assert len(beat.choices) == 2
        assert beat.choices[0].roll_dc == 12
        assert beat.choices[1].requires_dice_roll is False
        assert fake_client.calls[0]["response_format"] == {"type": "json_object"}

    @pytest.mark.parametrize(
        "raw",
        [
            "not json at all",
            json.dumps({"narrative": "Something happens."}),
            json.dumps({"narrative": "", "sessionTitle": "T", "location": "L", "choices": []}),
        ],
    )
    def test_invalid_story(self, narrator: Narrator, fake_client: Any, raw: str) -> None:
        fake_client.queue(raw)

        with pytest.raises(AIResponseError, match="Failed to parse story"):
            narrator.advance_story("Open the gate")


class TestRecap:
    def test_recap(self, narrator: Narrator, fake_client: Any) -> None:
        fake_client.queue("The party escaped the keep.")
        sessions = [
            CampaignSession(campaign_id=1, session_number=1, title="Arrival", narrative="They arrive."),
        ]

        assert narrator.recap(sessions) == "The party escaped the keep."
        prompt = fake_client.calls[0]["messages"][0]["content"]
        assert prompt == "You are a DM. Summarize recent sessions:\nSession 1: They arrive.\n"
