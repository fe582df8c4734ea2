"""LLM narrator for the AI Dungeon Master.

Wraps an OpenAI-compatible chat client. Transient connection failures are
retried with exponential backoff; everything else surfaces as an
``AIControlError`` subclass.

Example:
    >>> narrator = Narrator()
    >>> result = narrator.narrate(assemble_context(db, campaign_id=1))
    >>> print(result.narrative)
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from everdice.core.config import get_settings
from everdice.core.exceptions import (
    AIConnectionError,
    AIControlError,
    AIRateLimitError,
    AIResponseError,
)
from everdice.core.logging import get_logger
from everdice.dm.context import DMContext
from everdice.dm.prompts import (
    ANTI_STALLING_INSTRUCTION,
    build_enhanced_prompt,
    build_session_recap_prompt,
    check_for_stalling,
    format_messages,
)
from everdice.models.base import EverdiceModel
from everdice.models.campaign import CampaignSession, StoryChoice


logger = get_logger(__name__)


# =============================================================================
# Results
# =============================================================================


class NarrationResult(BaseModel):
    """Narration returned by the model.

    Attributes:
        narrative: Narration text.
        stalled: Whether the final narration still looks stalled.
        retried: Whether a stalled first attempt was regenerated.
        model: Model that produced the narration.
    """

    narrative: str
    stalled: bool = False
    retried: bool = False
    model: str | None = None


class StoryBeat(EverdiceModel):
    """The next scene generated by the advance-story prompt."""

    narrative: str = Field(min_length=1)
    session_title: str = Field(min_length=1, max_length=200)
    location: str = Field(min_length=1)
    choices: list[StoryChoice]


# =============================================================================
# Narrator
# =============================================================================


class Narrator:
    """Chat-completion narrator.

    Attributes:
        model: Chat model identifier.
        temperature: Sampling temperature.
        max_tokens: Completion token limit.
        max_attempts: Attempts made for transient connection failures.
    """

    def __init__(
        self,
        *,
        client: Any = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        max_attempts: int | None = None,
        retry_wait: wait_base | None = None,
    ) -> None:
        """Initialize the narrator.

        Args:
            client: OpenAI-compatible client; created from settings when omitted.
            model: Model override.
            temperature: Temperature override.
            max_tokens: Token limit override.
            max_attempts: Attempts for transient failures.
            retry_wait: Wait strategy between attempts.
        """
        settings = get_settings().ai
        self._client = client
        self.model = model or settings.model
        self.temperature = settings.temperature if temperature is None else temperature
        self.max_tokens = max_tokens or settings.max_tokens
        self.max_attempts = max(1, max_attempts or settings.max_retries)
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)
        self._provider = "openai" if not settings.base_url else settings.base_url

        logger.info("Narrator initialized", model=self.model, temperature=self.temperature)

    def _get_client(self) -> Any:
        """Get or create the OpenAI client."""
        if self._client is None:
            from openai import OpenAI

            settings = get_settings().ai
            if settings.api_key is None:
                raise AIControlError(
                    "AI API key not configured. Set EVERDICE_AI_API_KEY",
                    provider=self._provider,
                )
            self._client = OpenAI(
                api_key=settings.api_key.get_secret_value(),
                base_url=settings.base_url,
                timeout=settings.timeout_seconds,
                max_retries=0,
            )
        return self._client

    def _request(self, messages: list[dict[str, Any]], *, json_mode: bool) -> str:
        from openai import APIConnectionError, APIStatusError, RateLimitError

        options: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if json_mode:
            options["response_format"] = {"type": "json_object"}

        try:
            response = self._get_client().chat.completions.create(**options)
        except RateLimitError as exc:
            raise AIRateLimitError(
                "Rate limit exceeded", model=self.model, provider=self._provider
            ) from exc
        except APIConnectionError as exc:
            raise AIConnectionError(
                f"Failed to connect to AI provider: {exc}",
                model=self.model,
                provider=self._provider,
            ) from exc
        except APIStatusError as exc:
            raise AIControlError(
                f"AI API error: {exc}",
                model=self.model,
                provider=self._provider,
                details={"status_code": exc.status_code},
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise AIResponseError("Empty response from AI provider", model=self.model)

        logger.debug("Completion received", model=self.model, response_length=len(content))
        return content

    def _complete(self, messages: list[dict[str, Any]], *, json_mode: bool = False) -> str:
        """Request a completion, retrying transient connection failures."""
        retrying = Retrying(
            retry=retry_if_exception_type(AIConnectionError),
            stop=stop_after_attempt(self.max_attempts),
            wait=self.retry_wait,
            reraise=True,
        )
        return retrying(self._request, messages, json_mode=json_mode)

    # =========================================================================
    # Narration
    # =========================================================================

    def narrate(self, context: DMContext | None) -> NarrationResult:
        """Narrate the next scene from campaign context.

        Stalled narration is regenerated once with an instruction to move
        the story forward.

        Raises:
            AIControlError: If the provider call fails.
        """
        prompts = build_enhanced_prompt(context)
        narrative = self._complete(format_messages(prompts))
        stalled = check_for_stalling(narrative)
        retried = False

        if stalled:
            logger.warning("Narration stalled, regenerating", model=self.model)
            narrative = self._complete(format_messages(prompts, ANTI_STALLING_INSTRUCTION))
            stalled = check_for_stalling(narrative)
            retried = True

        return NarrationResult(
            narrative=narrative, stalled=stalled, retried=retried, model=self.model
        )

    def advance_story(self, prompt: str) -> StoryBeat:
        """Generate the next scene as structured JSON.

        Args:
            prompt: Prompt built by ``build_story_prompt``.

        Returns:
            The validated scene.

        Raises:
            AIResponseError: If the response is not a valid scene.
        """
        raw = self._complete([{"role": "user", "content": prompt}], json_mode=True)
        try:
            beat = StoryBeat.model_validate(json.loads(raw))
        except (json.JSONDecodeError, PydanticValidationError) as exc:
            logger.error("Invalid story response", model=self.model, raw=raw[:200])
            raise AIResponseError(
                "Failed to parse story generation response",
                model=self.model,
                details={"error": str(exc)},
            ) from exc

        logger.info("Story advanced", title=beat.session_title, choices=len(beat.choices))
        return beat

    def recap(self, sessions: Sequence[CampaignSession]) -> str:
        """Summarize the most recent sessions."""
        prompt = build_session_recap_prompt(sessions)
        return self._complete([{"role": "user", "content": prompt}])


__all__ = [
    "NarrationResult",
    "StoryBeat",
    "Narrator",
]
