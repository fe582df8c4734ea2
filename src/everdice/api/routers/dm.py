"""Narrator utility endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from everdice.api.deps import get_db, get_narrator
from everdice.dm.context import DMContext, assemble_context
from everdice.dm.narrator import NarrationResult, Narrator
from everdice.dm.prompts import (
    Consequences,
    build_consequences_tracker,
    build_enhanced_prompt,
    check_for_stalling,
)
from everdice.models.base import EverdiceModel
from everdice.storage.database import Database


router = APIRouter(prefix="/dm", tags=["dm"])


class PromptRequest(EverdiceModel):
    """Context to build a prompt from, plus optional narration to check."""

    context: DMContext | None = None
    narrative: str | None = None


class PromptResponse(EverdiceModel):
    system_prompt: str
    user_prompt: str
    is_stalling: bool


@router.post("/prompt", response_model=PromptResponse)
def build_prompt(request: PromptRequest) -> PromptResponse:
    """Build the narrator prompt pair for a supplied context.

    The stall flag checks ``narrative`` when given, otherwise the previous
    session's narrative from the context.
    """
    prompts = build_enhanced_prompt(request.context)
    narrative = request.narrative
    if narrative is None and request.context and request.context.previous_session:
        narrative = request.context.previous_session.narrative
    return PromptResponse(
        system_prompt=prompts.system_prompt,
        user_prompt=prompts.user_prompt,
        is_stalling=check_for_stalling(narrative or ""),
    )


@router.get("/campaigns/{campaign_id}/context", response_model=DMContext)
def get_context(campaign_id: int, db: Database = Depends(get_db)) -> DMContext:
    return assemble_context(db, campaign_id)


@router.get("/campaigns/{campaign_id}/consequences", response_model=Consequences)
def get_consequences(campaign_id: int, db: Database = Depends(get_db)) -> Consequences:
    db.require("campaigns", campaign_id)
    return build_consequences_tracker(db.get_campaign_sessions(campaign_id))


@router.post("/campaigns/{campaign_id}/narrate", response_model=NarrationResult)
def narrate(
    campaign_id: int,
    db: Database = Depends(get_db),
    narrator: Narrator = Depends(get_narrator),
) -> NarrationResult:
    return narrator.narrate(assemble_context(db, campaign_id))
