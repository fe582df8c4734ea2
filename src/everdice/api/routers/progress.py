"""Adventure progress endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from everdice.api.deps import get_db
from everdice.core.logging import get_logger
from everdice.models.base import EverdiceModel
from everdice.models.campaign import Campaign
from everdice.models.enums import ProgressCounter
from everdice.models.progress import AdventureProgress, AdventureRequirements, CompletionResult
from everdice.rules.adventure import (
    check_adventure_completion,
    create_empty_progress,
    format_progress_summary,
    get_requirements_for_difficulty,
    record_discovery,
    record_encounter,
    record_puzzle,
    record_subquest_completed,
)
from everdice.storage.database import Database


logger = get_logger(__name__)

router = APIRouter(prefix="/campaigns/{campaign_id}/progress", tags=["progress"])


class ProgressReport(EverdiceModel):
    """Progress of a campaign's adventure against its difficulty tier."""

    difficulty: str
    progress: AdventureProgress
    requirements: AdventureRequirements
    completion: CompletionResult
    summary: str


def _report(campaign: Campaign, progress: AdventureProgress) -> ProgressReport:
    requirements = get_requirements_for_difficulty(campaign.difficulty)
    return ProgressReport(
        difficulty=campaign.difficulty,
        progress=progress,
        requirements=requirements,
        completion=check_adventure_completion(progress, requirements),
        summary=format_progress_summary(progress, requirements),
    )


@router.get("", response_model=ProgressReport)
def get_progress(campaign_id: int, db: Database = Depends(get_db)) -> ProgressReport:
    campaign: Campaign = db.require("campaigns", campaign_id)
    progress = db.get_progress(campaign_id) or create_empty_progress()
    return _report(campaign, progress)


@router.post("/{counter}", response_model=ProgressReport)
def advance_progress(
    campaign_id: int,
    counter: ProgressCounter,
    db: Database = Depends(get_db),
) -> ProgressReport:
    campaign: Campaign = db.require("campaigns", campaign_id)
    requirements = get_requirements_for_difficulty(campaign.difficulty)
    progress = db.get_progress(campaign_id) or create_empty_progress()

    if counter is ProgressCounter.PUZZLE:
        record_puzzle(progress, requirements)
    elif counter is ProgressCounter.DISCOVERY:
        record_discovery(progress, requirements)
    elif counter is ProgressCounter.SUBQUEST:
        record_subquest_completed(progress, requirements)
    else:
        record_encounter(progress, counter.value, requirements)

    db.save_progress(campaign_id, progress)
    logger.info("Progress advanced", campaign_id=campaign_id, counter=counter.value)
    return _report(campaign, progress)
