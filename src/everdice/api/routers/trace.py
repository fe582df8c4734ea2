"""CAMLTrace endpoints: read a campaign's trace and append to it.

A successful combat, trap or treasure `everdice.encounterResolved` event also
advances the campaign's stored adventure progress.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import Field

from everdice.api.deps import get_db
from everdice.core.exceptions import RecordNotFoundError
from everdice.models.base import EverdiceModel
from everdice.models.campaign import Campaign
from everdice.rules.adventure import create_empty_progress, get_requirements_for_difficulty
from everdice.storage.database import Database
from everdice.trace.events import (
    create_empty_trace,
    end_trace_session,
    start_trace_session,
)
from everdice.trace.recorder import TraceRecorder
from everdice.trace.schema import CAMLTrace, TraceEventKind


router = APIRouter(prefix="/campaigns/{campaign_id}/trace", tags=["trace"])


class TraceEventCreate(EverdiceModel):
    kind: str
    payload: dict[str, Any] = Field(default_factory=dict)
    session_id: str | None = None
    who: str | None = None
    where: str | None = None
    note: str | None = None
    meta: dict[str, Any] | None = None


class TraceSessionCreate(EverdiceModel):
    session_id: str = Field(min_length=1)
    title: str | None = None
    chapter_number: int | None = Field(default=None, ge=1)


def load_trace(db: Database, campaign: Campaign) -> CAMLTrace:
    """The campaign's stored trace, or a new empty one."""
    trace = db.get_trace(campaign.id)
    if trace is None:
        trace = create_empty_trace(campaign.id, campaign.title)
    return trace


@router.get("")
def get_trace(campaign_id: int, db: Database = Depends(get_db)) -> dict[str, Any]:
    campaign = db.require("campaigns", campaign_id)
    return load_trace(db, campaign).to_document()


@router.post("/events", status_code=201)
def add_event(
    campaign_id: int,
    event: TraceEventCreate,
    db: Database = Depends(get_db),
) -> dict[str, Any]:
    campaign = db.require("campaigns", campaign_id)
    progress = db.get_progress(campaign_id) or create_empty_progress()
    recorder = TraceRecorder(
        load_trace(db, campaign),
        progress=progress,
        requirements=get_requirements_for_difficulty(campaign.difficulty),
    )
    created = recorder.record_event(
        event.kind,
        event.payload,
        session_id=event.session_id,
        who=event.who,
        where=event.where,
        note=event.note,
        meta=event.meta,
    )
    db.save_trace(campaign_id, recorder.trace)
    if created.kind is TraceEventKind.ENCOUNTER_RESOLVED:
        db.save_progress(campaign_id, progress)
    return created.model_dump(mode="json", by_alias=True, exclude_none=True)


@router.post("/sessions", status_code=201)
def start_session(
    campaign_id: int,
    session: TraceSessionCreate,
    db: Database = Depends(get_db),
) -> dict[str, Any]:
    campaign = db.require("campaigns", campaign_id)
    trace = load_trace(db, campaign)
    started = start_trace_session(trace, session.session_id, session.title, session.chapter_number)
    db.save_trace(campaign_id, trace)
    return started.model_dump(mode="json", by_alias=True, exclude_none=True)


@router.post("/sessions/{session_id}/end")
def end_session(
    campaign_id: int,
    session_id: str,
    db: Database = Depends(get_db),
) -> dict[str, Any]:
    campaign = db.require("campaigns", campaign_id)
    trace = load_trace(db, campaign)
    ended = end_trace_session(trace, session_id)
    if ended is None:
        raise RecordNotFoundError("Trace session not found", entity="trace_sessions")
    db.save_trace(campaign_id, trace)
    return ended.model_dump(mode="json", by_alias=True, exclude_none=True)
