"""Building and appending to CAMLTrace documents."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from everdice.core.logging import get_logger
from everdice.models.base import utc_now_iso
from everdice.trace.caml import generate_event_id, generate_module_id, generate_trace_id
from everdice.trace.schema import (
    ActorType,
    CAMLTrace,
    SessionPayload,
    TraceActor,
    TraceCampaign,
    TraceEvent,
    TraceEventKind,
    TracePayload,
    TraceSession,
)


logger = get_logger(__name__)


def create_empty_trace(
    campaign_id: int | str,
    campaign_name: str,
    gm_name: str | None = None,
) -> CAMLTrace:
    """Start a new trace for a campaign.

    Args:
        campaign_id: Campaign identifier.
        campaign_name: Campaign title, used in the module id.
        gm_name: Optional name of the game master.

    Returns:
        A trace with no sessions, actors or events.
    """
    return CAMLTrace(
        id=generate_trace_id(campaign_id),
        module_id=generate_module_id(campaign_id, campaign_name),
        campaign=TraceCampaign(
            id=f"CAMP_{campaign_id}",
            name=campaign_name,
            gm=gm_name,
            ruleset="dnd5e",
        ),
    )


def add_trace_event(
    trace: CAMLTrace,
    kind: TraceEventKind | str,
    payload: TracePayload | Mapping[str, Any],
    *,
    session_id: str | None = None,
    who: str | None = None,
    where: str | None = None,
    note: str | None = None,
    meta: dict[str, Any] | None = None,
) -> TraceEvent:
    """Append an event to a trace.

    The event id is derived from the number of events already recorded, so ids
    are sequential within a trace. The trace's ``updated_utc`` is set to the
    event timestamp.

    Raises:
        TraceError: If the payload does not fit the event kind.
    """
    event = TraceEvent(
        eid=generate_event_id(len(trace.events)),
        kind=kind,
        payload=payload,
        session_id=session_id,
        who=who,
        where=where,
        note=note,
        meta=meta,
    )
    trace.events.append(event)
    trace.updated_utc = event.ts
    logger.debug("Trace event added", trace_id=trace.id, eid=event.eid, kind=event.kind.value)
    return event


def start_trace_session(
    trace: CAMLTrace,
    session_id: str,
    title: str | None = None,
    chapter_number: int | None = None,
) -> TraceSession:
    """Open a session and record ``session.started``."""
    session = TraceSession(id=session_id, title=title, chapter_number=chapter_number)
    trace.sessions.append(session)

    add_trace_event(
        trace,
        TraceEventKind.SESSION_STARTED,
        SessionPayload(session_id=session_id, title=title, started_at=session.started_at),
        session_id=session_id,
    )
    logger.info("Trace session started", trace_id=trace.id, session_id=session_id)
    return session


def end_trace_session(trace: CAMLTrace, session_id: str) -> TraceSession | None:
    """Close a session and record ``session.ended``.

    Unknown session ids are ignored and None is returned.
    """
    session = next((s for s in trace.sessions if s.id == session_id), None)
    if session is None:
        logger.warning("Trace session not found", trace_id=trace.id, session_id=session_id)
        return None

    session.ended_at = utc_now_iso()
    add_trace_event(
        trace,
        TraceEventKind.SESSION_ENDED,
        SessionPayload(session_id=session_id, ended_at=session.ended_at),
        session_id=session_id,
    )
    logger.info("Trace session ended", trace_id=trace.id, session_id=session_id)
    return session


def register_trace_actor(
    trace: CAMLTrace,
    actor_id: str,
    actor_type: ActorType,
    name: str,
    character_id: str | None = None,
) -> TraceActor:
    """Add an actor to the trace, or return the existing actor with that id."""
    for actor in trace.actors:
        if actor.id == actor_id:
            return actor

    actor = TraceActor(id=actor_id, type=actor_type, name=name, character_id=character_id)
    trace.actors.append(actor)
    return actor


__all__ = [
    "create_empty_trace",
    "add_trace_event",
    "start_trace_session",
    "end_trace_session",
    "register_trace_actor",
]
